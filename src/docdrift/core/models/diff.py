"""Models describing textual and structural differences between two file versions."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Severity(str, Enum):
    """Magnitude tier of a structural delta."""

    MINIMAL = "minimal"
    MINOR = "minor"
    MAJOR = "major"


class ChangeCounts(BaseModel):
    """Line-level change counters. ``total`` is the number of changed hunks."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0)
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    modifications: int = Field(default=0, ge=0)


class TextDiffResult(BaseModel):
    """Classification of a raw text diff."""

    model_config = ConfigDict(frozen=True)

    whitespace_only: bool = False
    comments_only: bool = False
    structural_changes: bool = False
    semantic_changes: bool = False
    change_counts: ChangeCounts = Field(default_factory=ChangeCounts)

    @model_validator(mode="after")
    def _whitespace_excludes_other_flags(self) -> "TextDiffResult":
        if self.whitespace_only and (self.comments_only or self.structural_changes or self.semantic_changes):
            raise ValueError("whitespace_only diff cannot carry comment, structural or semantic flags")
        return self

    @property
    def has_changes(self) -> bool:
        return self.change_counts.total > 0


class MemberChange(BaseModel):
    """How a member (or free function) present in both versions changed."""

    model_config = ConfigDict(frozen=True)

    old_signature: str
    new_signature: str
    old_visibility: str
    new_visibility: str


class ImportChange(BaseModel):
    """Alias change of an import present in both versions."""

    model_config = ConfigDict(frozen=True)

    old_alias: str | None = None
    new_alias: str | None = None


class NameChangeSet(BaseModel):
    """Names added or removed between two versions."""

    model_config = ConfigDict(frozen=True)

    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)


class MemberChangeSet(NameChangeSet):
    modified: dict[str, MemberChange] = Field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)


class ImportChangeSet(NameChangeSet):
    modified: dict[str, ImportChange] = Field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)


class ModifierChanges(BaseModel):
    """Which class-level modifiers flipped."""

    model_config = ConfigDict(frozen=True)

    abstract: bool = False
    final: bool = False

    @property
    def has_changes(self) -> bool:
        return self.abstract or self.final


class TypeDelta(BaseModel):
    """Sub-delta of a type declared in both versions."""

    model_config = ConfigDict(frozen=True)

    kind_changed: bool = False
    extends_changed: bool = False
    implements_changes: NameChangeSet = Field(default_factory=NameChangeSet)
    modifiers_changed: ModifierChanges = Field(default_factory=ModifierChanges)
    methods_changes: MemberChangeSet = Field(default_factory=MemberChangeSet)
    properties_changes: MemberChangeSet = Field(default_factory=MemberChangeSet)

    @property
    def has_changes(self) -> bool:
        return (
            self.kind_changed
            or self.extends_changed
            or self.implements_changes.has_changes
            or self.modifiers_changed.has_changes
            or self.methods_changes.has_changes
            or self.properties_changes.has_changes
        )

    @property
    def has_contract_changes(self) -> bool:
        """True when the type's place in the hierarchy changed."""
        return self.kind_changed or self.extends_changed or self.implements_changes.has_changes

    @property
    def has_member_changes(self) -> bool:
        return (
            self.methods_changes.has_changes
            or self.properties_changes.has_changes
            or self.modifiers_changed.has_changes
        )


class TypeChangeSet(NameChangeSet):
    modified: dict[str, TypeDelta] = Field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)


class StructuralDelta(BaseModel):
    """Typed difference between two structural summaries."""

    model_config = ConfigDict(frozen=True)

    namespace_changed: bool = False
    types: TypeChangeSet = Field(default_factory=TypeChangeSet)
    interfaces: TypeChangeSet = Field(default_factory=TypeChangeSet)
    functions: MemberChangeSet = Field(default_factory=MemberChangeSet)
    imports: ImportChangeSet = Field(default_factory=ImportChangeSet)
    imports_reordered: bool = False
    severity: Severity = Severity.MINIMAL

    @property
    def has_changes(self) -> bool:
        return (
            self.namespace_changed
            or self.imports_reordered
            or self.types.has_changes
            or self.interfaces.has_changes
            or self.functions.has_changes
            or self.imports.has_changes
        )

    @property
    def implements_changed(self) -> bool:
        return any(delta.implements_changes.has_changes for delta in self.types.modified.values())

    def touched_symbols(self) -> list[str]:
        """Qualified names of every symbol this delta touches."""
        symbols: list[str] = []
        for change_set in (self.types, self.interfaces):
            symbols.extend(change_set.added)
            symbols.extend(change_set.removed)
            for type_name, type_delta in change_set.modified.items():
                if type_delta.has_contract_changes or type_delta.modifiers_changed.has_changes:
                    symbols.append(type_name)
                for members in (type_delta.methods_changes, type_delta.properties_changes):
                    for member in [*members.added, *members.removed, *members.modified]:
                        symbols.append(f"{type_name}::{member}")
        symbols.extend(self.functions.added)
        symbols.extend(self.functions.removed)
        symbols.extend(self.functions.modified)
        return symbols
