"""Structural summary models produced by the source parsers."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SourceLanguage(str, Enum):
    """Languages the structural parser understands."""

    PHP = "php"
    PYTHON = "python"


class TypeKind(str, Enum):
    """Kind of a declared type."""

    CLASS = "class"
    INTERFACE = "interface"
    TRAIT = "trait"


class Visibility(str, Enum):
    """Member visibility."""

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"


class ImportDeclaration(BaseModel):
    """A single imported name, optionally aliased."""

    model_config = ConfigDict(frozen=True)

    name: str
    alias: str | None = None


class MemberDeclaration(BaseModel):
    """A method, property or free function.

    The signature is normalized (whitespace collapsed) so that two declarations
    compare equal when only their formatting differs.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    visibility: Visibility = Visibility.PUBLIC
    signature: str = ""
    docblock: str | None = None


class TypeModifiers(BaseModel):
    """Class-level modifiers."""

    model_config = ConfigDict(frozen=True)

    abstract: bool = False
    final: bool = False


class TypeDeclaration(BaseModel):
    """A declared class, interface or trait."""

    model_config = ConfigDict(frozen=True)

    kind: TypeKind
    name: str
    extends: str | None = None
    implements: list[str] = Field(default_factory=list)
    modifiers: TypeModifiers = Field(default_factory=TypeModifiers)
    methods: list[MemberDeclaration] = Field(default_factory=list)
    properties: list[MemberDeclaration] = Field(default_factory=list)


class StructuralSummary(BaseModel):
    """Normalized structure of one source file."""

    model_config = ConfigDict(frozen=True)

    language: SourceLanguage = SourceLanguage.PHP
    namespace: str | None = None
    imports: list[ImportDeclaration] = Field(default_factory=list)
    types: list[TypeDeclaration] = Field(default_factory=list)
    functions: list[MemberDeclaration] = Field(default_factory=list)

    def symbol_names(self, public_only: bool = False) -> list[str]:
        """Qualified names of every declared type and member.

        Members are qualified as ``Type::member``, free functions by their bare name.
        """
        names: list[str] = []
        for type_decl in self.types:
            names.append(type_decl.name)
            for member in [*type_decl.methods, *type_decl.properties]:
                if public_only and member.visibility != Visibility.PUBLIC:
                    continue
                names.append(f"{type_decl.name}::{member.name}")
        for function in self.functions:
            if public_only and function.visibility != Visibility.PUBLIC:
                continue
            names.append(function.name)
        return names
