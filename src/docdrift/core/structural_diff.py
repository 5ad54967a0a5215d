"""Typed comparison of two structural summaries."""

import logging

from docdrift.core.models import (
    ImportChange,
    ImportChangeSet,
    ImportDeclaration,
    MemberChange,
    MemberChangeSet,
    MemberDeclaration,
    ModifierChanges,
    NameChangeSet,
    Severity,
    StructuralDelta,
    StructuralSummary,
    TypeChangeSet,
    TypeDeclaration,
    TypeDelta,
    TypeKind,
)

logger = logging.getLogger(__name__)


def _by_name(items):
    return {item.name: item for item in items}


def _name_changes(old: list[str], new: list[str]) -> NameChangeSet:
    return NameChangeSet(
        added=[name for name in new if name not in old],
        removed=[name for name in old if name not in new],
    )


class StructuralDiffComparator:
    """Computes added, removed and modified declarations between two file versions.

    Classes and traits form the ``types`` category, interfaces their own. A type
    that changes between the two (say class to interface) shows up as removed
    from one category and added to the other.
    """

    def compare(self, old: StructuralSummary, new: StructuralSummary) -> StructuralDelta:
        types = self._compare_types(
            [t for t in old.types if t.kind != TypeKind.INTERFACE],
            [t for t in new.types if t.kind != TypeKind.INTERFACE],
        )
        interfaces = self._compare_types(
            [t for t in old.types if t.kind == TypeKind.INTERFACE],
            [t for t in new.types if t.kind == TypeKind.INTERFACE],
        )
        functions = self._compare_members(old.functions, new.functions)
        imports = self._compare_imports(old.imports, new.imports)

        old_order = [i.name for i in old.imports]
        new_order = [i.name for i in new.imports]
        imports_reordered = not imports.has_changes and old_order != new_order

        delta = StructuralDelta(
            namespace_changed=old.namespace != new.namespace,
            types=types,
            interfaces=interfaces,
            functions=functions,
            imports=imports,
            imports_reordered=imports_reordered,
        )
        severity = self.severity_of(delta)
        logger.debug(f"Structural delta severity {severity.value}, has_changes={delta.has_changes}")
        return delta.model_copy(update={"severity": severity})

    @staticmethod
    def severity_of(delta: StructuralDelta) -> Severity:
        """Magnitude tier of a delta.

        Major: a type, interface or function appeared or vanished, or a type's
        place in the hierarchy or the namespace moved. Minor: only members,
        modifiers, function signatures or imports changed. Minimal otherwise.
        """
        declaration_churn = any(
            change_set.added or change_set.removed for change_set in (delta.types, delta.interfaces, delta.functions)
        )
        contract_changed = any(
            type_delta.has_contract_changes
            for change_set in (delta.types, delta.interfaces)
            for type_delta in change_set.modified.values()
        )
        if declaration_churn or contract_changed or delta.namespace_changed:
            return Severity.MAJOR

        if delta.types.modified or delta.interfaces.modified or delta.functions.modified or delta.imports.has_changes:
            return Severity.MINOR

        return Severity.MINIMAL

    def _compare_types(self, old: list[TypeDeclaration], new: list[TypeDeclaration]) -> TypeChangeSet:
        old_by_name = _by_name(old)
        new_by_name = _by_name(new)

        modified = {}
        for name, new_type in new_by_name.items():
            old_type = old_by_name.get(name)
            if old_type is None:
                continue
            type_delta = self._compare_type(old_type, new_type)
            if type_delta.has_changes:
                modified[name] = type_delta

        return TypeChangeSet(
            added=[name for name in new_by_name if name not in old_by_name],
            removed=[name for name in old_by_name if name not in new_by_name],
            modified=modified,
        )

    def _compare_type(self, old: TypeDeclaration, new: TypeDeclaration) -> TypeDelta:
        return TypeDelta(
            kind_changed=old.kind != new.kind,
            extends_changed=old.extends != new.extends,
            implements_changes=_name_changes(old.implements, new.implements),
            modifiers_changed=ModifierChanges(
                abstract=old.modifiers.abstract != new.modifiers.abstract,
                final=old.modifiers.final != new.modifiers.final,
            ),
            methods_changes=self._compare_members(old.methods, new.methods),
            properties_changes=self._compare_members(old.properties, new.properties),
        )

    def _compare_members(self, old: list[MemberDeclaration], new: list[MemberDeclaration]) -> MemberChangeSet:
        # docblock-only edits never count as a modification
        old_by_name = _by_name(old)
        new_by_name = _by_name(new)

        modified = {}
        for name, new_member in new_by_name.items():
            old_member = old_by_name.get(name)
            if old_member is None:
                continue
            if old_member.signature != new_member.signature or old_member.visibility != new_member.visibility:
                modified[name] = MemberChange(
                    old_signature=old_member.signature,
                    new_signature=new_member.signature,
                    old_visibility=old_member.visibility.value,
                    new_visibility=new_member.visibility.value,
                )

        return MemberChangeSet(
            added=[name for name in new_by_name if name not in old_by_name],
            removed=[name for name in old_by_name if name not in new_by_name],
            modified=modified,
        )

    def _compare_imports(self, old: list[ImportDeclaration], new: list[ImportDeclaration]) -> ImportChangeSet:
        old_by_name = _by_name(old)
        new_by_name = _by_name(new)

        modified = {
            name: ImportChange(old_alias=old_by_name[name].alias, new_alias=new_import.alias)
            for name, new_import in new_by_name.items()
            if name in old_by_name and old_by_name[name].alias != new_import.alias
        }

        return ImportChangeSet(
            added=[name for name in new_by_name if name not in old_by_name],
            removed=[name for name in old_by_name if name not in new_by_name],
            modified=modified,
        )
