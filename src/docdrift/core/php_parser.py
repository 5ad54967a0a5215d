"""Tree-sitter powered PHP structure extraction."""

import logging
import re

import tree_sitter_php
from tree_sitter import Language, Node, Parser

from docdrift.core.errors import ParseError
from docdrift.core.models import (
    ImportDeclaration,
    MemberDeclaration,
    SourceLanguage,
    StructuralSummary,
    TypeDeclaration,
    TypeKind,
    TypeModifiers,
    Visibility,
)

logger = logging.getLogger(__name__)

PHP_LANGUAGE = Language(tree_sitter_php.language_php())

_OPEN_TAG = "<?php\n"
_NAME_NODES = {"name", "qualified_name", "namespace_name"}
_TYPE_NODES = {
    "class_declaration": TypeKind.CLASS,
    "interface_declaration": TypeKind.INTERFACE,
    "trait_declaration": TypeKind.TRAIT,
}
_MEMBER_MODIFIERS = ("static", "abstract", "final", "readonly")


def normalize_signature(text: str) -> str:
    """Collapse whitespace so formatting-only edits yield the same signature."""
    text = re.sub(r"\s+", " ", text).strip()
    text = re.sub(r"\(\s+", "(", text)
    text = re.sub(r"\s+\)", ")", text)
    text = re.sub(r"\s*,\s*", ", ", text)
    text = re.sub(r",\s*\)", ")", text)
    text = re.sub(r"\)\s*:\s*", "): ", text)
    text = re.sub(r"\s*=\s*", " = ", text)
    return text


class PhpStructureParser:
    """Extracts namespace, imports, types and functions from PHP source."""

    def __init__(self) -> None:
        self._parser = Parser(PHP_LANGUAGE)

    def parse(self, source_text: str) -> StructuralSummary:
        line_offset = 0
        if not source_text.lstrip().startswith("<?"):
            source_text = _OPEN_TAG + source_text
            line_offset = 1

        source_bytes = source_text.encode("utf-8")
        tree = self._parser.parse(source_bytes)
        root = tree.root_node

        if root.has_error:
            error_node = self._first_error(root)
            line = error_node.start_point[0] + 1 - line_offset if error_node is not None else None
            raise ParseError("Invalid PHP syntax", line=max(line, 1) if line is not None else None)

        walker = _SummaryBuilder(source_bytes)
        walker.visit_statements(root.children)
        return walker.build()

    def _first_error(self, node: Node) -> Node | None:
        if node.type == "ERROR" or node.is_missing:
            return node
        for child in node.children:
            if child.has_error or child.is_missing or child.type == "ERROR":
                found = self._first_error(child)
                if found is not None:
                    return found
        return None


class _SummaryBuilder:
    def __init__(self, source_bytes: bytes):
        self.source_bytes = source_bytes
        self.namespace: str | None = None
        self.imports: list[ImportDeclaration] = []
        self.types: list[TypeDeclaration] = []
        self.functions: list[MemberDeclaration] = []

    def build(self) -> StructuralSummary:
        return StructuralSummary(
            language=SourceLanguage.PHP,
            namespace=self.namespace,
            imports=self.imports,
            types=self.types,
            functions=self.functions,
        )

    def text(self, node: Node | None) -> str:
        if node is None:
            return ""
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def visit_statements(self, nodes: list[Node]) -> None:
        for node in nodes:
            if node.type == "namespace_definition":
                name_node = node.child_by_field_name("name")
                if self.namespace is None and name_node is not None:
                    self.namespace = self.text(name_node)
                body = node.child_by_field_name("body")
                if body is not None:
                    self.visit_statements(body.children)
            elif node.type == "namespace_use_declaration":
                self.imports.extend(self._imports(node))
            elif node.type in _TYPE_NODES:
                self.types.append(self._type_declaration(node))
            elif node.type == "function_definition":
                function = self._function(node)
                if function is not None:
                    self.functions.append(function)

    def _imports(self, node: Node) -> list[ImportDeclaration]:
        prefix = ""
        group = None
        for child in node.named_children:
            if child.type == "namespace_use_group":
                group = child
            elif child.type in _NAME_NODES and group is None:
                prefix = self.text(child).lstrip("\\")

        clauses = (group or node).named_children
        imports = []
        for clause in clauses:
            if clause.type not in ("namespace_use_clause", "namespace_use_group_clause"):
                continue
            alias_node = clause.child_by_field_name("alias")
            name = ""
            for child in clause.named_children:
                if child.type == "namespace_aliasing_clause":
                    alias_node = next((c for c in child.named_children if c.type == "name"), alias_node)
                elif child.type in _NAME_NODES and not name and child != alias_node:
                    name = self.text(child).lstrip("\\")
            if not name:
                continue
            if prefix and group is not None:
                name = f"{prefix}\\{name}"
            alias = self.text(alias_node) if alias_node is not None else None
            imports.append(ImportDeclaration(name=name, alias=alias or None))
        return imports

    def _type_declaration(self, node: Node) -> TypeDeclaration:
        kind = _TYPE_NODES[node.type]
        name = self.text(node.child_by_field_name("name"))

        parents: list[str] = []
        implements: list[str] = []
        modifiers: set[str] = set()
        for child in node.children:
            if child.type == "base_clause":
                parents.extend(self._names(child))
            elif child.type == "class_interface_clause":
                implements.extend(self._names(child))
            elif child.type.endswith("_modifier"):
                modifiers.add(self.text(child).lower())

        if kind == TypeKind.INTERFACE:
            extends = ", ".join(sorted(parents)) or None
        else:
            extends = parents[0] if parents else None

        methods: list[MemberDeclaration] = []
        properties: list[MemberDeclaration] = []
        body = node.child_by_field_name("body")
        if body is not None:
            for member in body.named_children:
                if member.type == "method_declaration":
                    method = self._function(member)
                    if method is not None:
                        methods.append(method)
                elif member.type == "property_declaration":
                    properties.extend(self._properties(member))

        return TypeDeclaration(
            kind=kind,
            name=name,
            extends=extends,
            implements=implements,
            modifiers=TypeModifiers(abstract="abstract" in modifiers, final="final" in modifiers),
            methods=methods,
            properties=properties,
        )

    def _names(self, clause: Node) -> list[str]:
        return [self.text(child).lstrip("\\") for child in clause.named_children if child.type in _NAME_NODES]

    def _visibility_and_modifiers(self, node: Node) -> tuple[Visibility, list[str]]:
        visibility = Visibility.PUBLIC
        modifiers = []
        for child in node.children:
            if child.type == "visibility_modifier":
                visibility = Visibility(self.text(child).lower())
            elif child.type.endswith("_modifier"):
                word = self.text(child).lower()
                if word in _MEMBER_MODIFIERS:
                    modifiers.append(word)
        return visibility, sorted(modifiers)

    def _function(self, node: Node) -> MemberDeclaration | None:
        name = self.text(node.child_by_field_name("name"))
        if not name:
            return None
        visibility, modifiers = self._visibility_and_modifiers(node)

        signature = self.text(node.child_by_field_name("parameters")) or "()"
        return_type = node.child_by_field_name("return_type")
        if return_type is not None:
            signature = f"{signature}: {self.text(return_type)}"
        if modifiers:
            signature = f"{' '.join(modifiers)} {signature}"

        return MemberDeclaration(
            name=name,
            visibility=visibility,
            signature=normalize_signature(signature),
            docblock=self._docblock(node),
        )

    def _properties(self, node: Node) -> list[MemberDeclaration]:
        visibility, modifiers = self._visibility_and_modifiers(node)
        type_text = self.text(node.child_by_field_name("type"))
        docblock = self._docblock(node)

        properties = []
        for element in node.named_children:
            if element.type != "property_element":
                continue
            variable = next((c for c in element.named_children if c.type == "variable_name"), None)
            if variable is None:
                continue
            parts = [*modifiers]
            if type_text:
                parts.append(type_text)
            default = element.child_by_field_name("default")
            if default is None:
                initializer = next((c for c in element.named_children if c.type == "property_initializer"), None)
                if initializer is not None and initializer.named_children:
                    default = initializer.named_children[0]
            if default is not None:
                parts.append(f"= {self.text(default)}")
            properties.append(
                MemberDeclaration(
                    name=self.text(variable).lstrip("$"),
                    visibility=visibility,
                    signature=normalize_signature(" ".join(parts)),
                    docblock=docblock,
                )
            )
        return properties

    def _docblock(self, node: Node) -> str | None:
        previous = node.prev_named_sibling
        if previous is not None and previous.type == "comment":
            text = self.text(previous)
            if text.startswith("/**"):
                return text
        return None
