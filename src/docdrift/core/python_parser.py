"""Structure extraction for Python sources using the ast module."""

import ast

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
from docdrift.core.php_parser import normalize_signature

_INTERFACE_BASES = {"Protocol"}
_ABSTRACT_BASES = {"ABC"}
_IGNORED_BASES = {"object", "Generic"} | _INTERFACE_BASES | _ABSTRACT_BASES
_SIGNATURE_DECORATORS = {"staticmethod", "classmethod", "property", "abstractmethod"}

FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef


def _terminal_name(node: ast.expr) -> str:
    """``typing.Protocol`` -> ``Protocol``; ``Generic[T]`` -> ``Generic``."""
    if isinstance(node, ast.Subscript):
        return _terminal_name(node.value)
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Name):
        return node.id
    return ast.unparse(node)


def _visibility(name: str) -> Visibility:
    if name.startswith("__") and name.endswith("__"):
        return Visibility.PUBLIC
    if name.startswith("__"):
        return Visibility.PRIVATE
    if name.startswith("_"):
        return Visibility.PROTECTED
    return Visibility.PUBLIC


class PythonStructureParser:
    """Maps Python classes, functions and imports onto the structural summary."""

    def parse(self, source_text: str) -> StructuralSummary:
        try:
            tree = ast.parse(source_text)
        except SyntaxError as e:
            raise ParseError(f"Invalid Python syntax: {e.msg}", line=e.lineno) from e

        imports: list[ImportDeclaration] = []
        types: list[TypeDeclaration] = []
        functions: list[MemberDeclaration] = []

        for node in tree.body:
            if isinstance(node, ast.Import):
                imports.extend(ImportDeclaration(name=alias.name, alias=alias.asname) for alias in node.names)
            elif isinstance(node, ast.ImportFrom):
                module = "." * node.level + (node.module or "")
                for alias in node.names:
                    name = f"{module}.{alias.name}" if module and not module.endswith(".") else module + alias.name
                    imports.append(ImportDeclaration(name=name, alias=alias.asname))
            elif isinstance(node, ast.ClassDef):
                types.append(self._type_declaration(node))
            elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                functions.append(self._function(node))

        return StructuralSummary(
            language=SourceLanguage.PYTHON,
            namespace=None,
            imports=imports,
            types=types,
            functions=functions,
        )

    def _type_declaration(self, node: ast.ClassDef) -> TypeDeclaration:
        base_names = [_terminal_name(base) for base in node.bases]
        parents = [ast.unparse(base) for base, name in zip(node.bases, base_names) if name not in _IGNORED_BASES]

        if _INTERFACE_BASES & set(base_names):
            kind = TypeKind.INTERFACE
        elif node.name.endswith("Mixin"):
            kind = TypeKind.TRAIT
        else:
            kind = TypeKind.CLASS

        methods = [
            self._function(child) for child in node.body if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef))
        ]
        properties = self._properties(node)

        metaclass_abc = any(
            keyword.arg == "metaclass" and _terminal_name(keyword.value) == "ABCMeta" for keyword in node.keywords
        )
        has_abstract_methods = any(
            _terminal_name(decorator) == "abstractmethod"
            for child in node.body
            if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef))
            for decorator in child.decorator_list
        )
        abstract = kind != TypeKind.INTERFACE and (
            bool(_ABSTRACT_BASES & set(base_names)) or metaclass_abc or has_abstract_methods
        )
        final = any(_terminal_name(decorator) == "final" for decorator in node.decorator_list)

        if kind == TypeKind.INTERFACE:
            extends = ", ".join(sorted(parents)) or None
            implements: list[str] = []
        else:
            extends = parents[0] if parents else None
            implements = parents[1:]

        return TypeDeclaration(
            kind=kind,
            name=node.name,
            extends=extends,
            implements=implements,
            modifiers=TypeModifiers(abstract=abstract, final=final),
            methods=methods,
            properties=properties,
        )

    def _function(self, node: FunctionNode) -> MemberDeclaration:
        decorators = sorted(
            name for name in map(_terminal_name, node.decorator_list) if name in _SIGNATURE_DECORATORS
        )
        signature = f"({ast.unparse(node.args)})"
        if node.returns is not None:
            signature += f" -> {ast.unparse(node.returns)}"
        prefix = ["async"] if isinstance(node, ast.AsyncFunctionDef) else []
        prefix.extend(decorators)
        if prefix:
            signature = f"{' '.join(prefix)} {signature}"

        return MemberDeclaration(
            name=node.name,
            visibility=_visibility(node.name),
            signature=normalize_signature(signature),
            docblock=ast.get_docstring(node),
        )

    def _properties(self, node: ast.ClassDef) -> list[MemberDeclaration]:
        properties = []
        seen: set[str] = set()
        for child in node.body:
            if isinstance(child, ast.AnnAssign) and isinstance(child.target, ast.Name):
                targets = [child.target.id]
                signature = ast.unparse(child.annotation)
                if child.value is not None:
                    signature += f" = {ast.unparse(child.value)}"
            elif isinstance(child, ast.Assign):
                targets = [target.id for target in child.targets if isinstance(target, ast.Name)]
                signature = f"= {ast.unparse(child.value)}"
            else:
                continue
            for name in targets:
                if name in seen:
                    continue
                seen.add(name)
                properties.append(
                    MemberDeclaration(name=name, visibility=_visibility(name), signature=normalize_signature(signature))
                )
        return properties
