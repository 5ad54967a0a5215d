"""Documentation generators and doc path mapping."""

import logging
import shlex
import subprocess
from pathlib import Path, PurePosixPath
from typing import Protocol

from docdrift.core.cost_tracker import CostTracker
from docdrift.core.errors import GenerationError, ParseError
from docdrift.core.models import MemberDeclaration, StructuralSummary, TypeDeclaration, Visibility
from docdrift.core.structural_parser import language_for_path, parse

logger = logging.getLogger(__name__)


class DocumentationGenerator(Protocol):
    """Turns one source file into Markdown documentation."""

    def generate(self, path: str, source_text: str) -> str: ...


def doc_path_for(path: str, docs_path: Path, strip_prefixes: list[str] | None = None) -> Path:
    """Map a source path to its Markdown path under ``docs_path``.

    ``app/Models/User.php`` -> ``<docs_path>/Models/User.md`` with the default prefixes.
    """
    relative = PurePosixPath(path)
    for prefix in strip_prefixes or []:
        prefix_parts = PurePosixPath(prefix.rstrip("/")).parts
        if relative.parts[: len(prefix_parts)] == prefix_parts and len(relative.parts) > len(prefix_parts):
            relative = PurePosixPath(*relative.parts[len(prefix_parts) :])
            break
    return docs_path / Path(*relative.parts).with_suffix(".md")


def _member_line(member: MemberDeclaration) -> str:
    separator = "" if member.signature.startswith("(") or not member.signature else " "
    line = f"- `{member.name}{separator}{member.signature}`"
    if member.visibility.value != "public":
        line += f" *({member.visibility.value})*"
    if member.docblock:
        summary = _docblock_summary(member.docblock)
        if summary:
            line += f": {summary}"
    return line


def _docblock_summary(docblock: str) -> str:
    for raw in docblock.splitlines():
        text = raw.strip().lstrip("/*").strip()
        if text and not text.startswith("@"):
            return text
    return ""


class MarkdownSkeletonGenerator:
    """Renders Markdown straight from the file's structural summary, no model involved."""

    def __init__(self, public_only: bool = False):
        self.public_only = public_only

    def _visible(self, members: list[MemberDeclaration]) -> list[MemberDeclaration]:
        if not self.public_only:
            return members
        return [member for member in members if member.visibility == Visibility.PUBLIC]

    def generate(self, path: str, source_text: str) -> str:
        language = language_for_path(path)
        if language is None:
            raise GenerationError(f"Unsupported file type: {path}")
        try:
            summary = parse(source_text, language)
        except ParseError as e:
            raise GenerationError(f"Cannot document {path}: {e}") from e
        return self.render(path, summary)

    def render(self, path: str, summary: StructuralSummary) -> str:
        lines = [f"# {PurePosixPath(path).name}", "", f"Source: `{path}`", ""]
        if summary.namespace:
            lines += [f"Namespace: `{summary.namespace}`", ""]

        if summary.imports:
            lines += ["## Dependencies", ""]
            for imported in summary.imports:
                alias = f" as `{imported.alias}`" if imported.alias else ""
                lines.append(f"- `{imported.name}`{alias}")
            lines.append("")

        for type_decl in summary.types:
            lines += self._render_type(type_decl)

        functions = self._visible(summary.functions)
        if functions:
            lines += ["## Functions", ""]
            lines += [_member_line(function) for function in functions]
            lines.append("")

        return "\n".join(lines).rstrip() + "\n"

    def _render_type(self, type_decl: TypeDeclaration) -> list[str]:
        modifiers = [name for name in ("abstract", "final") if getattr(type_decl.modifiers, name)]
        heading = " ".join([*modifiers, type_decl.kind.value, type_decl.name])
        lines = [f"## {heading}", ""]
        if type_decl.extends:
            lines.append(f"Extends: `{type_decl.extends}`")
        if type_decl.implements:
            lines.append("Implements: " + ", ".join(f"`{name}`" for name in type_decl.implements))
        if type_decl.extends or type_decl.implements:
            lines.append("")

        properties = self._visible(type_decl.properties)
        if properties:
            lines += ["### Properties", ""]
            lines += [_member_line(prop) for prop in properties]
            lines.append("")
        methods = self._visible(type_decl.methods)
        if methods:
            lines += ["### Methods", ""]
            lines += [_member_line(method) for method in methods]
            lines.append("")
        return lines


class CommandGenerator:
    """Pipes the source to an external command and reads Markdown from its stdout.

    Token usage is estimated from text length and recorded in the usage ledger.
    """

    def __init__(self, command: str, model: str, cost_tracker: CostTracker | None = None, timeout: int = 300):
        self.command = shlex.split(command)
        self.model = model
        self.cost_tracker = cost_tracker
        self.timeout = timeout

    def generate(self, path: str, source_text: str) -> str:
        try:
            result = subprocess.run(
                [*self.command, path],
                input=source_text,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, subprocess.SubprocessError, OSError) as e:
            raise GenerationError(f"Generator command failed for {path}: {e}") from e

        if result.returncode != 0:
            raise GenerationError(f"Generator command exited {result.returncode} for {path}: {result.stderr.strip()}")

        markdown = result.stdout
        if self.cost_tracker is not None:
            estimate = self.cost_tracker.estimate_cost(self.model, source_text, max(1, len(markdown) // 4))
            self.cost_tracker.record_usage(
                self.model, estimate.estimated_input_tokens, estimate.estimated_output_tokens, path
            )
        return markdown


def write_documentation(doc_path: Path, markdown: str) -> None:
    """Write generated Markdown, creating parent directories.

    Raises:
        GenerationError: If the file cannot be written
    """
    try:
        doc_path.parent.mkdir(parents=True, exist_ok=True)
        doc_path.write_text(markdown, encoding="utf-8")
    except OSError as e:
        raise GenerationError(f"Cannot write documentation to {doc_path}: {e}") from e
    logger.debug(f"Wrote documentation to {doc_path}")
