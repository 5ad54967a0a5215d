"""Entry point for turning source text into a StructuralSummary."""

import threading
from pathlib import Path

from docdrift.core.models import SourceLanguage, StructuralSummary
from docdrift.core.php_parser import PhpStructureParser
from docdrift.core.python_parser import PythonStructureParser

EXTENSION_LANGUAGES = {
    ".php": SourceLanguage.PHP,
    ".py": SourceLanguage.PYTHON,
}


def language_for_path(path: str | Path) -> SourceLanguage | None:
    """Get the parser language for a file, or None when unsupported."""
    return EXTENSION_LANGUAGES.get(Path(path).suffix.lower())


_local = threading.local()


def _php_parser() -> PhpStructureParser:
    """One tree-sitter parser per thread; parsers are not thread-safe."""
    parser = getattr(_local, "php_parser", None)
    if parser is None:
        parser = _local.php_parser = PhpStructureParser()
    return parser


def parse(source_text: str, language: SourceLanguage | str = SourceLanguage.PHP) -> StructuralSummary:
    """Parse one file's source into its structural summary.

    Raises:
        ParseError: If the text is not syntactically valid. ``line`` carries the
            first offending line when it can be derived.
    """
    language = SourceLanguage(language)
    if language == SourceLanguage.PYTHON:
        return PythonStructureParser().parse(source_text)
    return _php_parser().parse(source_text)
