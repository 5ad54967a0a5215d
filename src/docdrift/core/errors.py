"""Exception taxonomy for the change-significance pipeline."""

from pathlib import Path


class DocdriftError(Exception):
    """Base class for all docdrift errors."""


class ParseError(DocdriftError):
    """Raised when source text is not syntactically valid."""

    def __init__(self, message: str, line: int | None = None):
        self.line = line
        location = f" (line {line})" if line is not None else ""
        super().__init__(f"{message}{location}")


class ReadError(DocdriftError):
    """Raised when a file is missing or unreadable."""

    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")


class StoreError(DocdriftError):
    """Raised when the tracking store fails. Fatal for the current pass."""


class InputError(DocdriftError):
    """Raised when diff or delta payloads fed to the scorer are malformed."""


class GenerationError(DocdriftError):
    """Raised when documentation generation fails for a file."""


class GitError(DocdriftError):
    """Raised when a git command needed to derive the candidate file list fails."""


class LockError(DocdriftError):
    """Raised when another evaluation pass holds the watcher lock."""
