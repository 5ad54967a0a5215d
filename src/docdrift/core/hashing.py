"""Content hashing for the file-hash ledger."""

import hashlib
from pathlib import Path

from docdrift.core.errors import ReadError

_CHUNK_SIZE = 1024 * 1024


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def hash_text(text: str) -> str:
    return hash_bytes(text.encode("utf-8"))


def hash_file(path: Path) -> str:
    """SHA-256 of a file's bytes.

    Raises:
        ReadError: If the file is missing or unreadable
    """
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except FileNotFoundError as e:
        raise ReadError(path, "File not found") from e
    except OSError as e:
        raise ReadError(path, e.strerror or str(e)) from e
    return digest.hexdigest()
