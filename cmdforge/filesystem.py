"""File-system port used by discovery and wrapper generation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Protocol, runtime_checkable

DEFAULT_FILE_MODE = 0o644


@dataclass(frozen=True)
class DirEntry:
    """A single directory listing entry."""

    name: str
    is_dir: bool


@runtime_checkable
class FileSystem(Protocol):
    """The only I/O surface the core touches.

    Implementations raise ``OSError`` subclasses unchanged; callers never
    see them wrapped.
    """

    def read_dir(self, path: str) -> List[DirEntry]:
        """Return the entries of ``path`` in any order."""

    def read_file(self, path: str) -> bytes:
        """Return the raw bytes stored at ``path``."""

    def write_file(self, path: str, data: bytes, mode: int = DEFAULT_FILE_MODE) -> None:
        """Replace ``path`` with ``data`` in a single call."""


class OSFileSystem:
    """FileSystem backed by the local disk."""

    def read_dir(self, path: str) -> List[DirEntry]:
        with os.scandir(path) as handle:
            return [DirEntry(name=entry.name, is_dir=entry.is_dir()) for entry in handle]

    def read_file(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def write_file(self, path: str, data: bytes, mode: int = DEFAULT_FILE_MODE) -> None:
        target = Path(path)
        target.write_bytes(data)
        os.chmod(target, mode)


__all__ = ["DEFAULT_FILE_MODE", "DirEntry", "FileSystem", "OSFileSystem"]
