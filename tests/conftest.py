from __future__ import annotations

import pytest

from tests._fixtures.memory_fs import MemoryFileSystem


@pytest.fixture
def memfs() -> MemoryFileSystem:
    """Provide an empty in-memory file system rooted at /root."""
    return MemoryFileSystem("/root")
