"""Breadth-first discovery of directories holding tagged source files."""

from __future__ import annotations

import os
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Tuple

from .analyzers.constraints import has_build_tag
from .errors import MultipleTaggedDirsError
from .filesystem import FileSystem
from .logging import get_logger
from .models import TaggedDir, TaggedFile

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "vendor",
    "node_modules",
    "__pycache__",
    "__pypackages__",
    "site-packages",
    "venv",
}

_SOURCE_SUFFIX = ".py"
_GENERATED_PREFIX = "generated_"

logger = get_logger("walker")


def should_skip_dir(name: str, *, skip_hidden: bool = True) -> bool:
    """Return True for version-control, vendored and (optionally) hidden dirs."""
    if name in _EXCLUDED_DIRS:
        return True
    return skip_hidden and name.startswith(".")


def is_test_file(name: str) -> bool:
    stem = name[: -len(_SOURCE_SUFFIX)] if name.endswith(_SOURCE_SUFFIX) else name
    return stem.startswith("test_") or stem.endswith("_test") or stem == "conftest"


def is_generated_file(name: str, tag: str) -> bool:
    return name.startswith(f"{_GENERATED_PREFIX}{tag}_") and name.endswith(_SOURCE_SUFFIX)


def is_source_file(name: str) -> bool:
    """A Python module that is not a test module."""
    return name.endswith(_SOURCE_SUFFIX) and not is_test_file(name)


def is_candidate_file(name: str, tag: str) -> bool:
    """Source files eligible for discovery; generated wrappers are excluded."""
    return is_source_file(name) and not is_generated_file(name, tag)


@dataclass
class _QueueEntry:
    path: str
    depth: int


def _check_depth_conflicts(results: List[TaggedDir]) -> None:
    by_depth: Dict[int, List[str]] = defaultdict(list)
    for tagged in results:
        by_depth[tagged.depth].append(tagged.path)
    for depth in sorted(by_depth):
        if len(by_depth[depth]) > 1:
            raise MultipleTaggedDirsError(by_depth[depth], depth)


class DirectoryWalker:
    """Walks a tree through a FileSystem port, collecting tagged directories."""

    def __init__(
        self,
        filesystem: FileSystem,
        tag: str,
        *,
        multi_package: bool = False,
        skip_hidden_dirs: bool = True,
    ) -> None:
        self._fs = filesystem
        self._tag = tag
        self._multi_package = multi_package
        self._skip_hidden = skip_hidden_dirs

    def walk(self, start_dir: str) -> List[TaggedDir]:
        """Return tagged directories in breadth-first order.

        Without multi-package mode, two or more tagged directories at the
        same depth are an error; the shallowest such depth is reported.
        """
        queue: Deque[_QueueEntry] = deque([_QueueEntry(start_dir, 0)])
        results: List[TaggedDir] = []

        while queue:
            current = queue.popleft()
            files, subdirs = self._process_directory(current)
            queue.extend(subdirs)

            if files:
                logger.debug(
                    "Tagged directory %s (depth %d, %d files)", current.path, current.depth, len(files)
                )
                results.append(TaggedDir(path=current.path, depth=current.depth, files=tuple(files)))

        if not self._multi_package:
            _check_depth_conflicts(results)

        return results

    def _process_directory(self, current: _QueueEntry) -> Tuple[List[TaggedFile], List[_QueueEntry]]:
        entries = sorted(self._fs.read_dir(current.path), key=lambda entry: entry.name)

        tagged: List[TaggedFile] = []
        subdirs: List[_QueueEntry] = []
        for entry in entries:
            full_path = os.path.join(current.path, entry.name)
            if entry.is_dir:
                if should_skip_dir(entry.name, skip_hidden=self._skip_hidden):
                    logger.debug("Skipping directory %s", full_path)
                    continue
                subdirs.append(_QueueEntry(full_path, current.depth + 1))
                continue

            if not is_candidate_file(entry.name, self._tag):
                continue
            content = self._fs.read_file(full_path)
            if has_build_tag(content, self._tag):
                tagged.append(TaggedFile(path=full_path, content=content))

        return tagged, subdirs


def find_tagged_dirs(
    filesystem: FileSystem,
    start_dir: str,
    tag: str,
    *,
    multi_package: bool = False,
    skip_hidden_dirs: bool = True,
) -> List[TaggedDir]:
    """Convenience wrapper around DirectoryWalker.walk."""
    walker = DirectoryWalker(
        filesystem, tag, multi_package=multi_package, skip_hidden_dirs=skip_hidden_dirs
    )
    return walker.walk(start_dir)
