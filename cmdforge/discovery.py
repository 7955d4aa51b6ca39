"""Public discovery entry points."""

from __future__ import annotations

from typing import List, Optional

from .assembler import assemble_package
from .config import DiscoverOptions
from .filesystem import FileSystem
from .logging import get_logger
from .models import PackageModel, TaggedDir, TaggedFile
from .scanner import scan_directory
from .walker import find_tagged_dirs

logger = get_logger("discovery")


def _find(filesystem: FileSystem, options: Optional[DiscoverOptions]) -> List[TaggedDir]:
    options = options or DiscoverOptions()
    return find_tagged_dirs(
        filesystem,
        options.effective_start_dir,
        options.effective_tag,
        multi_package=options.multi_package,
        skip_hidden_dirs=options.skip_hidden_dirs,
    )


def discover(
    filesystem: FileSystem, options: Optional[DiscoverOptions] = None
) -> List[PackageModel]:
    """Find tagged directories and compile one PackageModel per directory."""
    dirs = _find(filesystem, options)
    if not dirs:
        logger.debug("No tagged files found")
        return []

    packages: List[PackageModel] = []
    for tagged in dirs:
        package = assemble_package(scan_directory(tagged.path, tagged.files))
        logger.debug("Discovered %d commands in %s", len(package.commands), tagged.path)
        packages.append(package)
    return packages


def select_tagged_dirs(
    filesystem: FileSystem, options: Optional[DiscoverOptions] = None
) -> List[TaggedDir]:
    """Return the tagged directories (path and depth) without parsing them."""
    return [TaggedDir(path=tagged.path, depth=tagged.depth) for tagged in _find(filesystem, options)]


def tagged_files(
    filesystem: FileSystem, options: Optional[DiscoverOptions] = None
) -> List[TaggedFile]:
    """Return every tagged file under the selected directories."""
    return [file for tagged in _find(filesystem, options) for file in tagged.files]
