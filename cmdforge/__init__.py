"""Discover task modules and compile them into a command model."""

from __future__ import annotations

from .config import DEFAULT_BUILD_TAG, DiscoverOptions, GenerateOptions, load_config
from .discovery import discover, select_tagged_dirs, tagged_files
from .errors import (
    CmdforgeError,
    DuplicateCommandError,
    GenerationError,
    MainEntryPointError,
    MultiplePackageNamesError,
    MultipleTaggedDirsError,
    NoSourceFilesError,
    PackageNameNotFoundError,
    SignatureError,
    SourceParseError,
    WrapperExistsError,
)
from .filesystem import DirEntry, FileSystem, OSFileSystem
from .generator import generate_function_wrappers
from .models import CommandInfo, CommandKind, FileInfo, PackageModel, TaggedDir, TaggedFile

__all__ = [
    "DEFAULT_BUILD_TAG",
    "CmdforgeError",
    "CommandInfo",
    "CommandKind",
    "DirEntry",
    "DiscoverOptions",
    "DuplicateCommandError",
    "FileInfo",
    "FileSystem",
    "GenerateOptions",
    "GenerationError",
    "MainEntryPointError",
    "MultiplePackageNamesError",
    "MultipleTaggedDirsError",
    "NoSourceFilesError",
    "OSFileSystem",
    "PackageModel",
    "PackageNameNotFoundError",
    "SignatureError",
    "SourceParseError",
    "TaggedDir",
    "TaggedFile",
    "WrapperExistsError",
    "discover",
    "generate_function_wrappers",
    "load_config",
    "select_tagged_dirs",
    "tagged_files",
]
