"""Error taxonomy raised by discovery and wrapper generation."""

from __future__ import annotations

from typing import Sequence


class CmdforgeError(RuntimeError):
    """Base class for structural-policy and parse failures."""


class SourceParseError(CmdforgeError):
    """Raised when a source file cannot be parsed."""

    def __init__(self, path: str, message: str, lineno: int | None = None) -> None:
        location = f"{path}:{lineno}" if lineno else path
        super().__init__(f"parsing file {location}: {message}")
        self.path = path
        self.lineno = lineno


class MultiplePackageNamesError(CmdforgeError):
    """Raised when files in one directory declare different package names."""

    def __init__(self, directory: str, names: Sequence[str] = ()) -> None:
        detail = f" ({', '.join(names)})" if names else ""
        super().__init__(f"multiple package names: {directory}{detail}")
        self.directory = directory
        self.names = tuple(names)


class SignatureError(CmdforgeError):
    """Raised when an exported function has an unsupported signature."""

    def __init__(self, path: str, function: str, reason: str) -> None:
        prefix = f"{path}: " if path else ""
        super().__init__(f"{prefix}function {function} {reason}")
        self.path = path
        self.function = function
        self.reason = reason


class MainEntryPointError(CmdforgeError):
    """Raised when tagged files carry a program entry point."""

    def __init__(self, files: Sequence[str]) -> None:
        self.files = tuple(sorted(files))
        super().__init__(
            "tagged files must not declare a __main__ entry point: " + ", ".join(self.files)
        )


class DuplicateCommandError(CmdforgeError):
    """Raised when two commands normalise to the same kebab-case name."""

    def __init__(self, command: str, first: str, second: str) -> None:
        super().__init__(f"duplicate command name: {command!r} from {first} and {second}")
        self.command = command
        self.first = first
        self.second = second


class MultipleTaggedDirsError(CmdforgeError):
    """Raised when several tagged directories share one breadth-first depth."""

    def __init__(self, paths: Sequence[str], depth: int) -> None:
        self.paths = tuple(sorted(paths))
        self.depth = depth
        super().__init__(
            f"multiple tagged directories at depth {depth}: {', '.join(self.paths)}"
        )


class WrapperExistsError(CmdforgeError):
    """Raised when a wrapper class for a function is already declared."""

    def __init__(self, wrapper: str) -> None:
        super().__init__(f"generated wrapper already exists: {wrapper}")
        self.wrapper = wrapper


class NoSourceFilesError(CmdforgeError):
    """Raised when the generator finds nothing to scan."""

    def __init__(self, directory: str) -> None:
        super().__init__(f"no Python source files found: {directory}")
        self.directory = directory


class PackageNameNotFoundError(CmdforgeError):
    """Raised when no package name can be determined for a directory."""

    def __init__(self, directory: str) -> None:
        super().__init__(f"package name not found: {directory}")
        self.directory = directory


class GenerationError(CmdforgeError):
    """Raised when wrapper source cannot be rendered or formatted."""


__all__ = [
    "CmdforgeError",
    "DuplicateCommandError",
    "GenerationError",
    "MainEntryPointError",
    "MultiplePackageNamesError",
    "MultipleTaggedDirsError",
    "NoSourceFilesError",
    "PackageNameNotFoundError",
    "SignatureError",
    "SourceParseError",
    "WrapperExistsError",
]
