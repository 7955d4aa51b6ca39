"""Core data models shared across cmdforge components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class CommandKind(str, Enum):
    """Whether a command is a plain function or a command class."""

    FUNCTION = "func"
    TYPE = "struct"


@dataclass(frozen=True)
class TaggedFile:
    """A source file whose build directive matched the target tag."""

    path: str
    content: bytes


@dataclass(frozen=True)
class TaggedDir:
    """A directory holding at least one tagged file."""

    path: str
    depth: int
    files: Tuple[TaggedFile, ...] = ()


@dataclass(frozen=True)
class CommandCandidate:
    """Provisional record extracted from a single declaration."""

    name: str
    kind: CommandKind
    file: str
    description: str = ""
    uses_context: bool = False
    returns_error: bool = False
    is_async: bool = False
    has_run: bool = False
    has_subcommands: bool = False


@dataclass(frozen=True)
class SubcommandLink:
    """Relation from a parent class field to the command it mounts."""

    parent: str
    field: str
    name: str
    type_name: str


@dataclass(frozen=True)
class CommandInfo:
    """A promoted command as handed to downstream collaborators."""

    name: str
    kind: CommandKind
    file: str
    description: str = ""
    uses_context: bool = False
    returns_error: bool = False
    is_async: bool = False

    @classmethod
    def from_candidate(cls, candidate: CommandCandidate) -> "CommandInfo":
        return cls(
            name=candidate.name,
            kind=candidate.kind,
            file=candidate.file,
            description=candidate.description,
            uses_context=candidate.uses_context,
            returns_error=candidate.returns_error,
            is_async=candidate.is_async,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["kind"] = self.kind.value
        return payload


@dataclass(frozen=True)
class FileInfo:
    """Commands grouped by the file that declares them."""

    path: str
    base: str
    commands: Tuple[CommandInfo, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "base": self.base,
            "commands": [command.to_dict() for command in self.commands],
        }


@dataclass(frozen=True)
class PackageModel:
    """Validated command model for one tagged directory."""

    dir: str
    package: str
    doc: str = ""
    commands: Tuple[CommandInfo, ...] = field(default_factory=tuple)
    files: Tuple[FileInfo, ...] = field(default_factory=tuple)
    uses_explicit_registration: bool = False

    def command(self, name: str) -> CommandInfo | None:
        """Return the command called ``name`` if the package has one."""
        for command in self.commands:
            if command.name == name:
                return command
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dir": self.dir,
            "package": self.package,
            "doc": self.doc,
            "commands": [command.to_dict() for command in self.commands],
            "files": [info.to_dict() for info in self.files],
            "uses_explicit_registration": self.uses_explicit_registration,
        }
