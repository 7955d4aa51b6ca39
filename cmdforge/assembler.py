"""Turns scanned candidates into a validated PackageModel."""

from __future__ import annotations

import os
from collections import defaultdict
from typing import Dict, List, Sequence

from .analyzers.naming import camel_to_kebab, to_pascal, wrapped_base_name
from .errors import DuplicateCommandError, MainEntryPointError
from .logging import get_logger
from .models import CommandCandidate, CommandInfo, FileInfo, PackageModel
from .scanner import ScanResult

logger = get_logger("assembler")


def promote_types(result: ScanResult) -> List[CommandCandidate]:
    """Classes that are runnable or group subcommands, minus subcommand targets."""
    targets = {link.type_name for link in result.links if link.type_name}
    promoted = [
        candidate
        for candidate in result.types
        if candidate.name not in targets and (candidate.has_run or candidate.has_subcommands)
    ]
    return sorted(promoted, key=lambda candidate: candidate.name)


def promote_functions(result: ScanResult) -> List[CommandCandidate]:
    """Functions whose kebab name is not mounted as a subcommand."""
    claimed = {link.name for link in result.links}
    promoted = [
        candidate
        for candidate in result.functions
        if camel_to_kebab(candidate.name) not in claimed
    ]
    return sorted(promoted, key=lambda candidate: candidate.name)


def elide_wrapped_functions(
    types: Sequence[CommandCandidate], functions: Sequence[CommandCandidate]
) -> List[CommandCandidate]:
    """Drop functions that already have a ``<Name>Command`` class."""
    if not types or not functions:
        return list(functions)
    wrapped = {base for base in (wrapped_base_name(t.name) for t in types) if base}
    if not wrapped:
        return list(functions)
    kept = []
    for candidate in functions:
        if candidate.name in wrapped or to_pascal(candidate.name) in wrapped:
            logger.debug("Function %s is wrapped by %sCommand", candidate.name, to_pascal(candidate.name))
            continue
        kept.append(candidate)
    return kept


def check_duplicates(
    types: Sequence[CommandCandidate], functions: Sequence[CommandCandidate]
) -> None:
    """Raise DuplicateCommandError when two commands share a kebab name."""
    seen: Dict[str, str] = {}
    for candidate in [*types, *functions]:
        command = camel_to_kebab(candidate.name)
        other = seen.get(command)
        if other is not None and other != candidate.name:
            raise DuplicateCommandError(command, other, candidate.name)
        seen[command] = candidate.name


def _file_base(path: str) -> str:
    return os.path.splitext(os.path.basename(path))[0]


def build_files(commands: Sequence[CommandInfo]) -> List[FileInfo]:
    grouped: Dict[str, List[CommandInfo]] = defaultdict(list)
    for command in commands:
        grouped[command.file].append(command)
    return [
        FileInfo(
            path=path,
            base=_file_base(path),
            commands=tuple(sorted(grouped[path], key=lambda command: command.name)),
        )
        for path in sorted(grouped)
    ]


def assemble_package(result: ScanResult) -> PackageModel:
    """Apply promotion, elision and collision rules to one directory."""
    if result.main_files:
        raise MainEntryPointError(result.main_files)

    types = promote_types(result)
    functions = elide_wrapped_functions(types, promote_functions(result))
    check_duplicates(types, functions)

    commands = sorted(
        (CommandInfo.from_candidate(candidate) for candidate in [*types, *functions]),
        key=lambda command: command.name,
    )
    logger.debug(
        "Package %s: %d classes, %d functions promoted",
        result.package_name or result.dir,
        len(types),
        len(functions),
    )
    return PackageModel(
        dir=result.dir,
        package=result.package_name,
        doc=result.package_doc,
        commands=tuple(commands),
        files=tuple(build_files(commands)),
        uses_explicit_registration=result.uses_explicit_registration,
    )
