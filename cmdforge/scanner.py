"""Per-file declaration scanning into a directory-wide accumulator."""

from __future__ import annotations

import ast
import os
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .analyzers.declarations import (
    RUN_METHOD,
    class_methods,
    declared_package_name,
    description_method_value,
    is_main_guard,
    subcommand_links,
    uses_explicit_registration,
)
from .analyzers.naming import is_exported
from .analyzers.signatures import (
    ContextImports,
    FunctionNode,
    docstring_value,
    function_returns_error,
    function_uses_context,
    validate_signature,
)
from .errors import MultiplePackageNamesError, SourceParseError
from .logging import get_logger
from .models import CommandCandidate, CommandKind, SubcommandLink, TaggedFile

logger = get_logger("scanner")


def parse_source(path: str, content: bytes | str) -> ast.Module:
    """Parse ``content`` or raise SourceParseError naming ``path``."""
    try:
        return ast.parse(content, filename=path)
    except SyntaxError as exc:
        raise SourceParseError(path, exc.msg or "invalid syntax", exc.lineno) from exc
    except ValueError as exc:
        raise SourceParseError(path, str(exc)) from exc


def default_package_name(directory: str) -> str:
    """Directory basename when it is a usable identifier, else empty."""
    name = os.path.basename(os.path.normpath(os.path.abspath(directory)))
    return name if name.isidentifier() else ""


@dataclass
class _TypeFacts:
    file: str = ""
    has_run: bool = False
    has_subcommands: bool = False
    description: str = ""


@dataclass
class ScanResult:
    """Everything the assembler needs about one directory."""

    dir: str
    package_name: str
    package_doc: str
    types: Tuple[CommandCandidate, ...]
    functions: Tuple[CommandCandidate, ...]
    links: Tuple[SubcommandLink, ...]
    main_files: Tuple[str, ...]
    uses_explicit_registration: bool


@dataclass
class PackageAccumulator:
    """Caller-owned state folded across every tagged file of one directory."""

    dir: str
    package_name: str = ""
    package_doc: str = ""
    types: Dict[str, _TypeFacts] = field(default_factory=dict)
    functions: Dict[str, CommandCandidate] = field(default_factory=dict)
    links: List[SubcommandLink] = field(default_factory=list)
    main_files: List[str] = field(default_factory=list)
    uses_explicit_registration: bool = False

    def record_package(self, name: str | None, doc: str) -> None:
        if name:
            if not self.package_name:
                self.package_name = name
            elif self.package_name != name:
                raise MultiplePackageNamesError(self.dir, [self.package_name, name])
        if not self.package_doc and doc:
            self.package_doc = doc

    def type_facts(self, name: str) -> _TypeFacts:
        return self.types.setdefault(name, _TypeFacts())

    def finalize(self) -> ScanResult:
        """Copy out immutable candidates; the accumulator can be discarded."""
        types = tuple(
            CommandCandidate(
                name=name,
                kind=CommandKind.TYPE,
                file=facts.file,
                description=facts.description,
                has_run=facts.has_run,
                has_subcommands=facts.has_subcommands,
            )
            for name, facts in sorted(self.types.items())
        )
        functions = tuple(candidate for _, candidate in sorted(self.functions.items()))
        return ScanResult(
            dir=self.dir,
            package_name=self.package_name or default_package_name(self.dir),
            package_doc=self.package_doc,
            types=types,
            functions=functions,
            links=tuple(self.links),
            main_files=tuple(self.main_files),
            uses_explicit_registration=self.uses_explicit_registration,
        )


def scan_file(file: TaggedFile, acc: PackageAccumulator) -> None:
    """Fold the declarations of one tagged file into ``acc``."""
    tree = parse_source(file.path, file.content)
    acc.record_package(declared_package_name(tree), docstring_value(tree))

    imports = ContextImports.from_module(tree)
    if uses_explicit_registration(tree):
        acc.uses_explicit_registration = True

    for node in tree.body:
        if isinstance(node, ast.ClassDef):
            _scan_class(node, file.path, acc)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            _scan_function(node, file.path, imports, acc)
        elif is_main_guard(node):
            acc.main_files.append(file.path)


def _scan_class(node: ast.ClassDef, path: str, acc: PackageAccumulator) -> None:
    if not is_exported(node.name):
        return

    facts = acc.type_facts(node.name)
    facts.file = path

    links = subcommand_links(node)
    if links:
        facts.has_subcommands = True
        acc.links.extend(links)

    for method in class_methods(node):
        if method.name == RUN_METHOD:
            facts.has_run = True
        description = description_method_value(method)
        if description is not None:
            facts.description = description


def _scan_function(
    node: FunctionNode, path: str, imports: ContextImports, acc: PackageAccumulator
) -> None:
    if not is_exported(node.name):
        return

    validate_signature(node, imports, path)
    acc.functions[node.name] = CommandCandidate(
        name=node.name,
        kind=CommandKind.FUNCTION,
        file=path,
        description=docstring_value(node),
        uses_context=function_uses_context(node, imports),
        returns_error=function_returns_error(node),
        is_async=isinstance(node, ast.AsyncFunctionDef),
    )


def scan_directory(directory: str, files: List[TaggedFile] | Tuple[TaggedFile, ...]) -> ScanResult:
    acc = PackageAccumulator(dir=directory)
    for file in files:
        logger.debug("Scanning %s", file.path)
        scan_file(file, acc)
    return acc.finalize()
