"""Generates command classes that wrap plain task functions."""

from __future__ import annotations

import ast
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import black
from jinja2 import Environment, FileSystemLoader

from .analyzers.constraints import directive_line, has_build_tag
from .analyzers.declarations import declared_package_name, subcommand_links, type_alias_names
from .analyzers.naming import camel_to_kebab, is_exported, wrapper_class_name
from .analyzers.signatures import (
    ContextImports,
    FunctionNode,
    docstring_value,
    function_returns_error,
    function_uses_context,
    return_annotation_source,
    validate_signature,
)
from .config import DEFAULT_BUILD_TAG, GenerateOptions
from .errors import (
    GenerationError,
    MultiplePackageNamesError,
    NoSourceFilesError,
    PackageNameNotFoundError,
    WrapperExistsError,
)
from .filesystem import DEFAULT_FILE_MODE, FileSystem
from .logging import get_logger
from .scanner import default_package_name, parse_source
from .walker import is_generated_file, is_source_file

_TEMPLATES_DIR = Path(__file__).parent / "templates"
_TEMPLATE_NAME = "wrappers.py.j2"

logger = get_logger("generator")


@dataclass(frozen=True)
class FunctionDoc:
    """What the generator needs to know about one wrapped function."""

    name: str
    module: str
    description: str = ""
    uses_context: bool = False
    returns_error: bool = False
    is_async: bool = False
    returns: str = "None"


@dataclass
class _ScanState:
    package_name: str = ""
    parsed_files: int = 0
    functions: Dict[str, FunctionDoc] = field(default_factory=dict)
    type_names: Set[str] = field(default_factory=set)
    subcommand_names: Set[str] = field(default_factory=set)


def generated_filename(tag: str, package: str) -> str:
    return f"generated_{tag}_{package}.py"


def _create_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["pyrepr"] = repr
    return env


class WrapperGenerator:
    """Scans one directory and writes wrapper classes for its task functions."""

    def __init__(self, filesystem: FileSystem, options: GenerateOptions | None = None) -> None:
        self._fs = filesystem
        self._options = options or GenerateOptions()
        self._dir = self._options.effective_dir
        self._state = _ScanState()

    # ------------------------------------------------------------------
    # Scanning

    def scan(self) -> None:
        entries = sorted(self._fs.read_dir(self._dir), key=lambda entry: entry.name)
        for entry in entries:
            if entry.is_dir or not is_source_file(entry.name):
                continue
            full_path = os.path.join(self._dir, entry.name)
            content = self._fs.read_file(full_path)
            if self._skips_untagged(entry.name, content):
                continue
            self._scan_file(full_path, content)

    def _skips_untagged(self, name: str, content: bytes) -> bool:
        # Generated wrappers are scanned regardless of the tag filter.
        if not self._options.only_tagged or is_generated_file(name, self._output_tag()):
            return False
        return not has_build_tag(content, self._options.filter_tag)

    def _scan_file(self, path: str, content: bytes) -> None:
        tree = parse_source(path, content)
        self._state.parsed_files += 1
        self._record_package(declared_package_name(tree))

        imports = ContextImports.from_module(tree)
        module = os.path.splitext(os.path.basename(path))[0]
        for node in tree.body:
            if isinstance(node, ast.ClassDef):
                self._state.type_names.add(node.name)
                for link in subcommand_links(node):
                    self._state.subcommand_names.add(link.name)
            elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                self._scan_function(node, path, module, imports)
            else:
                self._state.type_names.update(type_alias_names(node))

    def _record_package(self, name: Optional[str]) -> None:
        if not name:
            return
        if not self._state.package_name:
            self._state.package_name = name
        elif self._state.package_name != name:
            raise MultiplePackageNamesError(self._dir, [self._state.package_name, name])

    def _scan_function(
        self, node: FunctionNode, path: str, module: str, imports: ContextImports
    ) -> None:
        if not is_exported(node.name):
            return
        validate_signature(node, imports, path)
        self._state.functions[node.name] = FunctionDoc(
            name=node.name,
            module=module,
            description=docstring_value(node),
            uses_context=function_uses_context(node, imports),
            returns_error=function_returns_error(node),
            is_async=isinstance(node, ast.AsyncFunctionDef),
            returns=return_annotation_source(node),
        )

    # ------------------------------------------------------------------
    # Validation

    def package_name(self) -> str:
        if self._state.parsed_files == 0:
            raise NoSourceFilesError(self._dir)
        name = self._state.package_name or default_package_name(self._dir)
        if not name:
            raise PackageNameNotFoundError(self._dir)
        return name

    def wrappable_functions(self) -> List[FunctionDoc]:
        """Eligible functions sorted by name, minus subcommand-claimed ones."""
        return [
            self._state.functions[name]
            for name in sorted(self._state.functions)
            if camel_to_kebab(name) not in self._state.subcommand_names
        ]

    def check_conflicts(self, functions: List[FunctionDoc]) -> None:
        for fn in functions:
            wrapper = wrapper_class_name(fn.name)
            if wrapper in self._state.type_names:
                raise WrapperExistsError(wrapper)

    # ------------------------------------------------------------------
    # Rendering

    def render(self, functions: List[FunctionDoc]) -> str:
        """Return black-formatted wrapper source for ``functions``."""
        modules: Dict[str, List[str]] = {}
        for fn in functions:
            if not fn.module.isidentifier():
                raise GenerationError(f"module {fn.module!r} in {self._dir} cannot be imported")
            modules.setdefault(fn.module, []).append(fn.name)

        template = _create_env().get_template(_TEMPLATE_NAME)
        source = template.render(
            build_tag=self._options.directive_tag,
            directive=directive_line(self._options.directive_tag),
            needs_context=any(fn.uses_context for fn in functions),
            imports=sorted((module, sorted(names)) for module, names in modules.items()),
            functions=[_view(fn) for fn in functions],
        )
        try:
            return black.format_str(source, mode=black.Mode())
        except black.InvalidInput as exc:
            raise GenerationError(f"formatting wrappers for {self._dir}: {exc}") from exc

    def _output_tag(self) -> str:
        return self._options.build_tag or DEFAULT_BUILD_TAG

    def output_path(self, package: str) -> str:
        return os.path.join(self._dir, generated_filename(self._output_tag(), package))

    def generate(self) -> str:
        """Scan, validate, render and write; return the written path or ""."""
        self.scan()
        package = self.package_name()
        functions = self.wrappable_functions()
        if not functions:
            logger.debug("Nothing to wrap in %s", self._dir)
            return ""
        self.check_conflicts(functions)

        formatted = self.render(functions)
        path = self.output_path(package)
        self._fs.write_file(path, formatted.encode("utf-8"), DEFAULT_FILE_MODE)
        logger.info("Generated %d command wrappers at %s", len(functions), path)
        return path


def _view(fn: FunctionDoc) -> Dict[str, object]:
    call = f"{fn.name}({'ctx' if fn.uses_context else ''})"
    if fn.is_async:
        call = f"await {call}"
    return {
        "wrapper": wrapper_class_name(fn.name),
        "name": fn.name,
        "def_keyword": "async def" if fn.is_async else "def",
        "params": ", ctx: Context" if fn.uses_context else "",
        "returns": fn.returns,
        "body": f"return {call}" if fn.returns_error else call,
        "description": fn.description,
    }


def generate_function_wrappers(
    filesystem: FileSystem, options: GenerateOptions | None = None
) -> str:
    """Write ``generated_<tag>_<package>.py`` for the directory in ``options``.

    Returns the written path, or an empty string when no function needs a
    wrapper.
    """
    return WrapperGenerator(filesystem, options).generate()


def collect_wrapper_targets(
    filesystem: FileSystem, options: GenerateOptions | None = None
) -> Tuple[str, List[FunctionDoc]]:
    """Dry-run helper: the package name and the functions that would be wrapped."""
    generator = WrapperGenerator(filesystem, options)
    generator.scan()
    package = generator.package_name()
    functions = generator.wrappable_functions()
    generator.check_conflicts(functions)
    return package, functions
