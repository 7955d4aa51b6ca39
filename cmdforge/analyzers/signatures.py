"""Context-import resolution and command signature rules."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, List, Set, Union

from ..errors import SignatureError
from .tags import dotted_name, parse_string_annotation

CONTEXT_MODULE = "cmdforge.context"
CONTEXT_TYPE = "Context"

NILADIC_OR_CONTEXT = "must be niladic or accept context"
MUST_ACCEPT_CONTEXT = f"must accept {CONTEXT_MODULE}.{CONTEXT_TYPE}"
MUST_RETURN_ERROR = "must return only error"

_ERROR_TYPES = {"Exception", "BaseException"}

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


def _is_type_checking(test: ast.expr) -> bool:
    return dotted_name(test).rsplit(".", 1)[-1] == "TYPE_CHECKING"


def iter_top_level_imports(tree: ast.Module) -> Iterator[Union[ast.Import, ast.ImportFrom]]:
    """Yield module-level imports, including those under ``if TYPE_CHECKING:``."""
    for node in tree.body:
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            yield node
        elif isinstance(node, ast.If) and _is_type_checking(node.test):
            for child in node.body:
                if isinstance(child, (ast.Import, ast.ImportFrom)):
                    yield child


@dataclass(frozen=True)
class ContextImports:
    """How one module can spell the context parameter type.

    ``module_aliases`` hold dotted prefixes bound to the context module
    (``cmdforge.context``, ``ctx``); ``type_aliases`` hold bare names bound to
    the class itself (``Context``, ``Ctx``, or ``Context`` via ``import *``).
    """

    module_aliases: FrozenSet[str] = field(default_factory=frozenset)
    type_aliases: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_module(cls, tree: ast.Module) -> "ContextImports":
        modules: Set[str] = set()
        types: Set[str] = set()
        for node in iter_top_level_imports(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    _bind_import(alias, modules)
            elif node.level == 0 and node.module:
                for alias in node.names:
                    _bind_from_import(node.module, alias, modules, types)
        return cls(module_aliases=frozenset(modules), type_aliases=frozenset(types))

    @property
    def imported(self) -> bool:
        return bool(self.module_aliases or self.type_aliases)

    def is_context(self, annotation: ast.AST | None) -> bool:
        """Return True when ``annotation`` names the context type."""
        if annotation is None:
            return False
        node = parse_string_annotation(annotation)
        if isinstance(node, ast.Name):
            return node.id in self.type_aliases
        if isinstance(node, ast.Attribute) and node.attr == CONTEXT_TYPE:
            return dotted_name(node.value) in self.module_aliases
        return False


def _bind_import(alias: ast.alias, modules: Set[str]) -> None:
    name = alias.name
    if alias.asname:
        if name == CONTEXT_MODULE:
            modules.add(alias.asname)
        elif CONTEXT_MODULE.startswith(name + "."):
            modules.add(alias.asname + CONTEXT_MODULE[len(name) :])
        return
    # ``import a.b`` binds ``a`` and makes the whole dotted path reachable.
    if (
        name == CONTEXT_MODULE
        or CONTEXT_MODULE.startswith(name + ".")
        or name.startswith(CONTEXT_MODULE + ".")
    ):
        modules.add(CONTEXT_MODULE)


def _bind_from_import(
    module: str, alias: ast.alias, modules: Set[str], types: Set[str]
) -> None:
    bound = alias.asname or alias.name
    if module == CONTEXT_MODULE:
        if alias.name == "*":
            types.add(CONTEXT_TYPE)
        elif alias.name == CONTEXT_TYPE:
            types.add(bound)
        return
    full = f"{module}.{alias.name}"
    if full == CONTEXT_MODULE:
        modules.add(bound)
    elif CONTEXT_MODULE.startswith(full + "."):
        modules.add(bound + CONTEXT_MODULE[len(full) :])


def _parameters(args: ast.arguments) -> tuple[List[ast.arg], List[ast.arg]]:
    regular = [*args.posonlyargs, *args.args, *args.kwonlyargs]
    variadic = [arg for arg in (args.vararg, args.kwarg) if arg is not None]
    return regular, variadic


def function_uses_context(fn: FunctionNode, imports: ContextImports) -> bool:
    """Return True when the only parameter of ``fn`` is a context parameter."""
    regular, variadic = _parameters(fn.args)
    if variadic or len(regular) != 1:
        return False
    return imports.is_context(regular[0].annotation)


def returns_nothing(annotation: ast.AST | None) -> bool:
    if annotation is None:
        return True
    node = parse_string_annotation(annotation)
    return isinstance(node, ast.Constant) and node.value is None


def is_error_annotation(annotation: ast.AST | None) -> bool:
    """Return True for ``Exception``-like results, optionally ``| None``."""
    if annotation is None:
        return False
    node = parse_string_annotation(annotation)
    if isinstance(node, (ast.Name, ast.Attribute)):
        return dotted_name(node).rsplit(".", 1)[-1] in _ERROR_TYPES
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        sides = [node.left, node.right]
        errors = [side for side in sides if not returns_nothing(side)]
        return len(errors) == 1 and len(sides) == 2 and is_error_annotation(errors[0])
    if isinstance(node, ast.Subscript):
        wrapper = dotted_name(node.value).rsplit(".", 1)[-1]
        if wrapper == "Optional":
            return is_error_annotation(node.slice)
        if wrapper == "Union" and isinstance(node.slice, ast.Tuple):
            errors = [item for item in node.slice.elts if not returns_nothing(item)]
            return len(errors) == 1 and is_error_annotation(errors[0])
    return False


def function_returns_error(fn: FunctionNode) -> bool:
    return fn.returns is not None and is_error_annotation(fn.returns)


def return_annotation_source(fn: FunctionNode) -> str:
    """Source text of the declared result, ``None`` when nothing is returned."""
    if function_returns_error(fn):
        return ast.unparse(parse_string_annotation(fn.returns))
    return "None"


def validate_signature(fn: FunctionNode, imports: ContextImports, path: str = "") -> None:
    """Raise SignatureError unless ``fn`` can be invoked as a command."""
    regular, variadic = _parameters(fn.args)
    count = len(regular) + len(variadic)
    if count > 1:
        raise SignatureError(path, fn.name, NILADIC_OR_CONTEXT)
    if count == 1 and not function_uses_context(fn, imports):
        raise SignatureError(path, fn.name, MUST_ACCEPT_CONTEXT)
    if returns_nothing(fn.returns) or is_error_annotation(fn.returns):
        return
    raise SignatureError(path, fn.name, MUST_RETURN_ERROR)


def docstring_value(node: Union[FunctionNode, ast.ClassDef, ast.Module]) -> str:
    return (ast.get_docstring(node) or "").strip()
