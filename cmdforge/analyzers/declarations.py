"""Declaration-level facts shared by the scanner and the wrapper generator."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Iterator, List, Optional, Set

from ..models import SubcommandLink
from .naming import camel_to_kebab
from .signatures import FunctionNode, iter_top_level_imports
from .tags import annotation_type_name, field_tag, parse_string_annotation, parse_tag_options

PACKAGE_NAME_ATTR = "__package_name__"
RUN_METHOD = "run"
DESCRIPTION_METHOD = "description"
RUNTIME_PACKAGE = "cmdforge"
REGISTER_FUNCTION = "register"


def declared_package_name(tree: ast.Module) -> Optional[str]:
    """Return the string assigned to ``__package_name__`` at module level."""
    for node in tree.body:
        target: ast.AST | None = None
        value: ast.AST | None = None
        if isinstance(node, ast.Assign) and len(node.targets) == 1:
            target, value = node.targets[0], node.value
        elif isinstance(node, ast.AnnAssign):
            target, value = node.target, node.value
        if (
            isinstance(target, ast.Name)
            and target.id == PACKAGE_NAME_ATTR
            and isinstance(value, ast.Constant)
            and isinstance(value.value, str)
        ):
            return value.value.strip()
    return None


def subcommand_links(node: ast.ClassDef) -> List[SubcommandLink]:
    """Collect the subcommand fields declared in a class body."""
    links: List[SubcommandLink] = []
    for statement in node.body:
        if not isinstance(statement, ast.AnnAssign) or not isinstance(statement.target, ast.Name):
            continue
        tag = field_tag(statement.annotation, statement.value)
        if tag is None:
            continue
        options = parse_tag_options(tag)
        if not options.subcommand:
            continue
        field_name = statement.target.id
        links.append(
            SubcommandLink(
                parent=node.name,
                field=field_name,
                name=options.name or camel_to_kebab(field_name),
                type_name=annotation_type_name(statement.annotation),
            )
        )
    return links


def class_methods(node: ast.ClassDef) -> Iterator[FunctionNode]:
    for statement in node.body:
        if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)):
            yield statement


def _is_str_annotation(annotation: ast.AST | None) -> bool:
    if annotation is None:
        return False
    node = parse_string_annotation(annotation)
    return isinstance(node, ast.Name) and node.id == "str"


def description_method_value(method: FunctionNode) -> Optional[str]:
    """Return the literal a ``description(self) -> str`` method returns.

    Only methods whose body, after an optional docstring, is a single
    ``return "..."`` qualify.
    """
    if method.name != DESCRIPTION_METHOD:
        return None
    args = method.args
    if args.vararg or args.kwarg or args.kwonlyargs:
        return None
    if len(args.posonlyargs) + len(args.args) != 1:
        return None
    if not _is_str_annotation(method.returns):
        return None
    body = method.body[1:] if ast.get_docstring(method, clean=False) is not None else method.body
    if len(body) != 1 or not isinstance(body[0], ast.Return):
        return None
    value = body[0].value
    if isinstance(value, ast.Constant) and isinstance(value.value, str):
        return value.value.strip()
    return None


def is_main_guard(node: ast.stmt) -> bool:
    """Return True for ``if __name__ == "__main__":``."""
    if not isinstance(node, ast.If) or not isinstance(node.test, ast.Compare):
        return False
    test = node.test
    if len(test.ops) != 1 or not isinstance(test.ops[0], ast.Eq):
        return False
    sides = [test.left, test.comparators[0]]
    names = [side for side in sides if isinstance(side, ast.Name) and side.id == "__name__"]
    literals = [
        side for side in sides if isinstance(side, ast.Constant) and side.value == "__main__"
    ]
    return len(names) == 1 and len(literals) == 1


def type_alias_names(node: ast.stmt) -> List[str]:
    """Names declared as type aliases by a module-level statement."""
    type_alias = getattr(ast, "TypeAlias", None)
    if type_alias is not None and isinstance(node, type_alias):
        return [node.name.id]
    if (
        isinstance(node, ast.AnnAssign)
        and isinstance(node.target, ast.Name)
        and node.value is not None
        and annotation_tail(node.annotation) == "TypeAlias"
    ):
        return [node.target.id]
    return []


def annotation_tail(annotation: ast.AST) -> str:
    node = parse_string_annotation(annotation)
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return ""


@dataclass(frozen=True)
class _RegistrationNames:
    packages: frozenset
    functions: frozenset


def _registration_names(tree: ast.Module) -> _RegistrationNames:
    packages: Set[str] = set()
    functions: Set[str] = set()
    for node in iter_top_level_imports(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.name == RUNTIME_PACKAGE:
                    packages.add(alias.asname or alias.name)
                elif alias.name.startswith(RUNTIME_PACKAGE + ".") and not alias.asname:
                    packages.add(RUNTIME_PACKAGE)
        elif node.level == 0 and node.module == RUNTIME_PACKAGE:
            for alias in node.names:
                if alias.name == REGISTER_FUNCTION:
                    functions.add(alias.asname or alias.name)
                elif alias.name == "*":
                    functions.add(REGISTER_FUNCTION)
    return _RegistrationNames(packages=frozenset(packages), functions=frozenset(functions))


def _is_register_reference(node: ast.AST, names: _RegistrationNames) -> bool:
    if isinstance(node, ast.Name):
        return node.id in names.functions
    if isinstance(node, ast.Attribute) and node.attr == REGISTER_FUNCTION:
        return isinstance(node.value, ast.Name) and node.value.id in names.packages
    return False


def uses_explicit_registration(tree: ast.Module) -> bool:
    """Return True when module-level code calls ``cmdforge.register``.

    Calls inside function or class bodies do not count; decorators on
    top-level definitions do.
    """
    names = _registration_names(tree)
    if not names.packages and not names.functions:
        return False
    for statement in tree.body:
        if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            for decorator in statement.decorator_list:
                target = decorator.func if isinstance(decorator, ast.Call) else decorator
                if _is_register_reference(target, names):
                    return True
            continue
        for node in ast.walk(statement):
            if isinstance(node, ast.Call) and _is_register_reference(node.func, names):
                return True
    return False
