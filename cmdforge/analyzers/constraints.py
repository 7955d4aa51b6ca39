"""Build-constraint directive parsing and evaluation."""

from __future__ import annotations

import ast
from typing import Callable

DIRECTIVE = "cmdforge:build"

Predicate = Callable[[Callable[[str], bool]], bool]


class ConstraintSyntaxError(ValueError):
    """Raised when a directive expression is not a boolean tag expression."""


def parse_constraint(text: str) -> Predicate:
    """Compile ``text`` into a predicate over tag membership.

    The grammar is Python's own boolean syntax restricted to identifiers,
    ``and``, ``or``, ``not`` and parentheses.
    """
    try:
        tree = ast.parse(text.strip(), mode="eval")
    except SyntaxError as exc:
        raise ConstraintSyntaxError(f"invalid build constraint {text!r}: {exc.msg}") from exc
    return _compile(tree.body, text)


def _compile(node: ast.expr, text: str) -> Predicate:
    if isinstance(node, ast.Name):
        name = node.id
        return lambda has_tag: has_tag(name)
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.Not):
        operand = _compile(node.operand, text)
        return lambda has_tag: not operand(has_tag)
    if isinstance(node, ast.BoolOp):
        values = [_compile(value, text) for value in node.values]
        if isinstance(node.op, ast.And):
            return lambda has_tag: all(value(has_tag) for value in values)
        return lambda has_tag: any(value(has_tag) for value in values)
    raise ConstraintSyntaxError(
        f"invalid build constraint {text!r}: unsupported {type(node).__name__}"
    )


def directive_expression(line: str) -> str | None:
    """Return the expression of a ``# cmdforge:build`` line, else None."""
    body = line.lstrip("#").strip()
    if not body.startswith(DIRECTIVE):
        return None
    rest = body[len(DIRECTIVE) :]
    if rest and not rest[0].isspace():
        return None
    return rest.strip()


def has_build_tag(content: bytes | str, tag: str) -> bool:
    """Return True when the leading directive of ``content`` selects ``tag``."""
    text = content.decode("utf-8", errors="replace") if isinstance(content, bytes) else content
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if not line.startswith("#"):
            return False

        expression = directive_expression(line)
        if expression is None:
            continue
        try:
            predicate = parse_constraint(expression)
        except ConstraintSyntaxError:
            return expression == tag
        return predicate(lambda name: name == tag)

    return False


def directive_line(tag: str) -> str:
    return f"# {DIRECTIVE} {tag}"
