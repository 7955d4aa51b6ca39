"""Readers for command metadata attached to class fields."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Iterable, Optional

TAG_KEY = "cmdforge"

_ANNOTATED_NAMES = {"Annotated"}
_OPTIONAL_NAMES = {"Optional"}
_FIELD_FACTORIES = {"field"}


class StructTag(str):
    """A ``key:"value" key2:"value2"`` metadata string."""

    def get(self, key: str) -> str:
        value = str(self)
        while value:
            colon = value.find(":")
            if colon < 0:
                break
            name = value[:colon].strip()
            value = value[colon + 1 :].strip()
            if not value.startswith('"'):
                break
            value = value[1:]
            end = value.find('"')
            if end < 0:
                break
            quoted = value[:end]
            value = value[end + 1 :].strip()
            if name == key:
                return quoted
        return ""


@dataclass(frozen=True)
class TagOptions:
    """Parsed comma-separated options of a cmdforge field tag."""

    subcommand: bool = False
    name: str = ""


def parse_tag_options(value: str) -> TagOptions:
    """Parse ``subcommand,name=x`` style option lists.

    ``name=`` and ``subcommand=`` both override the command name; the last
    one listed wins.
    """
    subcommand = False
    name = ""
    for raw_part in value.split(","):
        part = raw_part.strip()
        if part == "subcommand":
            subcommand = True
        elif part.startswith("subcommand="):
            subcommand = True
            name = part[len("subcommand=") :].strip()
        elif part.startswith("name="):
            name = part[len("name=") :].strip()
    return TagOptions(subcommand=subcommand, name=name)


def dotted_name(node: ast.AST) -> str:
    """Return ``a.b.c`` for a Name/Attribute chain, else an empty string."""
    parts: list[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return ""
    parts.append(node.id)
    return ".".join(reversed(parts))


def _tail(node: ast.AST) -> str:
    name = dotted_name(node)
    return name.rsplit(".", 1)[-1] if name else ""


def parse_string_annotation(node: ast.AST) -> ast.AST:
    """Resolve a forward-reference string annotation into its expression."""
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        try:
            return ast.parse(node.value.strip(), mode="eval").body
        except SyntaxError:
            return node
    return node


def _subscript_items(node: ast.Subscript) -> list[ast.expr]:
    inner = node.slice
    if isinstance(inner, ast.Tuple):
        return list(inner.elts)
    return [inner]


def unwrap_annotated(annotation: ast.AST) -> tuple[ast.AST, list[ast.expr]]:
    """Split ``Annotated[T, *meta]`` into ``T`` and its metadata."""
    annotation = parse_string_annotation(annotation)
    if isinstance(annotation, ast.Subscript) and _tail(annotation.value) in _ANNOTATED_NAMES:
        items = _subscript_items(annotation)
        if items:
            return items[0], items[1:]
    return annotation, []


def annotation_type_name(annotation: ast.AST) -> str:
    """Return the class a field annotation refers to.

    Unwraps ``Annotated``, ``Optional[T]``, ``T | None`` and string forward
    references; dotted names resolve to their last component.
    """
    node, _ = unwrap_annotated(annotation)
    node = parse_string_annotation(node)
    if isinstance(node, (ast.Name, ast.Attribute)):
        return _tail(node)
    if isinstance(node, ast.Subscript) and _tail(node.value) in _OPTIONAL_NAMES:
        return annotation_type_name(node.slice)
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        for side in (node.left, node.right):
            if isinstance(side, ast.Constant) and side.value is None:
                continue
            return annotation_type_name(side)
    return ""


def _metadata_tag(metadata: Iterable[ast.expr]) -> Optional[str]:
    for item in metadata:
        if isinstance(item, ast.Constant) and isinstance(item.value, str):
            tag = StructTag(item.value).get(TAG_KEY)
            if tag:
                return tag
    return None


def _field_call_tag(value: ast.AST | None) -> Optional[str]:
    if not isinstance(value, ast.Call) or _tail(value.func) not in _FIELD_FACTORIES:
        return None
    for keyword in value.keywords:
        if keyword.arg != "metadata" or not isinstance(keyword.value, ast.Dict):
            continue
        for key, item in zip(keyword.value.keys, keyword.value.values):
            if (
                isinstance(key, ast.Constant)
                and key.value == TAG_KEY
                and isinstance(item, ast.Constant)
                and isinstance(item.value, str)
            ):
                return item.value
    return None


def field_tag(annotation: ast.AST, value: ast.AST | None = None) -> Optional[str]:
    """Return the raw cmdforge option string attached to a class field."""
    _, metadata = unwrap_annotated(annotation)
    tag = _metadata_tag(metadata)
    if tag is not None:
        return tag
    return _field_call_tag(value)
