"""Identifier normalisation helpers."""

from __future__ import annotations

WRAPPER_SUFFIX = "Command"


def camel_to_kebab(identifier: str) -> str:
    """Convert a CamelCase or snake_case identifier to kebab-case.

    A hyphen goes before an uppercase letter when the previous character is
    lowercase (``fooBar`` -> ``foo-bar``) or when the next character is
    lowercase, so an acronym's last letter starts the following word
    (``APIServer`` -> ``api-server``). Underscores become hyphens and never
    produce doubled or trailing separators (``import_`` -> ``import``).
    """
    result: list[str] = []
    chars = list(identifier)
    for index, char in enumerate(chars):
        if char == "_":
            if result and result[-1] != "-":
                result.append("-")
            continue
        if index > 0 and char.isupper() and result and result[-1] != "-":
            prev = chars[index - 1]
            following = chars[index + 1] if index + 1 < len(chars) else ""
            if prev.islower() or following.islower():
                result.append("-")
        result.append(char.lower())
    return "".join(result).strip("-")


def to_pascal(identifier: str) -> str:
    """Return ``identifier`` in PascalCase (``run_tests`` -> ``RunTests``)."""
    parts = [part for part in identifier.split("_") if part]
    return "".join(part[:1].upper() + part[1:] for part in parts)


def wrapper_class_name(function_name: str) -> str:
    """Name of the generated command class for ``function_name``."""
    return to_pascal(function_name) + WRAPPER_SUFFIX


def wrapped_base_name(class_name: str) -> str | None:
    """Return the function base a ``XCommand`` class stands for, if any."""
    if class_name.endswith(WRAPPER_SUFFIX):
        base = class_name[: -len(WRAPPER_SUFFIX)]
        if base:
            return base
    return None


def is_exported(name: str) -> bool:
    return bool(name) and not name.startswith("_")
