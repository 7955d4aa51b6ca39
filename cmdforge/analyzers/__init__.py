"""Static-analysis helpers shared by discovery and wrapper generation."""

from __future__ import annotations

from .constraints import ConstraintSyntaxError, has_build_tag, parse_constraint
from .naming import camel_to_kebab, to_pascal, wrapper_class_name
from .signatures import ContextImports, validate_signature
from .tags import StructTag, TagOptions, parse_tag_options

__all__ = [
    "ConstraintSyntaxError",
    "ContextImports",
    "StructTag",
    "TagOptions",
    "camel_to_kebab",
    "has_build_tag",
    "parse_constraint",
    "parse_tag_options",
    "to_pascal",
    "validate_signature",
    "wrapper_class_name",
]
