"""Conversion between HTML markup and normalized JsonML trees."""

from .markup import (
    RAW_CONTENT_TAGS,
    VOID_TAGS,
    escape_attribute,
    escape_text,
    from_markup,
    to_markup,
)
from .tree import is_element, normalize, skeleton_tree

__all__ = [
    "RAW_CONTENT_TAGS",
    "VOID_TAGS",
    "escape_attribute",
    "escape_text",
    "from_markup",
    "is_element",
    "normalize",
    "skeleton_tree",
    "to_markup",
]
