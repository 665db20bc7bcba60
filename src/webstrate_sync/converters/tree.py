"""JsonML tree helpers and the tree normalizer.

A tree node is either a text leaf (``str``) or an element
``[tag, attributes, *children]``.  Producers may omit the attributes slot
when an element has none; ``normalize()`` restores it so that "no
attributes" and "empty attributes" never diff as different shapes.
"""

from typing import Any

# Tag of the document root and of its conventional single child.
ROOT_TAG = "html"
BODY_TAG = "body"


def skeleton_tree() -> list:
    """Return a fresh minimal document: ``["html", {}, ["body", {}]]``."""
    return [ROOT_TAG, {}, [BODY_TAG, {}]]


def is_element(node: Any) -> bool:
    """Return True if *node* looks like a JsonML element."""
    return isinstance(node, list) and bool(node) and isinstance(node[0], str)


def normalize(node: Any) -> Any:
    """Canonicalize a JsonML node.

    Rules:
        * ``None`` or an empty list normalizes to ``[]``.
        * A string is returned unchanged.
        * For ``[tag, second, *rest]``: when *second* is a list or a string
          it is the first child and an empty attributes mapping is
          synthesized; when it is missing or ``None`` attributes become
          ``{}``; otherwise it is used as the attributes mapping.
        * Every child is normalized recursively and the tag is lowercased.

    The input is never mutated; a new structure is returned.

    Args:
        node: Tree node as produced by a parser or the remote document.

    Returns:
        The normalized node.
    """
    if node is None:
        return []
    if isinstance(node, str):
        return node
    if not node:
        return []

    tag, *rest = node
    if rest and (isinstance(rest[0], (list, str)) or rest[0] is None):
        attributes = {}
        if rest[0] is None:
            rest = rest[1:]
    elif rest:
        attributes, rest = dict(rest[0]), rest[1:]
    else:
        attributes = {}

    children = [normalize(child) for child in rest]
    return [str(tag).lower(), attributes, *children]
