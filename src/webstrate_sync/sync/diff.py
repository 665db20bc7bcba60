"""Structural diff between two JsonML trees, producing a json0 op.

The walk is positional: both trees are traversed in parallel and a patch
is emitted wherever they diverge.  Children lists are trimmed of their
common prefix and suffix before pairing, so inserting or removing one
node in a long list costs one component instead of a rewrite of
everything after it.  Text leaves are edited in place with ``si``/``sd``.

``diff(old, new)`` applied to *old* with ``apply_op`` yields *new*.
"""

from typing import Any

from ..converters.tree import is_element
from ..core.json0 import utf16_length

# Index of the attributes mapping inside an element; children follow.
ATTRS_INDEX = 1
FIRST_CHILD_INDEX = 2


def diff(old: Any, new: Any) -> list[dict]:
    """Compute the json0 components that turn *old* into *new*.

    Args:
        old: Current tree (usually the live document snapshot).
        new: Desired tree (usually a freshly parsed, normalized tree).

    Returns:
        List of json0 components; empty when the trees are equal.
    """
    ops: list[dict] = []
    _diff_node(old, new, [], ops)
    return ops


def _diff_node(old: Any, new: Any, path: list, ops: list[dict]) -> None:
    if old == new:
        return

    if isinstance(old, str) and isinstance(new, str) and path:
        _diff_text(old, new, path, ops)
        return

    if _same_element(old, new):
        _diff_attributes(old[ATTRS_INDEX], new[ATTRS_INDEX], path, ops)
        _diff_children(
            old[FIRST_CHILD_INDEX:], new[FIRST_CHILD_INDEX:], path, ops
        )
        return

    _replace(old, new, path, ops)


def _same_element(old: Any, new: Any) -> bool:
    # Only elements with a real attributes slot are diffed in place; any
    # other shape is replaced wholesale.
    return (
        is_element(old)
        and is_element(new)
        and old[0] == new[0]
        and len(old) > ATTRS_INDEX
        and len(new) > ATTRS_INDEX
        and isinstance(old[ATTRS_INDEX], dict)
        and isinstance(new[ATTRS_INDEX], dict)
    )


def _replace(old: Any, new: Any, path: list, ops: list[dict]) -> None:
    if not path:
        ops.append({"p": [], "od": old, "oi": new})
    elif isinstance(path[-1], int):
        ops.append({"p": list(path), "ld": old, "li": new})
    else:
        ops.append({"p": list(path), "od": old, "oi": new})


def _diff_text(old: str, new: str, path: list, ops: list[dict]) -> None:
    prefix = _common_prefix(old, new)
    suffix = _common_suffix(old[prefix:], new[prefix:])
    deleted = old[prefix : len(old) - suffix]
    inserted = new[prefix : len(new) - suffix]

    # json0 string offsets count UTF-16 code units.
    offset = utf16_length(old[:prefix])
    if deleted:
        ops.append({"p": [*path, offset], "sd": deleted})
    if inserted:
        ops.append({"p": [*path, offset], "si": inserted})


def _diff_attributes(
    old: dict, new: dict, path: list, ops: list[dict]
) -> None:
    attrs_path = [*path, ATTRS_INDEX]
    for name in old:
        if name not in new:
            ops.append({"p": [*attrs_path, name], "od": old[name]})
    for name, value in new.items():
        if name not in old:
            ops.append({"p": [*attrs_path, name], "oi": value})
        elif old[name] != value:
            ops.append(
                {"p": [*attrs_path, name], "od": old[name], "oi": value}
            )


def _diff_children(
    old: list, new: list, path: list, ops: list[dict]
) -> None:
    prefix = _common_prefix(old, new)
    suffix = _common_suffix(old[prefix:], new[prefix:])
    old_mid = old[prefix : len(old) - suffix]
    new_mid = new[prefix : len(new) - suffix]
    start = FIRST_CHILD_INDEX + prefix

    paired = min(len(old_mid), len(new_mid))
    for offset in range(paired):
        _diff_node(
            old_mid[offset], new_mid[offset], [*path, start + offset], ops
        )

    # Surplus old children go from the highest index down so earlier
    # deletions never shift later ones.
    for offset in range(len(old_mid) - 1, paired - 1, -1):
        ops.append({"p": [*path, start + offset], "ld": old_mid[offset]})

    for offset in range(paired, len(new_mid)):
        ops.append({"p": [*path, start + offset], "li": new_mid[offset]})


def _common_prefix(a, b) -> int:
    size = min(len(a), len(b))
    i = 0
    while i < size and a[i] == b[i]:
        i += 1
    return i


def _common_suffix(a, b) -> int:
    size = min(len(a), len(b))
    i = 0
    while i < size and a[len(a) - 1 - i] == b[len(b) - 1 - i]:
        i += 1
    return i
