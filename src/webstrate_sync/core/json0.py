"""Application of json0 operations to a JSON snapshot.

Only application is implemented here: transform and compose belong to the
server.  ``apply_op`` never mutates the snapshot it is given; it works on
a deep copy and returns the result.

Supported components (``p`` is the path, the last element addresses the
slot being changed):

- ``oi`` / ``od``: object insert / delete (both together: replace).
  With ``p == []`` they replace the whole snapshot.
- ``li`` / ``ld``: list insert / delete (both together: replace).
- ``si`` / ``sd``: string insert / delete; the last path element is the
  offset in UTF-16 code units, as counted by JavaScript clients and the
  server (an astral character such as an emoji counts as two).
- ``na``: add a number.
- ``lm``: move a list item to a new index.
"""

import copy
from typing import Any

from ..errors import OpRejectedError

JSON0_TYPE_URI = "http://sharejs.org/types/JSONv0"

_TYPE_NAMES = {"json0", JSON0_TYPE_URI}


def is_json0(type_name: str | None) -> bool:
    """Return True if *type_name* names the json0 type."""
    return type_name in _TYPE_NAMES


def apply_op(snapshot: Any, op: list[dict]) -> Any:
    """Apply a json0 op (a list of components) and return the new snapshot.

    Args:
        snapshot: Current document data.
        op: Components to apply, in order.

    Returns:
        The resulting snapshot (a new object; *snapshot* is untouched).

    Raises:
        OpRejectedError: If any component does not fit the snapshot.  No
            partial result is returned in that case.
    """
    if not isinstance(op, list):
        raise OpRejectedError(f"Operation must be a list, got {type(op).__name__}")

    data = copy.deepcopy(snapshot)
    for component in op:
        data = _apply_component(data, component)
    return data


def _apply_component(data: Any, component: dict) -> Any:
    if not isinstance(component, dict) or not isinstance(
        component.get("p"), list
    ):
        raise OpRejectedError("Component has no path", component)

    path = component["p"]

    if not path:
        return _apply_root(data, component)

    if "si" in component or "sd" in component:
        _apply_string(data, component)
        return data

    parent = _walk(data, path[:-1], component)
    key = path[-1]

    if "na" in component:
        current = _get(parent, key, component)
        if not isinstance(current, (int, float)) or isinstance(current, bool):
            raise OpRejectedError("Referenced element is not a number", component)
        parent[key] = current + component["na"]
    elif "li" in component or "ld" in component:
        _apply_list(parent, key, component)
    elif "oi" in component or "od" in component:
        _apply_object(parent, key, component)
    elif "lm" in component:
        _apply_move(parent, key, component)
    else:
        raise OpRejectedError("Unknown component type", component)
    return data


def _apply_root(data: Any, component: dict) -> Any:
    if "od" in component and component["od"] != data:
        raise OpRejectedError("Root delete does not match document", component)
    if "oi" in component:
        return copy.deepcopy(component["oi"])
    if "od" in component:
        return None
    raise OpRejectedError("Root component must be oi or od", component)


def _apply_string(data: Any, component: dict) -> None:
    path = component["p"]
    if len(path) < 2:
        raise OpRejectedError("String component needs a container", component)

    container = _walk(data, path[:-2], component)
    key = path[-2]
    offset = path[-1]
    text = _get(container, key, component)
    if not isinstance(text, str):
        raise OpRejectedError("Referenced element is not a string", component)
    index = None
    if isinstance(offset, int) and not isinstance(offset, bool):
        index = code_point_index(text, offset)
    if index is None:
        raise OpRejectedError("String offset out of range", component)

    if "sd" in component:
        deleted = component["sd"]
        if text[index : index + len(deleted)] != deleted:
            raise OpRejectedError("Delete component does not match", component)
        text = text[:index] + text[index + len(deleted) :]
    if "si" in component:
        text = text[:index] + component["si"] + text[index:]
    container[key] = text


def utf16_length(text: str) -> int:
    """Return the length of *text* in UTF-16 code units."""
    return len(text) + sum(1 for char in text if ord(char) > 0xFFFF)


def code_point_index(text: str, offset: int) -> int | None:
    """Map a UTF-16 *offset* into *text* to a Python string index.

    Returns ``None`` when the offset is negative, past the end, or falls
    between the two halves of a surrogate pair.
    """
    if offset < 0:
        return None
    units = 0
    for index, char in enumerate(text):
        if units == offset:
            return index
        units += 2 if ord(char) > 0xFFFF else 1
        if units > offset:
            return None
    return len(text) if units == offset else None


def _apply_list(parent: Any, index: Any, component: dict) -> None:
    if not isinstance(parent, list):
        raise OpRejectedError("Referenced element is not a list", component)
    if not isinstance(index, int) or isinstance(index, bool):
        raise OpRejectedError("List index must be an integer", component)

    if "ld" in component:
        if not 0 <= index < len(parent):
            raise OpRejectedError("List index out of range", component)
        if parent[index] != component["ld"]:
            raise OpRejectedError("List delete does not match", component)
        if "li" in component:
            parent[index] = copy.deepcopy(component["li"])
        else:
            del parent[index]
        return

    if not 0 <= index <= len(parent):
        raise OpRejectedError("List index out of range", component)
    parent.insert(index, copy.deepcopy(component["li"]))


def _apply_object(parent: Any, key: Any, component: dict) -> None:
    if not isinstance(parent, dict):
        raise OpRejectedError("Referenced element is not an object", component)
    if not isinstance(key, str):
        raise OpRejectedError("Object key must be a string", component)

    if "od" in component:
        if key not in parent or parent[key] != component["od"]:
            raise OpRejectedError("Object delete does not match", component)
        del parent[key]
    elif key in parent:
        raise OpRejectedError("Object insert over existing key", component)

    if "oi" in component:
        parent[key] = copy.deepcopy(component["oi"])


def _apply_move(parent: Any, index: Any, component: dict) -> None:
    if not isinstance(parent, list):
        raise OpRejectedError("Referenced element is not a list", component)
    target = component["lm"]
    if not (
        isinstance(index, int)
        and isinstance(target, int)
        and 0 <= index < len(parent)
        and 0 <= target < len(parent)
    ):
        raise OpRejectedError("List move out of range", component)
    if index != target:
        parent.insert(target, parent.pop(index))


def _walk(data: Any, path: list, component: dict) -> Any:
    node = data
    for key in path:
        node = _get(node, key, component)
    return node


def _get(node: Any, key: Any, component: dict) -> Any:
    if isinstance(node, list):
        if isinstance(key, int) and not isinstance(key, bool) and 0 <= key < len(node):
            return node[key]
    elif isinstance(node, dict):
        if isinstance(key, str) and key in node:
            return node[key]
    raise OpRejectedError(f"Path element {key!r} does not exist", component)
