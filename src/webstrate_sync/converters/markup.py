"""Conversion between JsonML trees and HTML markup.

Serialization is done by hand so that the output is byte-exact and
predictable (the sync loop compares serialized markup for echo
suppression).  Parsing uses lxml's HTML parser.

Escaping is scoped by element type: text directly inside a raw-content
element (``script``, ``style``) is emitted and read back verbatim, all
other text escapes ``&``, ``<`` and ``>``.
"""

import logging
from typing import Any

from lxml import etree
from lxml import html as lxml_html

from ..errors import MalformedTreeError, ParseError

logger = logging.getLogger(__name__)

# Elements whose text content is not entity-escaped.
RAW_CONTENT_TAGS: frozenset[str] = frozenset({"script", "style"})

# Elements serialized without a closing tag.
VOID_TAGS: frozenset[str] = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "menuitem",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)


# =============================================================================
# Escaping
# =============================================================================


def escape_text(text: str) -> str:
    """Escape text content. Ampersand goes first to avoid double-escaping."""
    return (
        text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    )


def escape_attribute(value: str) -> str:
    return value.replace("&", "&amp;").replace('"', "&quot;")


# =============================================================================
# Tree -> markup
# =============================================================================


def to_markup(tree: Any) -> str:
    """Serialize a JsonML tree to HTML markup.

    Args:
        tree: Root node, normally ``["html", {...}, ...]``.

    Returns:
        The markup string.

    Raises:
        MalformedTreeError: If any node cannot be serialized.  Callers
            are expected to log and skip the write.
    """
    parts: list[str] = []
    _render(tree, None, parts)
    return "".join(parts)


def _render(node: Any, parent_tag: str | None, out: list[str]) -> None:
    if isinstance(node, str):
        if parent_tag in RAW_CONTENT_TAGS:
            out.append(node)
        else:
            out.append(escape_text(node))
        return

    if not isinstance(node, list) or not node:
        raise MalformedTreeError(
            f"Expected a text leaf or element, got {node!r:.80}"
        )

    tag, *rest = node
    if not isinstance(tag, str) or not tag:
        raise MalformedTreeError(f"Invalid element name: {tag!r:.80}")

    attributes: dict = {}
    if rest and isinstance(rest[0], dict):
        attributes, rest = rest[0], rest[1:]
    elif rest and rest[0] is None:
        rest = rest[1:]

    out.append(f"<{tag}")
    for name, value in attributes.items():
        out.append(f' {name}="{escape_attribute(_attribute_text(tag, name, value))}"')
    out.append(">")

    if tag.lower() in VOID_TAGS:
        if rest:
            raise MalformedTreeError(
                f"Void element <{tag}> cannot have children"
            )
        return

    for child in rest:
        _render(child, tag.lower(), out)
    out.append(f"</{tag}>")


def _attribute_text(tag: str, name: Any, value: Any) -> str:
    if not isinstance(name, str) or not name:
        raise MalformedTreeError(
            f"Invalid attribute name {name!r:.80} on <{tag}>"
        )
    if isinstance(value, (list, dict)):
        raise MalformedTreeError(
            f"Attribute {name!r} on <{tag}> has a non-scalar value"
        )
    if value is None or value is True:
        return ""
    return str(value)


# =============================================================================
# Markup -> tree
# =============================================================================


def from_markup(text: str) -> list:
    """Parse HTML markup into a JsonML tree rooted at ``html``.

    Surrounding whitespace is stripped before parsing.  Comments and
    processing instructions are dropped.  Entities inside raw-content
    elements are left untouched; elsewhere the parser decodes them.

    Args:
        text: Markup as read from the mirror file.

    Returns:
        The (not yet normalized) JsonML tree.

    Raises:
        ParseError: If the markup is empty or cannot be parsed.
    """
    source = text.strip()
    if not source:
        raise ParseError("Document is empty")

    try:
        root = lxml_html.document_fromstring(source)
    except (etree.ParserError, etree.XMLSyntaxError, ValueError) as exc:
        raise ParseError(f"Unable to parse markup: {exc}") from exc

    return _element_to_jsonml(root)


def _element_to_jsonml(element) -> list:
    tag = str(element.tag).lower()
    node: list = [tag, dict(element.attrib)]

    if element.text:
        node.append(element.text)

    for child in element:
        # Comments, PIs and entities have a callable tag in lxml.
        if isinstance(child.tag, str):
            node.append(_element_to_jsonml(child))
        if child.tail:
            _append_text(node, child.tail)

    return node


def _append_text(node: list, text: str) -> None:
    # Text on either side of a dropped comment merges into one leaf.
    if len(node) > 2 and isinstance(node[-1], str):
        node[-1] += text
    else:
        node.append(text)
