"""Element tree access over BeautifulSoup.

The extractors only need document-order traversal, attribute lookup, text
and inner-markup serialization, and class-list tokenization. Everything that
touches bs4 directly lives here.
"""

from collections.abc import Iterator

from bs4 import BeautifulSoup, Comment, Declaration, Doctype, NavigableString, Tag
from bs4.element import ProcessingInstruction

from harvester.config import get_settings
from harvester.exceptions import DocumentError

# Elements whose text is never visible content
NON_TEXT_TAGS = frozenset(["script", "style", "template"])

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


def parse_document(source: str | bytes | Tag) -> Tag:
    """
    Turn markup into an element tree.

    Args:
        source: HTML text, raw bytes, or an already parsed BeautifulSoup tree

    Returns:
        The root of the element tree

    Raises:
        DocumentError: If the source is of an unsupported type
    """
    if isinstance(source, Tag):
        return source
    if isinstance(source, (str, bytes)):
        return BeautifulSoup(source, get_settings().html_parser)
    raise DocumentError(type(source))


def element_children(element: Tag) -> list[Tag]:
    """Direct child elements, in document order."""
    return [child for child in element.children if isinstance(child, Tag)]


def iter_elements(root: Tag) -> Iterator[Tag]:
    """All descendant elements of root, in document order."""
    for node in root.descendants:
        if isinstance(node, Tag):
            yield node


def get_attribute(element: Tag, name: str) -> str | None:
    """Get an attribute value, joining multi-valued attributes with a space."""
    value = element.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def has_attribute(element: Tag, name: str) -> bool:
    return element.has_attr(name)


def attribute_tokens(element: Tag, name: str) -> list[str]:
    """Split an attribute on whitespace, keeping the declared order."""
    value = get_attribute(element, name)
    return value.split() if value else []


def class_tokens(element: Tag) -> list[str]:
    return attribute_tokens(element, "class")


def tag_name(element: Tag) -> str:
    return (element.name or "").lower()


def text_content(element: Tag) -> str:
    """Concatenated text of the element, skipping comments and script/style text."""
    chunks: list[str] = []
    for node in element.descendants:
        if not isinstance(node, NavigableString) or isinstance(node, _SKIPPED_STRINGS):
            continue
        parent = node.parent
        if parent is not None and parent is not element and tag_name(parent) in NON_TEXT_TAGS:
            continue
        chunks.append(str(node))
    return "".join(chunks)


def inner_html(element: Tag) -> str:
    """Serialized markup of the element's children."""
    return element.decode_contents()
