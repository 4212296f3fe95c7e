"""HTML5 Microdata extraction (itemscope / itemtype / itemprop / itemref).

Each top-level ``itemscope`` element becomes an item. Its properties are the
``itemprop`` elements reachable from it without crossing into another
``itemscope`` element, plus those reachable from the elements its ``itemref``
attribute names. An ``itemprop`` element that also has ``itemscope`` holds a
nested item.
"""

import copy
from typing import Final

import structlog
from bs4 import Tag

from extractors.classifier import Classification, classify_microdata
from extractors.dom import (
    attribute_tokens,
    element_children,
    get_attribute,
    has_attribute,
    iter_elements,
    parse_document,
    tag_name,
    text_content,
)
from extractors.urls import resolve_url
from extractors.values import (
    PropertyCollector,
    PropertyValue,
    StructuredItem,
    ValueKind,
    clean_text,
)
from harvester.config import get_settings
from harvester.exceptions import NestingDepthError

logger = structlog.get_logger(__name__)


# Element name -> (attribute holding the value, kind of value)
ELEMENT_VALUE_SOURCES: Final[dict[str, tuple[str, ValueKind]]] = {
    "meta": ("content", ValueKind.TEXT),
    "a": ("href", ValueKind.URL),
    "area": ("href", ValueKind.URL),
    "link": ("href", ValueKind.URL),
    "img": ("src", ValueKind.URL),
    "audio": ("src", ValueKind.URL),
    "video": ("src", ValueKind.URL),
    "iframe": ("src", ValueKind.URL),
    "source": ("src", ValueKind.URL),
    "track": ("src", ValueKind.URL),
    "embed": ("src", ValueKind.URL),
    "object": ("data", ValueKind.URL),
    "data": ("value", ValueKind.TEXT),
    "meter": ("value", ValueKind.TEXT),
    "time": ("datetime", ValueKind.DATETIME),
}

# Elements that fall back to their text when the value attribute is missing
_TEXT_FALLBACK: Final = frozenset(["time"])


class _DocumentIndex:
    """Document positions and id lookup for itemref resolution."""

    def __init__(self, document: Tag):
        self.positions: dict[int, int] = {}
        self.by_id: dict[str, Tag] = {}
        for position, element in enumerate(iter_elements(document)):
            self.positions[id(element)] = position
            element_id = get_attribute(element, "id")
            if element_id and element_id not in self.by_id:
                self.by_id[element_id] = element

    def position(self, element: Tag) -> int:
        return self.positions.get(id(element), -1)


class MicrodataExtractor:
    """Extracts microdata items from an element tree."""

    def __init__(
        self,
        max_nesting_depth: int | None = None,
        max_element_depth: int | None = None,
    ):
        settings = get_settings()
        self.max_nesting_depth = max_nesting_depth or settings.max_nesting_depth
        self.max_element_depth = max_element_depth or settings.max_element_depth

    def extract(
        self, source: str | bytes | Tag, base_url: str | None = None
    ) -> list[StructuredItem]:
        """
        Extract all top-level microdata items.

        Args:
            source: HTML text, bytes, or a parsed tree
            base_url: Optional base URL for resolving relative URLs

        Returns:
            Items in document order
        """
        document = parse_document(source)
        index = _DocumentIndex(document)
        items: list[StructuredItem] = []

        for element in iter_elements(document):
            if not has_attribute(element, "itemscope") or not self._is_top_level(element):
                continue
            classification = classify_microdata(element)
            items.append(
                self._parse_item(element, classification, base_url, index, ancestry=())
            )

        logger.debug(
            "microdata_extraction_complete",
            base_url=base_url,
            total_items=len(items),
            types=sorted({t for item in items for t in item.types}),
        )
        return items

    @staticmethod
    def _is_top_level(element: Tag) -> bool:
        """An itemscope is top-level unless it is a property of an enclosing item."""
        if not has_attribute(element, "itemprop"):
            return True
        return not any(
            isinstance(parent, Tag) and has_attribute(parent, "itemscope")
            for parent in element.parents
        )

    def _parse_item(
        self,
        root: Tag,
        classification: Classification,
        base_url: str | None,
        index: _DocumentIndex,
        ancestry: tuple[int, ...],
    ) -> StructuredItem:
        """Build one item, recursing into nested itemscope properties."""
        if len(ancestry) > self.max_nesting_depth:
            raise NestingDepthError(self.max_nesting_depth)

        ancestry = (*ancestry, id(root))
        collector = PropertyCollector()

        for element in self._property_elements(root, index):
            element_class = classify_microdata(element)
            if element_class.starts_item:
                if id(element) in ancestry:
                    logger.debug("microdata_itemref_cycle", types=list(classification.types))
                    continue
                try:
                    nested = self._parse_item(element, element_class, base_url, index, ancestry)
                except NestingDepthError as e:
                    logger.warning(
                        "nesting_depth_exceeded",
                        root_types=list(classification.types),
                        limit=e.limit,
                    )
                    continue
                for position, token in enumerate(element_class.properties):
                    value = nested if position == 0 else copy.deepcopy(nested)
                    collector.add(token.name, PropertyValue.item(value))
                continue

            value = self._property_value(element, base_url)
            for token in element_class.properties:
                collector.add(token.name, value)

        return StructuredItem(
            types=classification.types,
            id=classification.item_id,
            properties=collector.build(),
        )

    def _property_elements(self, root: Tag, index: _DocumentIndex) -> list[Tag]:
        """Collect the itemprop elements belonging to root, in document order."""
        referenced = []
        for ref in attribute_tokens(root, "itemref"):
            element = index.by_id.get(ref)
            if element is not None and element is not root:
                referenced.append(element)

        # Children are popped first, then referenced elements
        stack = [(element, 1) for element in reversed(referenced)]
        stack.extend((child, 1) for child in reversed(element_children(root)))

        seen: set[int] = {id(root)}
        results: list[Tag] = []
        while stack:
            element, depth = stack.pop()
            if id(element) in seen:
                continue
            seen.add(id(element))
            if depth > self.max_element_depth:
                logger.warning("element_depth_exceeded", limit=self.max_element_depth)
                continue

            if has_attribute(element, "itemprop"):
                results.append(element)
            if not has_attribute(element, "itemscope"):
                stack.extend((child, depth + 1) for child in reversed(element_children(element)))

        if referenced:
            results.sort(key=index.position)
        return results

    def _property_value(self, element: Tag, base_url: str | None) -> PropertyValue | None:
        """Coerce a non-item property element to a value by element type."""
        name = tag_name(element)
        source = ELEMENT_VALUE_SOURCES.get(name)
        if source is None:
            text = clean_text(text_content(element))
            return PropertyValue.text(text) if text else None

        attribute, kind = source
        raw = get_attribute(element, attribute)
        if raw is None and name in _TEXT_FALLBACK:
            raw = text_content(element)
        value = clean_text(raw)
        if value is None:
            return None

        match kind:
            case ValueKind.URL:
                return PropertyValue.url(resolve_url(base_url, value))
            case ValueKind.DATETIME:
                return PropertyValue.datetime(value)
            case _:
                return PropertyValue.text(value)


def extract_microdata(
    source: str | bytes | Tag, base_url: str | None = None
) -> list[StructuredItem]:
    """
    Convenience function to extract microdata items.

    Args:
        source: HTML text, bytes, or a parsed tree
        base_url: Optional base URL for resolving relative URLs

    Returns:
        Items in document order
    """
    extractor = MicrodataExtractor()
    return extractor.extract(source, base_url)
