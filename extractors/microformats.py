"""Microformats2 extraction (h-card, h-entry, h-event, h-review, ...).

Walks class-annotated subtrees. Every ``h-*`` element becomes an item; ``p-``,
``u-``, ``e-`` and ``dt-`` classes contribute values to the nearest enclosing
item. An element that is both a property and an ``h-*`` root contributes a
nested item. Properties inside a nested item belong to it, never to the
ancestor, and an ``h-*`` element that is not a property of its parent is
reported as its own top-level item.
"""

import copy
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Final

import structlog
from bs4 import Tag

from extractors.classifier import (
    Classification,
    ElementRole,
    PropertyPrefix,
    PropertyToken,
    classify_microformats,
)
from extractors.dom import (
    element_children,
    get_attribute,
    inner_html,
    parse_document,
    tag_name,
    text_content,
)
from extractors.urls import resolve_url
from extractors.values import (
    PropertyCollector,
    PropertyValue,
    StructuredItem,
    clean_text,
    parse_number,
)
from harvester.config import get_settings
from harvester.exceptions import NestingDepthError

logger = structlog.get_logger(__name__)


# Vocabularies with dedicated helpers; other h-* roots are still extracted
KNOWN_VOCABULARIES: Final = (
    "h-card",
    "h-entry",
    "h-event",
    "h-review",
    "h-recipe",
    "h-product",
    "h-feed",
    "h-adr",
    "h-geo",
)

# u-* value source by element
URL_ATTRIBUTES: Final[dict[str, str]] = {
    "a": "href",
    "area": "href",
    "link": "href",
    "img": "src",
    "audio": "src",
    "video": "src",
    "iframe": "src",
    "source": "src",
    "track": "src",
    "embed": "src",
    "object": "data",
}

# dt-* value source by element
DATETIME_ATTRIBUTES: Final[dict[str, str]] = {
    "time": "datetime",
    "ins": "datetime",
    "del": "datetime",
    "meta": "content",
}

# p-* properties that carry numbers (h-geo, h-review, h-product)
NUMERIC_PROPERTIES: Final = frozenset(
    ["latitude", "longitude", "altitude", "rating", "best", "worst"]
)

# u-* properties whose values are addresses, not links
ADDRESS_SCHEMES: Final[dict[str, str]] = {
    "email": "mailto:",
    "tel": "tel:",
}


@dataclass(frozen=True)
class MicroformatsResult:
    """All microformats2 items of a document, in document order."""

    items: tuple[StructuredItem, ...] = ()

    def __iter__(self) -> Iterator[StructuredItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

    def by_type(self, vocabulary: str) -> list[StructuredItem]:
        """Items declaring the given h-* vocabulary."""
        return [item for item in self.items if item.has_type(vocabulary)]

    def types(self) -> list[str]:
        """Vocabularies present, in order of first appearance."""
        seen: dict[str, None] = {}
        for item in self.items:
            for type_name in item.types:
                seen.setdefault(type_name, None)
        return list(seen)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        """Group serialized items by vocabulary."""
        return {
            vocabulary: [item.to_dict() for item in self.by_type(vocabulary)]
            for vocabulary in self.types()
        }


@dataclass
class _ParsedItem:
    item: StructuredItem
    # h-* roots found inside that are not properties of the item
    detached: list[StructuredItem] = field(default_factory=list)


class MicroformatsExtractor:
    """Extracts microformats2 items from an element tree."""

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
    ) -> MicroformatsResult:
        """
        Extract every microformats2 item in a document.

        Args:
            source: HTML text, bytes, or a parsed tree
            base_url: Optional base URL for resolving relative URLs

        Returns:
            MicroformatsResult with items in document order
        """
        document = parse_document(source)
        items: list[StructuredItem] = []

        stack = [document]
        while stack:
            element = stack.pop()
            classification = classify_microformats(element)
            if classification.starts_item:
                parsed = self._parse_item(element, classification, base_url, nesting=0)
                items.append(parsed.item)
                items.extend(parsed.detached)
                continue
            stack.extend(reversed(element_children(element)))

        result = MicroformatsResult(items=tuple(items))
        logger.debug(
            "microformats_extraction_complete",
            base_url=base_url,
            total_items=len(result),
            types=result.types(),
        )
        return result

    def _parse_item(
        self,
        root: Tag,
        classification: Classification,
        base_url: str | None,
        nesting: int,
    ) -> _ParsedItem:
        """Build one item from its root element."""
        if nesting > self.max_nesting_depth:
            raise NestingDepthError(self.max_nesting_depth)

        collector = PropertyCollector()
        detached: list[StructuredItem] = []

        # Depth-first, document order, without entering nested items
        stack = [(child, 1) for child in reversed(element_children(root))]
        while stack:
            element, depth = stack.pop()
            if depth > self.max_element_depth:
                logger.warning(
                    "element_depth_exceeded",
                    root_types=list(classification.types),
                    limit=self.max_element_depth,
                )
                continue

            child_class = classify_microformats(element)
            if child_class.starts_item:
                try:
                    nested = self._parse_item(element, child_class, base_url, nesting + 1)
                except NestingDepthError as e:
                    logger.warning(
                        "nesting_depth_exceeded",
                        root_types=list(classification.types),
                        limit=e.limit,
                    )
                    continue

                if child_class.role == ElementRole.NESTED_ITEM:
                    for index, token in enumerate(child_class.properties):
                        value = nested.item if index == 0 else copy.deepcopy(nested.item)
                        collector.add(token.name, PropertyValue.item(value))
                else:
                    detached.append(nested.item)
                detached.extend(nested.detached)
                continue

            for token in child_class.properties:
                collector.add(token.name, self._property_value(element, token, base_url))
            stack.extend((child, depth + 1) for child in reversed(element_children(element)))

        item = StructuredItem(types=classification.types, properties=collector.build())
        return _ParsedItem(item=item, detached=detached)

    def _property_value(
        self, element: Tag, token: PropertyToken, base_url: str | None
    ) -> PropertyValue | None:
        """Coerce an element's value according to the property prefix."""
        match token.prefix:
            case PropertyPrefix.P:
                return self._text_value(element, token.name)
            case PropertyPrefix.U:
                return self._url_value(element, token.name, base_url)
            case PropertyPrefix.E:
                markup = clean_text(inner_html(element))
                return PropertyValue.html(markup) if markup else None
            case PropertyPrefix.DT:
                return self._datetime_value(element)
        return None

    def _text_value(self, element: Tag, name: str) -> PropertyValue | None:
        text = clean_text(text_content(element))
        if text is None:
            return None
        if name in NUMERIC_PROPERTIES:
            number = parse_number(text)
            if number is not None:
                return PropertyValue.number(number)
        return PropertyValue.text(text)

    def _url_value(self, element: Tag, name: str, base_url: str | None) -> PropertyValue | None:
        attribute = URL_ATTRIBUTES.get(tag_name(element))
        raw = get_attribute(element, attribute) if attribute else None
        if raw is None:
            raw = text_content(element)
        raw = clean_text(raw)
        if raw is None:
            return None

        scheme = ADDRESS_SCHEMES.get(name)
        if scheme is not None:
            if raw.lower().startswith(scheme):
                raw = raw[len(scheme) :].split("?", 1)[0]
            return PropertyValue.text(raw) if raw.strip() else None

        return PropertyValue.url(resolve_url(base_url, raw))

    def _datetime_value(self, element: Tag) -> PropertyValue | None:
        attribute = DATETIME_ATTRIBUTES.get(tag_name(element))
        raw = get_attribute(element, attribute) if attribute else None
        value = clean_text(raw) if raw is not None else None
        if value is None:
            value = clean_text(text_content(element))
        return PropertyValue.datetime(value) if value else None


def extract_microformats(
    source: str | bytes | Tag, base_url: str | None = None
) -> MicroformatsResult:
    """
    Convenience function to extract microformats2 items.

    Args:
        source: HTML text, bytes, or a parsed tree
        base_url: Optional base URL for resolving relative URLs

    Returns:
        MicroformatsResult with items in document order
    """
    extractor = MicroformatsExtractor()
    return extractor.extract(source, base_url)


def extract_vocabulary(
    source: str | bytes | Tag, vocabulary: str, base_url: str | None = None
) -> list[StructuredItem]:
    """Extract only the items of one h-* vocabulary."""
    return extract_microformats(source, base_url).by_type(vocabulary)


def extract_hcard(
    source: str | bytes | Tag, base_url: str | None = None
) -> list[StructuredItem]:
    return extract_vocabulary(source, "h-card", base_url)


def extract_hentry(
    source: str | bytes | Tag, base_url: str | None = None
) -> list[StructuredItem]:
    return extract_vocabulary(source, "h-entry", base_url)


def extract_hevent(
    source: str | bytes | Tag, base_url: str | None = None
) -> list[StructuredItem]:
    return extract_vocabulary(source, "h-event", base_url)


def extract_hreview(
    source: str | bytes | Tag, base_url: str | None = None
) -> list[StructuredItem]:
    return extract_vocabulary(source, "h-review", base_url)


def extract_hrecipe(
    source: str | bytes | Tag, base_url: str | None = None
) -> list[StructuredItem]:
    return extract_vocabulary(source, "h-recipe", base_url)


def extract_hproduct(
    source: str | bytes | Tag, base_url: str | None = None
) -> list[StructuredItem]:
    return extract_vocabulary(source, "h-product", base_url)


def extract_hfeed(
    source: str | bytes | Tag, base_url: str | None = None
) -> list[StructuredItem]:
    return extract_vocabulary(source, "h-feed", base_url)


def extract_hadr(
    source: str | bytes | Tag, base_url: str | None = None
) -> list[StructuredItem]:
    return extract_vocabulary(source, "h-adr", base_url)


def extract_hgeo(
    source: str | bytes | Tag, base_url: str | None = None
) -> list[StructuredItem]:
    return extract_vocabulary(source, "h-geo", base_url)
