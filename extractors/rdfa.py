"""RDFa Lite extraction (vocab / typeof / property / resource / about / prefix).

Each top-level ``typeof`` element becomes an item, as does a ``vocab``
element without ``typeof`` that is not inside another item. Its properties
are the ``property`` elements reachable from it without crossing into
another ``typeof`` element. A ``property`` element that also has ``typeof``
holds a nested item.

Compact names (``schema:Person``, ``foaf:name``) are expanded with the
built-in prefixes plus any declared through ``prefix`` attributes anywhere
in the document.
"""

import copy
from typing import Final

import structlog
from bs4 import Tag

from extractors.classifier import (
    RDFA_DEFAULT_PREFIXES,
    Classification,
    ElementRole,
    classify_rdfa,
    expand_curie,
)
from extractors.dom import (
    element_children,
    get_attribute,
    has_attribute,
    iter_elements,
    parse_document,
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

XSD_NAMESPACE = RDFA_DEFAULT_PREFIXES["xsd"]

_NUMERIC_DATATYPES: Final = frozenset(
    XSD_NAMESPACE + name
    for name in (
        "integer",
        "int",
        "long",
        "short",
        "byte",
        "decimal",
        "float",
        "double",
        "nonNegativeInteger",
        "positiveInteger",
        "nonPositiveInteger",
        "negativeInteger",
        "unsignedInt",
        "unsignedLong",
    )
)
_TEMPORAL_DATATYPES: Final = frozenset(
    XSD_NAMESPACE + name
    for name in ("date", "dateTime", "time", "gYear", "gYearMonth", "duration")
)
_BOOLEAN_DATATYPE = XSD_NAMESPACE + "boolean"

# Attributes holding a resource reference, in priority order
_RESOURCE_ATTRIBUTES: Final = ("resource", "href", "src")


def parse_prefix_attribute(value: str | None) -> dict[str, str]:
    """
    Parse a ``prefix`` attribute of the form ``"p1: ns1 p2: ns2"``.

    Args:
        value: Raw attribute value

    Returns:
        Mapping of prefix to namespace; malformed pairs are ignored
    """
    prefixes: dict[str, str] = {}
    tokens = (value or "").split()
    position = 0
    while position + 1 < len(tokens):
        name, namespace = tokens[position], tokens[position + 1]
        if name.endswith(":") and len(name) > 1:
            prefixes[name[:-1]] = namespace
            position += 2
        else:
            position += 1
    return prefixes


def collect_prefixes(document: Tag) -> dict[str, str]:
    """Built-in prefixes overlaid with every ``prefix`` declaration in the document."""
    prefixes = dict(RDFA_DEFAULT_PREFIXES)
    for element in iter_elements(document):
        if has_attribute(element, "prefix"):
            prefixes.update(parse_prefix_attribute(get_attribute(element, "prefix")))
    return prefixes


def _nearest_vocab(element: Tag) -> str | None:
    for candidate in (element, *element.parents):
        if isinstance(candidate, Tag):
            vocab = clean_text(get_attribute(candidate, "vocab"))
            if vocab:
                return vocab
    return None


class RdfaExtractor:
    """Extracts RDFa items from an element tree."""

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
        Extract all top-level RDFa items.

        Args:
            source: HTML text, bytes, or a parsed tree
            base_url: Optional base URL for resolving relative URLs

        Returns:
            Items in document order
        """
        document = parse_document(source)
        prefixes = collect_prefixes(document)
        items: list[StructuredItem] = []

        for element in iter_elements(document):
            if not self._is_root(element):
                continue
            classification = classify_rdfa(element, prefixes)
            if not classification.starts_item:
                classification = Classification(role=ElementRole.ITEM_ROOT)
            try:
                item = self._parse_item(element, classification, base_url, prefixes, depth=0)
            except NestingDepthError as e:
                logger.warning("nesting_depth_exceeded", limit=e.limit)
                continue
            if not item.types and not item.properties:
                continue
            items.append(item)

        logger.debug(
            "rdfa_extraction_complete",
            base_url=base_url,
            total_items=len(items),
            types=sorted({t for item in items for t in item.types}),
        )
        return items

    @staticmethod
    def _is_root(element: Tag) -> bool:
        """A typeof element is a root unless it is a property of an enclosing item.

        A vocab element without typeof is a root when no ancestor declares
        typeof or vocab; such an ancestor is the enclosing item.
        """
        if has_attribute(element, "typeof") and not has_attribute(element, "property"):
            return True
        if not has_attribute(element, "typeof") and not has_attribute(element, "vocab"):
            return False
        return not any(
            isinstance(parent, Tag)
            and (has_attribute(parent, "typeof") or has_attribute(parent, "vocab"))
            for parent in element.parents
        )

    def _parse_item(
        self,
        root: Tag,
        classification: Classification,
        base_url: str | None,
        prefixes: dict[str, str],
        depth: int,
    ) -> StructuredItem:
        """Build one item, recursing into nested typeof properties."""
        if depth > self.max_nesting_depth:
            raise NestingDepthError(self.max_nesting_depth)

        collector = PropertyCollector()
        for element in self._property_elements(root):
            element_class = classify_rdfa(element, prefixes)
            value = self._property_value(element, element_class, base_url, prefixes, depth)
            if value is None:
                continue
            for position, token in enumerate(element_class.properties):
                collector.add(token.name, value if position == 0 else copy.deepcopy(value))

        item_id = classification.item_id
        return StructuredItem(
            types=classification.types,
            id=resolve_url(base_url, item_id) if item_id else None,
            properties=collector.build(),
            vocab=_nearest_vocab(root),
        )

    def _property_elements(self, root: Tag) -> list[Tag]:
        """Collect the property elements belonging to root, in document order."""
        stack = [(child, 1) for child in reversed(element_children(root))]
        results: list[Tag] = []
        while stack:
            element, depth = stack.pop()
            if depth > self.max_element_depth:
                logger.warning("element_depth_exceeded", limit=self.max_element_depth)
                continue

            if has_attribute(element, "property"):
                results.append(element)
            if not has_attribute(element, "typeof"):
                stack.extend((child, depth + 1) for child in reversed(element_children(element)))
        return results

    def _property_value(
        self,
        element: Tag,
        element_class: Classification,
        base_url: str | None,
        prefixes: dict[str, str],
        depth: int,
    ) -> PropertyValue | None:
        """Value of a property element: content, then resource, then nested item, then text."""
        datatype = clean_text(get_attribute(element, "datatype"))
        if datatype:
            datatype = expand_curie(datatype, prefixes)

        content = get_attribute(element, "content")
        if content is not None:
            return self._literal(content, datatype)

        for attribute in _RESOURCE_ATTRIBUTES:
            reference = clean_text(get_attribute(element, attribute))
            if reference:
                return PropertyValue.url(resolve_url(base_url, expand_curie(reference, prefixes)))

        if element_class.starts_item:
            try:
                nested = self._parse_item(element, element_class, base_url, prefixes, depth + 1)
            except NestingDepthError as e:
                logger.warning(
                    "nesting_depth_exceeded",
                    root_types=list(element_class.types),
                    limit=e.limit,
                )
                return None
            return PropertyValue.item(nested)

        return self._literal(text_content(element), datatype)

    @staticmethod
    def _literal(raw: str, datatype: str | None) -> PropertyValue | None:
        """Coerce a literal by its expanded datatype; unknown datatypes stay Text."""
        value = clean_text(raw)
        if value is None:
            return None

        if datatype in _NUMERIC_DATATYPES:
            number = parse_number(value)
            if number is not None:
                return PropertyValue.number(number)
        elif datatype == _BOOLEAN_DATATYPE:
            lowered = value.lower()
            if lowered in ("true", "1"):
                return PropertyValue.boolean(True)
            if lowered in ("false", "0"):
                return PropertyValue.boolean(False)
        elif datatype in _TEMPORAL_DATATYPES:
            return PropertyValue.datetime(value)
        return PropertyValue.text(value)


def extract_rdfa(source: str | bytes | Tag, base_url: str | None = None) -> list[StructuredItem]:
    """
    Convenience function to extract RDFa items.

    Args:
        source: HTML text, bytes, or a parsed tree
        base_url: Optional base URL for resolving relative URLs

    Returns:
        Items in document order
    """
    extractor = RdfaExtractor()
    return extractor.extract(source, base_url)
