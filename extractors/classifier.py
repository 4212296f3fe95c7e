"""Element classification for the tree-walking extractors.

Decides, once per element, whether it starts a new item, carries a property
of an enclosing item, does both, or is plain content.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from bs4 import Tag

from extractors.dom import attribute_tokens, class_tokens, get_attribute, has_attribute
from extractors.values import ValueKind, canonical_property_name


class ExtractionMode(StrEnum):
    MICROFORMATS = "microformats"
    MICRODATA = "microdata"
    RDFA = "rdfa"


class ElementRole(StrEnum):
    """What an element means to the traversal."""

    ITEM_ROOT = "item_root"  # new item, not a property of its parent
    PROPERTY = "property"  # value for the enclosing item
    NESTED_ITEM = "nested_item"  # both: a property whose value is a new item
    CONTENT = "content"


class PropertyPrefix(StrEnum):
    """Microformats2 property class prefixes."""

    P = "p"
    U = "u"
    E = "e"
    DT = "dt"


# Value kind produced by each prefix
PREFIX_VALUE_KINDS: Final[dict[PropertyPrefix, ValueKind]] = {
    PropertyPrefix.P: ValueKind.TEXT,
    PropertyPrefix.U: ValueKind.URL,
    PropertyPrefix.E: ValueKind.HTML,
    PropertyPrefix.DT: ValueKind.DATETIME,
}

_ROOT_CLASS_RE = re.compile(r"^h(?:-[a-z0-9]+)+$")
_PROPERTY_CLASS_RE = re.compile(r"^(p|u|e|dt)-([a-z0-9]+(?:-[a-z0-9]+)*)$")

# Prefixes every RDFa document may use without declaring them
RDFA_DEFAULT_PREFIXES: Final[dict[str, str]] = {
    "schema": "https://schema.org/",
    "foaf": "http://xmlns.com/foaf/0.1/",
    "dc": "http://purl.org/dc/terms/",
    "og": "http://ogp.me/ns#",
    "xsd": "http://www.w3.org/2001/XMLSchema#",
}


@dataclass(frozen=True)
class PropertyToken:
    """One property declared on an element.

    ``declared`` is the name as written (``p-street-address`` or
    ``streetAddress``); ``name`` is its canonical form.
    """

    declared: str
    name: str
    prefix: PropertyPrefix | None = None


@dataclass(frozen=True)
class Classification:
    role: ElementRole
    types: tuple[str, ...] = ()
    properties: tuple[PropertyToken, ...] = ()
    item_id: str | None = None

    @property
    def starts_item(self) -> bool:
        return self.role in (ElementRole.ITEM_ROOT, ElementRole.NESTED_ITEM)

    @property
    def carries_property(self) -> bool:
        return self.role in (ElementRole.PROPERTY, ElementRole.NESTED_ITEM)


CONTENT = Classification(role=ElementRole.CONTENT)


def _role(starts_item: bool, carries_property: bool) -> ElementRole:
    if starts_item and carries_property:
        return ElementRole.NESTED_ITEM
    if starts_item:
        return ElementRole.ITEM_ROOT
    if carries_property:
        return ElementRole.PROPERTY
    return ElementRole.CONTENT


def _dedupe(values: list) -> tuple:
    return tuple(dict.fromkeys(values))


def classify_microformats(element: Tag) -> Classification:
    """Classify an element by its h-*, p-*, u-*, e-* and dt-* class tokens."""
    tokens = class_tokens(element)
    if not tokens:
        return CONTENT

    types: list[str] = []
    properties: list[PropertyToken] = []
    for token in tokens:
        if _ROOT_CLASS_RE.match(token):
            types.append(token)
            continue
        match = _PROPERTY_CLASS_RE.match(token)
        if match:
            prefix = PropertyPrefix(match.group(1))
            properties.append(
                PropertyToken(
                    declared=token,
                    name=canonical_property_name(match.group(2)),
                    prefix=prefix,
                )
            )

    if not types and not properties:
        return CONTENT
    return Classification(
        role=_role(bool(types), bool(properties)),
        types=_dedupe(types),
        properties=_dedupe(properties),
    )


def classify_microdata(element: Tag) -> Classification:
    """Classify an element by its itemscope, itemtype, itemid and itemprop attributes."""
    starts_item = has_attribute(element, "itemscope")
    properties = [
        PropertyToken(declared=token, name=canonical_property_name(token))
        for token in attribute_tokens(element, "itemprop")
    ]
    if not starts_item and not properties:
        return CONTENT

    types: tuple[str, ...] = ()
    item_id = None
    if starts_item:
        types = _dedupe(attribute_tokens(element, "itemtype"))
        item_id = element.get("itemid")
        if isinstance(item_id, list):
            item_id = " ".join(item_id)
        item_id = item_id.strip() if item_id else None

    return Classification(
        role=_role(starts_item, bool(properties)),
        types=types,
        properties=_dedupe(properties),
        item_id=item_id or None,
    )


def expand_curie(value: str, prefixes: Mapping[str, str] = RDFA_DEFAULT_PREFIXES) -> str:
    """Expand ``prefix:reference`` with a known prefix; anything else is returned unchanged."""
    value = value.strip()
    prefix, separator, reference = value.partition(":")
    if not separator or reference.startswith("//"):
        return value
    namespace = prefixes.get(prefix)
    return namespace + reference if namespace is not None else value


def classify_rdfa(
    element: Tag, prefixes: Mapping[str, str] = RDFA_DEFAULT_PREFIXES
) -> Classification:
    """Classify an element by its typeof, about and property attributes."""
    starts_item = has_attribute(element, "typeof")
    properties = []
    for token in attribute_tokens(element, "property"):
        expanded = expand_curie(token, prefixes)
        properties.append(PropertyToken(declared=token, name=canonical_property_name(expanded)))
    if not starts_item and not properties:
        return CONTENT

    types: tuple[str, ...] = ()
    item_id = None
    if starts_item:
        types = _dedupe([expand_curie(t, prefixes) for t in attribute_tokens(element, "typeof")])
        about = (get_attribute(element, "about") or "").strip()
        item_id = expand_curie(about, prefixes) if about else None

    return Classification(
        role=_role(starts_item, bool(properties)),
        types=types,
        properties=_dedupe(properties),
        item_id=item_id,
    )


def classify(element: Tag, mode: ExtractionMode) -> Classification:
    """
    Classify an element for an extraction mode.

    Args:
        element: Element to inspect
        mode: Which markup convention to read

    Returns:
        Classification with the element's role, item types and property tokens
    """
    match mode:
        case ExtractionMode.MICROFORMATS:
            return classify_microformats(element)
        case ExtractionMode.RDFA:
            return classify_rdfa(element)
    return classify_microdata(element)
