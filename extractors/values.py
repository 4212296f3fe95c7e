"""Value model shared by the microformats, microdata and JSON-LD extractors.

A ``StructuredItem`` is one entity found in a document. Its properties map a
canonical property name to a single ``PropertyValue``; a property declared
more than once holds a ``List`` value with the occurrences in document order.
"""

import copy
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any


class ValueKind(StrEnum):
    """Closed set of property value variants."""

    TEXT = "text"
    URL = "url"
    HTML = "html"
    DATETIME = "datetime"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ITEM = "item"
    LIST = "list"


_STRING_KINDS = frozenset({ValueKind.TEXT, ValueKind.URL, ValueKind.HTML, ValueKind.DATETIME})

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NAME_SEPARATORS = re.compile(r"[-\s]+")


@dataclass(frozen=True)
class PropertyValue:
    """A tagged property value.

    Build instances through the named constructors (``PropertyValue.text``,
    ``PropertyValue.url`` ...) rather than the raw initializer so the payload
    always matches its kind.
    """

    kind: ValueKind
    value: Any

    @classmethod
    def text(cls, value: str) -> "PropertyValue":
        return cls(ValueKind.TEXT, value)

    @classmethod
    def url(cls, value: str) -> "PropertyValue":
        return cls(ValueKind.URL, value)

    @classmethod
    def html(cls, value: str) -> "PropertyValue":
        return cls(ValueKind.HTML, value)

    @classmethod
    def datetime(cls, value: str) -> "PropertyValue":
        return cls(ValueKind.DATETIME, value)

    @classmethod
    def number(cls, value: float) -> "PropertyValue":
        return cls(ValueKind.NUMBER, float(value))

    @classmethod
    def boolean(cls, value: bool) -> "PropertyValue":
        return cls(ValueKind.BOOLEAN, bool(value))

    @classmethod
    def item(cls, value: "StructuredItem") -> "PropertyValue":
        return cls(ValueKind.ITEM, value)

    @classmethod
    def list_of(cls, values: list["PropertyValue"]) -> "PropertyValue":
        return cls(ValueKind.LIST, tuple(values))

    @property
    def is_list(self) -> bool:
        return self.kind == ValueKind.LIST

    def values(self) -> list["PropertyValue"]:
        """Return the occurrences held by this value (itself when singular)."""
        if self.kind == ValueKind.LIST:
            return list(self.value)
        return [self]

    def to_python(self) -> Any:
        """Convert to plain JSON-compatible Python data."""
        match self.kind:
            case ValueKind.LIST:
                return [entry.to_python() for entry in self.value]
            case ValueKind.ITEM:
                return self.value.to_dict()
            case ValueKind.NUMBER:
                return float(self.value)
            case ValueKind.BOOLEAN:
                return bool(self.value)
            case _:
                return str(self.value)


@dataclass(frozen=True)
class StructuredItem:
    """One extracted entity (an h-* root, an itemscope element...).

    ``properties`` is a read-only view; items are never changed after they
    are built.
    """

    types: tuple[str, ...] = ()
    id: str | None = None
    properties: Mapping[str, PropertyValue] = field(default_factory=dict)
    vocab: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    def __deepcopy__(self, memo: dict[int, Any]) -> "StructuredItem":
        return StructuredItem(
            types=self.types,
            id=self.id,
            properties=copy.deepcopy(dict(self.properties), memo),
            vocab=self.vocab,
        )

    def get(self, name: str) -> PropertyValue | None:
        """Get a property value by canonical name."""
        return self.properties.get(name)

    def first(self, name: str) -> Any:
        """Get the first occurrence of a property as plain Python data."""
        value = self.properties.get(name)
        if value is None:
            return None
        return value.values()[0].to_python()

    def has_type(self, type_name: str) -> bool:
        return type_name in self.types

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {"type": list(self.types)}
        if self.id is not None:
            data["id"] = self.id
        if self.vocab is not None:
            data["vocab"] = self.vocab
        data["properties"] = {name: value.to_python() for name, value in self.properties.items()}
        return data


class PropertyCollector:
    """Accumulates property occurrences for one item in document order.

    ``build`` applies the singular/list rule: one occurrence stays a scalar,
    two or more become a ``List`` in the order they were added.
    """

    def __init__(self) -> None:
        self._values: dict[str, list[PropertyValue]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def add(self, name: str, value: PropertyValue | None) -> None:
        if not name or value is None or is_empty_value(value):
            return
        self._values.setdefault(name, []).append(value)

    def build(self) -> dict[str, PropertyValue]:
        properties: dict[str, PropertyValue] = {}
        for name, occurrences in self._values.items():
            if len(occurrences) == 1:
                properties[name] = occurrences[0]
            else:
                properties[name] = PropertyValue.list_of(occurrences)
        return properties


def is_empty_value(value: PropertyValue) -> bool:
    """Check whether a value should be treated as absent."""
    if value.kind in _STRING_KINDS:
        return not isinstance(value.value, str) or not value.value.strip()
    if value.kind == ValueKind.NUMBER:
        return value.value is None or not math.isfinite(value.value)
    if value.kind == ValueKind.LIST:
        return not value.value
    return value.value is None


def clean_text(value: str | None) -> str | None:
    """Trim a string, mapping empty or whitespace-only input to None."""
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def parse_number(value: str | None) -> float | None:
    """Parse a finite float, or return None."""
    text = clean_text(value)
    if text is None:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def canonical_property_name(name: str) -> str:
    """Convert a declared property name to its canonical snake_case form.

    ``street-address`` and ``streetAddress`` both become ``street_address``.
    Absolute URL names (``http://example.com/vocab#prop``) are kept verbatim.
    """
    name = name.strip()
    if not name or ":" in name:
        return name
    snake = _CAMEL_BOUNDARY.sub("_", name)
    return _NAME_SEPARATORS.sub("_", snake).lower()
