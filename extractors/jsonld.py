"""JSON-LD extraction from <script type="application/ld+json"> blocks.

Each block is parsed on its own; a block that is not valid JSON is skipped
and the remaining blocks are still returned. Entities are passed through
structurally (nested objects, arrays and nulls included). The only reshaping
is ``@graph`` flattening: a wrapper object whose ``@graph`` is an array is
replaced by the array's members.
"""

import json
from typing import Any

import structlog
from bs4 import Tag

from extractors.dom import get_attribute, iter_elements, parse_document, tag_name, text_content
from harvester.config import get_settings

logger = structlog.get_logger(__name__)

JSON_LD_MIME_TYPE = "application/ld+json"


def is_jsonld_script(element: Tag) -> bool:
    """Check for a script element declaring the JSON-LD media type."""
    if tag_name(element) != "script":
        return False
    script_type = get_attribute(element, "type") or ""
    return script_type.split(";", 1)[0].strip().lower() == JSON_LD_MIME_TYPE


def flatten_entities(payload: Any) -> list[Any]:
    """
    Turn one parsed block into its top-level entities.

    An object with an array under ``@graph`` yields the array's members and
    not the wrapper. Any other parsed value (object, array or scalar) is one
    entity, passed through unchanged.

    Args:
        payload: Parsed JSON value of one script block

    Returns:
        Entities in declaration order
    """
    if isinstance(payload, dict):
        graph = payload.get("@graph")
        if isinstance(graph, list):
            return list(graph)
    return [payload]


class JsonLdExtractor:
    """Extracts JSON-LD entities from an element tree."""

    def __init__(self, strict: bool | None = None):
        self.strict = get_settings().jsonld_strict if strict is None else strict

    def extract(self, source: str | bytes | Tag, base_url: str | None = None) -> list[Any]:
        """
        Extract all JSON-LD entities in document order.

        Args:
            source: HTML text, bytes, or a parsed tree
            base_url: Unused; JSON-LD values are passed through untouched

        Returns:
            List of entities (usually dicts)
        """
        _ = base_url
        document = parse_document(source)
        entities: list[Any] = []
        skipped = 0

        for script in iter_elements(document):
            if not is_jsonld_script(script):
                continue

            payload = self._parse_block(text_content(script))
            if payload is None:
                skipped += 1
                continue
            entities.extend(flatten_entities(payload))

        logger.debug(
            "jsonld_extraction_complete",
            total_entities=len(entities),
            skipped_blocks=skipped,
        )
        return entities

    def _parse_block(self, raw: str) -> Any | None:
        """Parse one block, returning None when it is empty or malformed."""
        text = raw.strip()
        if not text:
            return None
        try:
            return json.loads(text, strict=self.strict)
        except (ValueError, RecursionError) as e:
            # JSONDecodeError, oversized integer literals, deep nesting
            logger.debug("json_ld_parse_error", error=str(e)[:200])
            return None


def _type_names(entity: Any) -> list[str]:
    if not isinstance(entity, dict):
        return []
    declared = entity.get("@type")
    if isinstance(declared, str):
        return [declared]
    if isinstance(declared, list):
        return [t for t in declared if isinstance(t, str)]
    return []


def extract_jsonld(source: str | bytes | Tag, base_url: str | None = None) -> list[Any]:
    """
    Convenience function to extract JSON-LD entities.

    Args:
        source: HTML text, bytes, or a parsed tree
        base_url: Unused; accepted for a uniform extractor signature

    Returns:
        List of entities in document order
    """
    extractor = JsonLdExtractor()
    return extractor.extract(source, base_url)


def extract_jsonld_by_type(source: str | bytes | Tag, type_name: str) -> list[Any]:
    """Extract only the entities whose @type is (or includes) type_name."""
    return [entity for entity in extract_jsonld(source) if type_name in _type_names(entity)]
