"""Combined extraction of every supported format from one document."""

from collections.abc import Callable
from typing import Any

import structlog
from bs4 import Tag

from extractors.dom import parse_document
from extractors.jsonld import JsonLdExtractor
from extractors.manifest import extract_manifest
from extractors.metadata import (
    extract_dublin_core,
    extract_meta,
    extract_oembed,
    extract_opengraph,
    extract_rel_links,
    extract_twitter_with_fallback,
)
from extractors.microdata import MicrodataExtractor
from extractors.microformats import MicroformatsExtractor
from extractors.rdfa import RdfaExtractor
from harvester.exceptions import HarvesterError

logger = structlog.get_logger(__name__)


def _guarded(category: str, extract: Callable[[], Any], default: Any) -> Any:
    """Run one category's extractor, logging and skipping it on failure."""
    with structlog.contextvars.bound_contextvars(category=category):
        try:
            return extract()
        except HarvesterError as e:
            logger.warning("extraction_category_failed", code=e.code, error=e.message)
            return default


def extract_all(source: str | bytes | Tag, base_url: str | None = None) -> dict[str, Any]:
    """
    Extract every supported format from a document.

    The simple tag categories (meta, opengraph, twitter, dublin_core,
    rel_links, oembed) are always present; missing Twitter title,
    description and image are taken from Open Graph. ``jsonld``,
    ``microdata``, ``microformats``, ``rdfa`` and ``manifest`` appear only
    when something of that kind was found.

    While it runs, ``base_url`` and the current ``category`` are bound as
    structlog context variables.

    Args:
        source: HTML text, bytes, or a parsed tree
        base_url: Optional base URL for resolving relative URLs

    Returns:
        Dict keyed by category
    """
    document = parse_document(source)
    with structlog.contextvars.bound_contextvars(base_url=base_url):
        result = _extract_categories(document, base_url)
        logger.debug("extract_all_complete", categories=sorted(result))
    return result


def _extract_categories(document: Tag, base_url: str | None) -> dict[str, Any]:
    result: dict[str, Any] = {
        "meta": _guarded("meta", lambda: extract_meta(document, base_url), {}),
        "opengraph": _guarded("opengraph", lambda: extract_opengraph(document, base_url), {}),
        "twitter": _guarded(
            "twitter", lambda: extract_twitter_with_fallback(document, base_url), {}
        ),
        "dublin_core": _guarded("dublin_core", lambda: extract_dublin_core(document), {}),
        "rel_links": _guarded("rel_links", lambda: extract_rel_links(document, base_url), {}),
        "oembed": _guarded("oembed", lambda: extract_oembed(document, base_url), {}),
    }

    jsonld = _guarded("jsonld", lambda: JsonLdExtractor().extract(document, base_url), [])
    if jsonld:
        result["jsonld"] = jsonld

    microdata = _guarded("microdata", lambda: MicrodataExtractor().extract(document, base_url), [])
    if microdata:
        result["microdata"] = [item.to_dict() for item in microdata]

    microformats = _guarded(
        "microformats", lambda: MicroformatsExtractor().extract(document, base_url), None
    )
    if microformats:
        result["microformats"] = microformats.to_dict()

    rdfa = _guarded("rdfa", lambda: RdfaExtractor().extract(document, base_url), [])
    if rdfa:
        result["rdfa"] = [item.to_dict() for item in rdfa]

    manifest = _guarded("manifest", lambda: extract_manifest(document, base_url), {})
    if manifest:
        result["manifest"] = manifest

    return result
