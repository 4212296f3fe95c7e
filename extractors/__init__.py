"""Structured data extraction package.

Microformats2, Microdata, RDFa and JSON-LD extractors over a BeautifulSoup
tree, plus the flat meta-tag and manifest-link readers they are aggregated
with.
"""

from importlib import import_module
from typing import Any

# Lazy imports - names resolve to their defining module on first access
_EXPORTS = {
    # Value model
    "PropertyValue": "extractors.values",
    "StructuredItem": "extractors.values",
    "ValueKind": "extractors.values",
    # URL resolution
    "resolve_url": "extractors.urls",
    # Classification
    "ElementRole": "extractors.classifier",
    "ExtractionMode": "extractors.classifier",
    "classify": "extractors.classifier",
    # Microformats2
    "MicroformatsExtractor": "extractors.microformats",
    "MicroformatsResult": "extractors.microformats",
    "KNOWN_VOCABULARIES": "extractors.microformats",
    "extract_microformats": "extractors.microformats",
    "extract_hcard": "extractors.microformats",
    "extract_hentry": "extractors.microformats",
    "extract_hevent": "extractors.microformats",
    "extract_hreview": "extractors.microformats",
    "extract_hrecipe": "extractors.microformats",
    "extract_hproduct": "extractors.microformats",
    "extract_hfeed": "extractors.microformats",
    "extract_hadr": "extractors.microformats",
    "extract_hgeo": "extractors.microformats",
    # Microdata
    "MicrodataExtractor": "extractors.microdata",
    "extract_microdata": "extractors.microdata",
    # JSON-LD
    "JsonLdExtractor": "extractors.jsonld",
    "extract_jsonld": "extractors.jsonld",
    "extract_jsonld_by_type": "extractors.jsonld",
    # RDFa
    "RdfaExtractor": "extractors.rdfa",
    "extract_rdfa": "extractors.rdfa",
    # Flat tags
    "extract_meta": "extractors.metadata",
    "extract_dublin_core": "extractors.metadata",
    "extract_opengraph": "extractors.metadata",
    "extract_twitter": "extractors.metadata",
    "extract_twitter_with_fallback": "extractors.metadata",
    "extract_rel_links": "extractors.metadata",
    "extract_oembed": "extractors.metadata",
    # Web app manifest
    "WebAppManifest": "extractors.manifest",
    "extract_manifest": "extractors.manifest",
    "parse_manifest": "extractors.manifest",
    # Aggregation
    "extract_all": "extractors.aggregate",
}

__all__ = list(_EXPORTS)


def __getattr__(name: str) -> Any:
    """Lazy import for extractor submodules."""
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module 'extractors' has no attribute '{name}'")
    return getattr(import_module(module_name), name)
