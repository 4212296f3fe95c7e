"""Flat <meta>/<link> tag readers.

Static lookup tables from tag attributes to output fields: standard meta
tags, Dublin Core, Open Graph, Twitter Cards, rel-* links and oEmbed
discovery. No recursion and no nesting; these sit beside the item
extractors and only meet them in ``extract_all``.
"""

import re
from typing import Any, Final

from bs4 import Tag

from extractors.dom import (
    attribute_tokens,
    get_attribute,
    iter_elements,
    parse_document,
    tag_name,
    text_content,
)
from extractors.urls import resolve_url
from extractors.values import clean_text

# meta name -> output field
STANDARD_META_NAMES: Final[dict[str, str]] = {
    "description": "description",
    "keywords": "keywords",
    "author": "author",
    "generator": "generator",
    "viewport": "viewport",
    "theme-color": "theme_color",
    "application-name": "application_name",
    "referrer": "referrer",
    "robots": "robots",
}

DUBLIN_CORE_ELEMENTS: Final = frozenset(
    [
        "title",
        "creator",
        "subject",
        "description",
        "publisher",
        "contributor",
        "date",
        "type",
        "format",
        "identifier",
        "source",
        "language",
        "relation",
        "coverage",
        "rights",
    ]
)

# Fields holding delimited lists
DUBLIN_CORE_LIST_ELEMENTS: Final = frozenset(["subject", "contributor"])

DUBLIN_CORE_PREFIXES: Final = ("dc.", "dcterms.")

OEMBED_TYPES: Final[dict[str, str]] = {
    "application/json+oembed": "json",
    "text/xml+oembed": "xml",
}

# Open Graph fields holding URLs
OPENGRAPH_URL_FIELDS: Final = frozenset(
    [
        "url",
        "image",
        "image_url",
        "image_secure_url",
        "video",
        "video_url",
        "video_secure_url",
        "audio",
        "audio_url",
        "audio_secure_url",
    ]
)

TWITTER_URL_FIELDS: Final = frozenset(["image", "image_src", "player", "player_stream"])

# Twitter fields a page may leave to its Open Graph tags
TWITTER_FALLBACK_FIELDS: Final = ("title", "description", "image")

_LIST_SEPARATORS = re.compile(r"[,;]")
_KEYWORD_SEPARATOR = re.compile(",")
_CHARSET_RE = re.compile(r"charset=([A-Za-z0-9._-]+)", re.IGNORECASE)


def split_list(value: str, separators: re.Pattern[str] = _LIST_SEPARATORS) -> list[str]:
    """Split a delimited value, trimming entries and dropping empty ones."""
    return [part.strip() for part in separators.split(value) if part.strip()]


def _meta_tags(document: Tag) -> list[Tag]:
    return [element for element in iter_elements(document) if tag_name(element) == "meta"]


def _meta_content(element: Tag) -> str | None:
    return clean_text(get_attribute(element, "content"))


def _add_repeatable(data: dict[str, Any], key: str, value: str) -> None:
    """Store a value, turning repeats into a list in document order."""
    if key not in data:
        data[key] = value
    elif isinstance(data[key], list):
        data[key].append(value)
    else:
        data[key] = [data[key], value]


def extract_meta(source: str | bytes | Tag, base_url: str | None = None) -> dict[str, Any]:
    """
    Extract standard HTML meta tags.

    Args:
        source: HTML text, bytes, or a parsed tree
        base_url: Optional base URL for resolving the canonical link

    Returns:
        Dict of present fields; empty values are omitted
    """
    document = parse_document(source)
    meta: dict[str, Any] = {}

    title_tag = document.find("title")
    if isinstance(title_tag, Tag):
        title = clean_text(" ".join(text_content(title_tag).split()))
        if title:
            meta["title"] = title

    for element in _meta_tags(document):
        charset = clean_text(get_attribute(element, "charset"))
        if charset and "charset" not in meta:
            meta["charset"] = charset
            continue

        http_equiv = (get_attribute(element, "http-equiv") or "").lower()
        content = _meta_content(element)
        if http_equiv == "content-type" and content and "charset" not in meta:
            match = _CHARSET_RE.search(content)
            if match:
                meta["charset"] = match.group(1)
            continue

        name = (get_attribute(element, "name") or "").strip().lower()
        field_name = STANDARD_META_NAMES.get(name)
        if field_name is None or content is None or field_name in meta:
            continue
        if field_name == "keywords":
            keywords = split_list(content, _KEYWORD_SEPARATOR)
            if keywords:
                meta["keywords"] = keywords
        else:
            meta[field_name] = content

    html_tag = document.find("html")
    if isinstance(html_tag, Tag):
        lang = get_attribute(html_tag, "lang") or get_attribute(html_tag, "xml:lang")
        language = clean_text(lang)
        if language:
            meta["language"] = language

    for element in iter_elements(document):
        if tag_name(element) != "link" or "canonical" not in (
            token.lower() for token in attribute_tokens(element, "rel")
        ):
            continue
        href = clean_text(get_attribute(element, "href"))
        if href:
            meta["canonical"] = resolve_url(base_url, href)
            break

    return meta


def extract_dublin_core(source: str | bytes | Tag) -> dict[str, Any]:
    """
    Extract Dublin Core metadata (DC.* and DCTERMS.* meta names).

    Args:
        source: HTML text, bytes, or a parsed tree

    Returns:
        Dict keyed by Dublin Core element name; subject and contributor are lists
    """
    document = parse_document(source)
    dublin_core: dict[str, Any] = {}

    for element in _meta_tags(document):
        name = (get_attribute(element, "name") or "").strip().lower()
        content = _meta_content(element)
        if content is None:
            continue

        prefix = next((p for p in DUBLIN_CORE_PREFIXES if name.startswith(p)), None)
        if prefix is None:
            continue
        dc_element = name[len(prefix) :]
        if dc_element not in DUBLIN_CORE_ELEMENTS:
            continue

        if dc_element in DUBLIN_CORE_LIST_ELEMENTS:
            values = split_list(content)
            if values:
                dublin_core[dc_element] = values
        else:
            dublin_core[dc_element] = content

    return dublin_core


def _prefixed_properties(document: Tag, prefix: str, attributes: tuple[str, ...]) -> dict[str, Any]:
    """Collect meta tags whose name/property starts with prefix."""
    data: dict[str, Any] = {}
    for element in _meta_tags(document):
        key = ""
        for attribute in attributes:
            key = (get_attribute(element, attribute) or "").strip().lower()
            if key.startswith(prefix):
                break
        if not key.startswith(prefix):
            continue
        content = _meta_content(element)
        field_name = key[len(prefix) :].replace(":", "_").replace("-", "_")
        if content is None or not field_name:
            continue
        _add_repeatable(data, field_name, content)
    return data


def _resolve_fields(
    data: dict[str, Any], fields: frozenset[str], base_url: str | None
) -> dict[str, Any]:
    for key in fields & data.keys():
        value = data[key]
        if isinstance(value, list):
            data[key] = [resolve_url(base_url, entry) for entry in value]
        else:
            data[key] = resolve_url(base_url, value)
    return data


def extract_opengraph(source: str | bytes | Tag, base_url: str | None = None) -> dict[str, Any]:
    """
    Extract Open Graph (og:*) properties.

    Repeated properties become lists. URL fields (``og:url``, ``og:image``,
    ``og:video``, ``og:audio`` and their ``:url``/``:secure_url`` forms) are
    resolved against base_url.

    Args:
        source: HTML text, bytes, or a parsed tree
        base_url: Optional base URL for resolving URL fields

    Returns:
        Dict keyed by property name without the ``og:`` prefix
    """
    document = parse_document(source)
    data = _prefixed_properties(document, "og:", ("property", "name"))
    return _resolve_fields(data, OPENGRAPH_URL_FIELDS, base_url)


def extract_twitter(source: str | bytes | Tag, base_url: str | None = None) -> dict[str, Any]:
    """Extract Twitter Card (twitter:*) fields, resolving image and player URLs."""
    document = parse_document(source)
    data = _prefixed_properties(document, "twitter:", ("name", "property"))
    return _resolve_fields(data, TWITTER_URL_FIELDS, base_url)


def extract_twitter_with_fallback(
    source: str | bytes | Tag, base_url: str | None = None
) -> dict[str, Any]:
    """
    Extract Twitter Card fields, taking title, description and image from
    Open Graph when the page does not declare them for Twitter.

    Args:
        source: HTML text, bytes, or a parsed tree
        base_url: Optional base URL for resolving URL fields

    Returns:
        Twitter Card dict; fallback values are single strings
    """
    document = parse_document(source)
    twitter = extract_twitter(document, base_url)
    opengraph = extract_opengraph(document, base_url)
    for key in TWITTER_FALLBACK_FIELDS:
        if key in twitter or key not in opengraph:
            continue
        value = opengraph[key]
        twitter[key] = value[0] if isinstance(value, list) else value
    return twitter


def extract_rel_links(
    source: str | bytes | Tag, base_url: str | None = None
) -> dict[str, list[str]]:
    """
    Collect rel-* links from <link>, <a> and <area> elements.

    Args:
        source: HTML text, bytes, or a parsed tree
        base_url: Optional base URL for resolving hrefs

    Returns:
        Dict of rel token to resolved URLs in document order
    """
    document = parse_document(source)
    links: dict[str, list[str]] = {}
    for element in iter_elements(document):
        if tag_name(element) not in ("link", "a", "area"):
            continue
        href = clean_text(get_attribute(element, "href"))
        if href is None:
            continue
        url = resolve_url(base_url, href)
        for rel in attribute_tokens(element, "rel"):
            urls = links.setdefault(rel.lower(), [])
            if url not in urls:
                urls.append(url)
    return links


def extract_oembed(source: str | bytes | Tag, base_url: str | None = None) -> dict[str, str]:
    """Find oEmbed discovery links (the endpoints are not fetched)."""
    document = parse_document(source)
    endpoints: dict[str, str] = {}
    for element in iter_elements(document):
        if tag_name(element) != "link":
            continue
        link_type = (get_attribute(element, "type") or "").strip().lower()
        key = OEMBED_TYPES.get(link_type)
        href = clean_text(get_attribute(element, "href"))
        if key is None or href is None or key in endpoints:
            continue
        endpoints[key] = resolve_url(base_url, href)
    return endpoints
