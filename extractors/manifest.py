"""Web app manifest discovery and parsing.

``extract_manifest`` only finds the ``<link rel="manifest">`` URL; the file
itself is never fetched. Callers that already hold the manifest JSON can
pass it to ``parse_manifest``, which resolves every URL it contains.
"""

from typing import Any

import structlog
from bs4 import Tag
from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from extractors.dom import attribute_tokens, get_attribute, iter_elements, parse_document, tag_name
from extractors.urls import resolve_url
from extractors.values import clean_text
from harvester.exceptions import ManifestError

logger = structlog.get_logger(__name__)


def _base_url(info: ValidationInfo) -> str | None:
    return (info.context or {}).get("base_url")


class ManifestIcon(BaseModel):
    """Icon entry."""

    model_config = ConfigDict(populate_by_name=True)

    src: str
    sizes: str | None = None
    mime_type: str | None = Field(None, alias="type")
    purpose: str | None = None

    @field_validator("src")
    @classmethod
    def resolve_src(cls, v: str, info: ValidationInfo) -> str:
        return resolve_url(_base_url(info), v)


class ManifestImage(BaseModel):
    """Screenshot entry."""

    model_config = ConfigDict(populate_by_name=True)

    src: str
    sizes: str | None = None
    mime_type: str | None = Field(None, alias="type")
    label: str | None = None

    @field_validator("src")
    @classmethod
    def resolve_src(cls, v: str, info: ValidationInfo) -> str:
        return resolve_url(_base_url(info), v)


class ManifestShortcut(BaseModel):
    """App shortcut entry."""

    name: str
    url: str
    short_name: str | None = None
    description: str | None = None
    icons: list[ManifestIcon] = Field(default_factory=list)

    @field_validator("url")
    @classmethod
    def resolve_url_field(cls, v: str, info: ValidationInfo) -> str:
        return resolve_url(_base_url(info), v)


class RelatedApplication(BaseModel):
    """Native application offered as an alternative."""

    platform: str
    url: str | None = None
    id: str | None = None

    @field_validator("url")
    @classmethod
    def resolve_url_field(cls, v: str | None, info: ValidationInfo) -> str | None:
        return resolve_url(_base_url(info), v) if v is not None else None


class WebAppManifest(BaseModel):
    """Parsed web app manifest. Unknown members are ignored."""

    name: str | None = None
    short_name: str | None = None
    description: str | None = None
    start_url: str | None = None
    display: str | None = None
    orientation: str | None = None
    theme_color: str | None = None
    background_color: str | None = None
    scope: str | None = None
    lang: str | None = None
    dir: str | None = None
    id: str | None = None
    icons: list[ManifestIcon] = Field(default_factory=list)
    related_applications: list[RelatedApplication] = Field(default_factory=list)
    prefer_related_applications: bool | None = None
    categories: list[str] = Field(default_factory=list)
    screenshots: list[ManifestImage] = Field(default_factory=list)
    shortcuts: list[ManifestShortcut] = Field(default_factory=list)

    @field_validator("start_url", "scope")
    @classmethod
    def resolve_urls(cls, v: str | None, info: ValidationInfo) -> str | None:
        return resolve_url(_base_url(info), v) if v is not None else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, omitting unset members and empty lists."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        return {key: value for key, value in data.items() if value != []}


def extract_manifest(source: str | bytes | Tag, base_url: str | None = None) -> dict[str, str]:
    """
    Find the web app manifest link.

    Args:
        source: HTML text, bytes, or a parsed tree
        base_url: Optional base URL for resolving the href

    Returns:
        ``{"href": url}`` for the first manifest link, or an empty dict
    """
    document = parse_document(source)
    for element in iter_elements(document):
        if tag_name(element) != "link":
            continue
        if "manifest" not in (token.lower() for token in attribute_tokens(element, "rel")):
            continue
        href = clean_text(get_attribute(element, "href"))
        if href:
            return {"href": resolve_url(base_url, href)}
    return {}


def parse_manifest(json_text: str | bytes, base_url: str | None = None) -> WebAppManifest:
    """
    Parse manifest JSON, resolving its URLs against base_url.

    Args:
        json_text: Manifest file content
        base_url: URL the manifest was served from

    Returns:
        WebAppManifest

    Raises:
        ManifestError: If the content is not valid JSON or not a manifest object
    """
    try:
        return WebAppManifest.model_validate_json(json_text, context={"base_url": base_url})
    except ValidationError as e:
        logger.debug("manifest_parse_error", error_count=e.error_count())
        raise ManifestError(
            "Invalid web app manifest",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e
