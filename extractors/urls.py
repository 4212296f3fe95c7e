"""URL resolution shared by every extractor."""

import re
from urllib.parse import urljoin, urlsplit, urlunsplit

# RFC 3986 scheme: ALPHA *( ALPHA / DIGIT / "+" / "-" / "." ) ":"
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")


def has_scheme(url: str) -> bool:
    """Check if a URL string starts with a scheme."""
    return bool(_SCHEME_RE.match(url.strip()))


def resolve_url(base: str | None, candidate: str) -> str:
    """
    Resolve a candidate URL against an optional base URL.

    Absolute candidates are returned unchanged. Without a usable base the
    candidate is returned unchanged as well, even when it is relative.

    Args:
        base: Base URL of the document, if known
        candidate: URL taken from an attribute or text content

    Returns:
        The absolute URL, or the candidate when it cannot be resolved
    """
    candidate = candidate.strip()
    if has_scheme(candidate) or not base:
        return candidate

    base = base.strip()
    if not has_scheme(base):
        return candidate

    try:
        parts = urlsplit(base)
        if parts.netloc and not parts.path:
            base = urlunsplit((parts.scheme, parts.netloc, "/", parts.query, parts.fragment))
        return urljoin(base, candidate)
    except ValueError:
        # e.g. invalid IPv6 netloc
        return candidate
