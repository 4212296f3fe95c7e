"""Custom exceptions for the extraction core."""

from typing import Any


class HarvesterError(Exception):
    """Base exception for Structured Harvester."""

    def __init__(
        self,
        message: str,
        code: str = "error",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class DocumentError(HarvesterError):
    """Input cannot be turned into an element tree."""

    def __init__(self, received: type):
        super().__init__(
            message=f"Expected HTML text, bytes or a parsed tree, got {received.__name__}",
            code="invalid_document",
            details={"received": received.__name__},
        )


class NestingDepthError(HarvesterError):
    """Traversal went deeper than the configured limit."""

    def __init__(self, limit: int, kind: str = "item"):
        super().__init__(
            message=f"{kind} nesting deeper than {limit} levels",
            code="nesting_depth_exceeded",
            details={"limit": limit, "kind": kind},
        )
        self.limit = limit


class ConfigurationError(HarvesterError):
    """Settings could not be loaded."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, code="configuration_error", details=details)


class ManifestError(HarvesterError):
    """Web app manifest JSON could not be parsed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, code="invalid_manifest", details=details)
