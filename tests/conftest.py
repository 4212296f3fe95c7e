"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator

import pytest
import structlog

# Set test environment before any harvester code reads settings
os.environ["HARVESTER_ENV"] = "test"

BASE_URL = "https://example.com/articles/post"


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Clear cached settings so each test sees its own environment."""
    from harvester.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults after a test configures logging."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def base_url() -> str:
    """Document URL used to resolve relative links."""
    return BASE_URL
