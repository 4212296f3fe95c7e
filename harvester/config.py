"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from harvester.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Harvester settings loaded from HARVESTER_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HARVESTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Parsing
    html_parser: str = "html.parser"  # BeautifulSoup tree builder
    jsonld_strict: bool = False  # Reject raw control characters in JSON-LD strings

    # Traversal limits
    max_nesting_depth: int = Field(default=64, ge=1)  # Nested items per root
    max_element_depth: int = Field(default=512, ge=1)  # Element levels below a root

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.env == "test"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid HARVESTER_* environment configuration",
            details={"errors": e.errors(include_url=False)},
        ) from e
