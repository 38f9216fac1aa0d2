"""
Configuration module for the guide search service.

This module provides centralized configuration management using Pydantic settings.
All configuration values can be overridden via environment variables or .env file.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings for the guide search service.

    Attributes:
        SERVICE_NAME: Name used in logs and health responses
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_JSON: Render logs as JSON instead of console output
        CATALOG_PATH: JSON catalog snapshot loaded at startup
        SEARCH_THRESHOLD: Minimum relevance score for a guide to be returned
        FUZZY_MAX_DISTANCE: Spread window of the character subsequence tier
        MIN_QUERY_LENGTH: Queries shorter than this return no results
        MAX_RESULTS: Maximum results per search
        DEBOUNCE_MS: Quiet interval before an interactive search runs
        ANALYTICS_HISTORY_SIZE: Number of recent searches kept for statistics
        HIGHLIGHT_OPEN_TAG: Marker inserted before highlighted text
        HIGHLIGHT_CLOSE_TAG: Marker inserted after highlighted text
        CORS_ORIGINS: Comma separated list of allowed origins
    """

    SERVICE_NAME: str = Field(
        default="guide-search-service",
        description="Name of the service for log identification",
    )

    # Logging configuration
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    LOG_JSON: bool = Field(
        default=False,
        description="Use JSON structured logging instead of console rendering",
    )

    # Catalog
    CATALOG_PATH: Optional[str] = Field(
        default=None,
        description="Path of the JSON catalog snapshot",
    )

    # Ranking configuration
    SEARCH_THRESHOLD: float = Field(
        default=0.3,
        ge=0.0,
        le=10.0,
        description="Minimum relevance score",
    )
    FUZZY_MAX_DISTANCE: int = Field(
        default=100,
        ge=1,
        le=10_000,
        description="Spread window for character subsequence matching",
    )
    MIN_QUERY_LENGTH: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Minimum query length that triggers a search",
    )
    MAX_RESULTS: int = Field(
        default=8,
        ge=1,
        le=100,
        description="Maximum results per search",
    )

    # Interactive session configuration
    DEBOUNCE_MS: int = Field(
        default=200,
        ge=0,
        le=5_000,
        description="Debounce interval in milliseconds",
    )
    ANALYTICS_HISTORY_SIZE: int = Field(
        default=100,
        ge=1,
        le=100_000,
        description="Number of recent searches kept for statistics",
    )

    # Highlighting
    HIGHLIGHT_OPEN_TAG: str = Field(
        default='<mark class="search-highlight">',
        description="Marker inserted before highlighted text",
    )
    HIGHLIGHT_CLOSE_TAG: str = Field(
        default="</mark>",
        description="Marker inserted after highlighted text",
    )

    CORS_ORIGINS: str = Field(
        default="*",
        description="Comma separated list of allowed origins",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("HIGHLIGHT_OPEN_TAG", "HIGHLIGHT_CLOSE_TAG")
    @classmethod
    def validate_marker(cls, value: str) -> str:
        """
        Validate that highlight markers are not empty.

        Args:
            value: The marker to validate

        Returns:
            The validated marker

        Raises:
            ValueError: If marker is empty
        """
        if not value:
            raise ValueError("Highlight marker cannot be empty")
        return value

    @field_validator("CATALOG_PATH")
    @classmethod
    def validate_catalog_path(cls, value: Optional[str]) -> Optional[str]:
        """Treat a blank path as unset."""
        if value is not None and not value.strip():
            return None
        return value

    @property
    def debounce_seconds(self) -> float:
        return self.DEBOUNCE_MS / 1000

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
