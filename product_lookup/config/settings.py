"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

Features:
---------
- Environment variable loading with type validation
- .env file support for local development
- Computed properties for derived values (cache namespace, paths)

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Dataset Versioning:
------------------
The cache namespace is built as ``{cache_name}-{dataset_version}``.
Bumping DATASET_VERSION is the only way to invalidate cached datasets:
entries under the previous namespace are simply never read again.

==============================================================================
"""

from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        dataset_url: URL the product dataset is downloaded from
        dataset_key: Resource key of the dataset inside the cache namespace
        cache_name: Base name of the cache namespace
        dataset_version: Version token embedded in the cache namespace
        cache_directory: Root directory of the persistent cache
        product_table: Master table queried by the resolution engine
        fetch_timeout_seconds: Optional network timeout (None = no timeout)
        download_chunk_size: Optional re-chunking size for streamed downloads
        vat_required_default: Whether prices include VAT unless asked otherwise
        cors_origins: Allowed CORS origins (JSON array string)

    Example:
        >>> settings = Settings()
        >>> settings.cache_namespace
        'localdb-cache-v1'
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Product Lookup API",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=True,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # DATASET SETTINGS
    # =========================================================================
    dataset_url: str = Field(
        default="http://localhost:8080/localDB.db",
        description="URL of the product dataset (SQLite file)"
    )

    dataset_key: str = Field(
        default="localDB.db",
        min_length=1,
        description="Resource key of the dataset inside the cache namespace"
    )

    product_table: str = Field(
        default="localmaster",
        description="Master table holding product rows"
    )

    fetch_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Network timeout for the dataset download (None disables it)"
    )

    download_chunk_size: Optional[int] = Field(
        default=None,
        ge=1024,
        description="Re-chunk streamed downloads to this size (None keeps server chunks)"
    )

    # =========================================================================
    # CACHE SETTINGS
    # =========================================================================
    cache_name: str = Field(
        default="localdb-cache",
        min_length=1,
        description="Base name of the persistent cache namespace"
    )

    dataset_version: str = Field(
        default="v1",
        description="Version token; bump it when the dataset changes"
    )

    cache_directory: str = Field(
        default="storage/cache",
        description="Root directory of the persistent dataset cache"
    )

    # =========================================================================
    # PRICING SETTINGS
    # =========================================================================
    vat_required_default: bool = Field(
        default=True,
        description="Include VAT in resolved prices unless the caller opts out"
    )

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """
        Validate and normalize application environment.

        Unknown values fall back to 'development' with a warning.
        """
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("dataset_version")
    @classmethod
    def validate_dataset_version(cls, value: str) -> str:
        """
        Validate the dataset version token.

        Raises:
            ValueError: If the token is empty or contains path separators
        """
        token = value.strip()
        if not token:
            raise ValueError("dataset_version must not be empty")
        if "/" in token or "\\" in token:
            raise ValueError(f"dataset_version must not contain path separators: {value!r}")
        return token

    @field_validator("product_table")
    @classmethod
    def validate_product_table(cls, value: str) -> str:
        """
        Validate the master table name.

        The name is interpolated into SQL, so only plain identifiers pass.

        Raises:
            ValueError: If the name is not a plain SQL identifier
        """
        if not _IDENTIFIER_RE.match(value):
            raise ValueError(f"product_table must be a plain identifier: {value!r}")
        return value

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def cache_namespace(self) -> str:
        """Versioned cache namespace, e.g. 'localdb-cache-v1'."""
        return f"{self.cache_name}-{self.dataset_version}"

    @property
    def cache_path(self) -> Path:
        """
        Get cache root as Path object.

        Returns:
            Path object pointing to the cache directory
        """
        return Path(self.cache_directory)

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================
    def ensure_directories(self) -> None:
        """Create the cache root directory."""
        self.cache_path.mkdir(parents=True, exist_ok=True)
        logger.debug("Required directories created/verified")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"cache_namespace={self.cache_namespace!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance (singleton pattern).

    Uses lru_cache to ensure only one Settings instance is created
    throughout the application lifecycle.

    Returns:
        Global Settings instance
    """
    settings = Settings()

    settings.ensure_directories()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
