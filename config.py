"""Centralized configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

_TRUE = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUE


@dataclass(frozen=True)
class DevtoConfig:
    """Dev.to REST API settings."""

    api_key: str = ""
    enabled: bool = True
    api_base: str = "https://dev.to/api"
    listing_cap: int = 1000  # /articles/me/all is fetched once, capped
    max_tags: int = 4
    drop_empty_tags: bool = True
    strict_lookup: bool = False


@dataclass(frozen=True)
class HashnodeConfig:
    """Hashnode GraphQL API settings."""

    access_token: str = ""
    publication_id: str = ""
    enabled: bool = True
    endpoint: str = "https://gql.hashnode.com"
    page_size: int = 20
    max_pages: int = 50
    strict_lookup: bool = False


@dataclass(frozen=True)
class Config:
    """Application configuration with sensible defaults.

    All values are read from environment variables at construction time;
    nothing else in the program reads the environment.
    """

    # --- Backends ---
    devto: DevtoConfig = field(default_factory=DevtoConfig)
    hashnode: HashnodeConfig = field(default_factory=HashnodeConfig)

    # --- Site ---
    base_url: str = "http://dortort.com"
    article_extension: str = ".md"

    # --- Paths ---
    data_dir: Path = field(default_factory=lambda: Path("data"))
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Config:
        """Build config from environment variables."""
        strict_lookup = _env_flag("STRICT_LOOKUP", False)
        return cls(
            devto=DevtoConfig(
                api_key=os.getenv("DEVTO_API_KEY", ""),
                enabled=_env_flag("DEVTO_ENABLED", True),
                listing_cap=int(os.getenv("DEVTO_LISTING_CAP", "1000")),
                drop_empty_tags=_env_flag("DROP_EMPTY_TAGS", True),
                strict_lookup=strict_lookup,
            ),
            hashnode=HashnodeConfig(
                access_token=os.getenv("HASHNODE_ACCESS_TOKEN", ""),
                publication_id=os.getenv("HASHNODE_PUBLICATION_ID", ""),
                enabled=_env_flag("HASHNODE_ENABLED", True),
                strict_lookup=strict_lookup,
            ),
            base_url=os.getenv("SITE_BASE_URL", "http://dortort.com"),
            data_dir=Path(os.getenv("DATA_DIR", "data")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"
