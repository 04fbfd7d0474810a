"""
Runtime configuration for the Yayasan ERP finance front end.

Everything is read from environment variables so the same build can point
at a local backend during development and at the production API:

- YAYASAN_API_BASE_URL: base URL of the ERP REST backend (including /api/v1)
- YAYASAN_API_TOKEN: bearer token forwarded to the backend
- YAYASAN_API_TIMEOUT: request timeout in seconds
- YAYASAN_CACHE_STALE_SECONDS: how long cached reads are served without refetching
- YAYASAN_DEFAULT_PAGE_SIZE / YAYASAN_MAX_PAGE_SIZE: list pagination bounds
- YAYASAN_CORS_ORIGINS: comma separated list of allowed browser origins
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from yayasan_erp.services.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:8080/api/v1"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(name, f"Expected a number, got '{raw}'")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(name, f"Expected an integer, got '{raw}'")


@dataclass
class Settings:
    """Application settings. Build with `Settings.from_env()` in production."""
    api_base_url: str = DEFAULT_API_BASE_URL
    api_token: Optional[str] = None
    api_timeout: float = 30.0
    cache_stale_seconds: float = 30.0
    default_page_size: int = 20
    max_page_size: int = 100
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self):
        self.api_base_url = self.api_base_url.rstrip("/")
        if self.api_timeout <= 0:
            raise ConfigError("YAYASAN_API_TIMEOUT", "Timeout must be positive")
        if self.cache_stale_seconds < 0:
            raise ConfigError("YAYASAN_CACHE_STALE_SECONDS", "Stale time cannot be negative")
        if not (1 <= self.default_page_size <= self.max_page_size):
            raise ConfigError(
                "YAYASAN_DEFAULT_PAGE_SIZE",
                f"Default page size must be between 1 and {self.max_page_size}",
            )

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("YAYASAN_CORS_ORIGINS", "*")
        settings = cls(
            api_base_url=os.getenv("YAYASAN_API_BASE_URL", DEFAULT_API_BASE_URL),
            api_token=os.getenv("YAYASAN_API_TOKEN") or None,
            api_timeout=_env_float("YAYASAN_API_TIMEOUT", 30.0),
            cache_stale_seconds=_env_float("YAYASAN_CACHE_STALE_SECONDS", 30.0),
            default_page_size=_env_int("YAYASAN_DEFAULT_PAGE_SIZE", 20),
            max_page_size=_env_int("YAYASAN_MAX_PAGE_SIZE", 100),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )
        if not settings.api_token:
            logger.warning("YAYASAN_API_TOKEN is not set; backend calls will be unauthenticated")
        return settings
