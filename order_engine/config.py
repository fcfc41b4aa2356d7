"""
Centralized configuration with environment variable overrides.

Business names, catalog location, search thresholds, session TTL and
notification credentials are configurable here. Nothing is hardcoded in
the conversation or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _optional(env_var: str) -> Optional[str]:
    value = os.getenv(env_var, "").strip()
    return value or None


@dataclass(frozen=True)
class BusinessConfig:
    """Store identity used in replies and notifications."""

    name: str = os.getenv("COMPANY_NAME", "Perrote y Gatote")
    bot_name: str = os.getenv("BOT_NAME", "Asesor")


@dataclass(frozen=True)
class CatalogConfig:
    """Where the product catalog is loaded from at startup."""

    path: str = os.getenv(
        "PRODUCTS_JSON_PATH",
        os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "products.json"),
    )


@dataclass(frozen=True)
class SearchConfig:
    """Fuzzy catalog matching parameters."""

    max_results: int = _safe_int("SEARCH_MAX_RESULTS", "5")
    strict_similarity: float = _safe_float("SEARCH_STRICT_SIMILARITY", "0.80")
    threshold: float = _safe_float("SEARCH_THRESHOLD", "0.5")
    distance: int = _safe_int("SEARCH_DISTANCE", "3")
    min_token_length: int = _safe_int("SEARCH_MIN_TOKEN_LENGTH", "3")


@dataclass(frozen=True)
class SessionConfig:
    """Session persistence settings."""

    redis_url: str = os.getenv("REDIS_URL", "redis://127.0.0.1:6379")
    ttl_days: int = _safe_int("MEMORY_TTL_DAYS", "30")

    @property
    def ttl_seconds(self) -> int:
        return self.ttl_days * SECONDS_PER_DAY


@dataclass(frozen=True)
class NotificationConfig:
    """Order notification channel (Telegram) settings."""

    telegram_bot_token: Optional[str] = _optional("TELEGRAM_BOT_TOKEN")
    telegram_chat_id: Optional[str] = _optional("TELEGRAM_CHAT_ID")
    telegram_timeout_seconds: float = _safe_float("TELEGRAM_TIMEOUT_SECONDS", "10")

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    for name, value in [
        ("SEARCH_STRICT_SIMILARITY", config.search.strict_similarity),
        ("SEARCH_THRESHOLD", config.search.threshold),
    ]:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")

    for name, value in [
        ("SEARCH_MAX_RESULTS", config.search.max_results),
        ("SEARCH_MIN_TOKEN_LENGTH", config.search.min_token_length),
        ("MEMORY_TTL_DAYS", config.session.ttl_days),
    ]:
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")

    if config.search.distance < 0:
        raise ValueError(f"SEARCH_DISTANCE must be >= 0, got {config.search.distance}")
    if config.notifications.telegram_timeout_seconds <= 0:
        raise ValueError(
            "TELEGRAM_TIMEOUT_SECONDS must be > 0, "
            f"got {config.notifications.telegram_timeout_seconds}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
