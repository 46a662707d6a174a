"""Environment-driven settings for discovery runs."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_TIMEOUT_SECONDS = 12.0
DEFAULT_WEB_SEARCH_MIN_INTERVAL_SECONDS = 1.0
DEFAULT_MAX_RESULTS = 5
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

_TRUTHY = {"1", "true", "yes", "on"}


class DiscoverySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    brave_api_key: Optional[str] = None
    serper_api_key: Optional[str] = None
    firecrawl_api_key: Optional[str] = None
    google_places_api_key: Optional[str] = None
    provider_timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS
    web_search_min_interval_seconds: float = DEFAULT_WEB_SEARCH_MIN_INTERVAL_SECONDS
    max_results: int = DEFAULT_MAX_RESULTS
    validate_urls: bool = False
    # Empty means every registered provider runs.
    enabled_providers: Tuple[str, ...] = ()

    def provider_enabled(self, provider_id: str) -> bool:
        return not self.enabled_providers or provider_id in self.enabled_providers


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _clean(env.get(name))
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"[Config] Invalid {name}={raw!r}, using default {default}")
        return default
    if value <= 0:
        logger.warning(f"[Config] {name} must be positive, using default {default}")
        return default
    return value


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _clean(env.get(name))
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"[Config] Invalid {name}={raw!r}, using default {default}")
        return default
    if value <= 0:
        logger.warning(f"[Config] {name} must be positive, using default {default}")
        return default
    return value


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    *,
    dotenv_path: Optional[Path] = None,
) -> DiscoverySettings:
    """Build settings from ``env`` (defaults to ``os.environ`` after loading .env)."""
    if env is None:
        load_dotenv(dotenv_path=dotenv_path, override=False)
        env = os.environ

    providers_raw = _clean(env.get("DISCOVERY_PROVIDERS")) or ""
    enabled = tuple(p.strip().lower() for p in providers_raw.split(",") if p.strip())

    return DiscoverySettings(
        openai_api_key=_clean(env.get("OPENAI_API_KEY")),
        openai_model=_clean(env.get("OPENAI_MODEL")) or DEFAULT_OPENAI_MODEL,
        brave_api_key=_clean(env.get("BRAVE_API_KEY")),
        serper_api_key=_clean(env.get("SERPER_DEV_API_KEY")),
        firecrawl_api_key=_clean(env.get("FIRECRAWL_API_KEY")),
        google_places_api_key=_clean(env.get("GOOGLE_PLACES_API_KEY")),
        provider_timeout_seconds=_float_env(
            env, "DISCOVERY_PROVIDER_TIMEOUT_SECONDS", DEFAULT_PROVIDER_TIMEOUT_SECONDS
        ),
        web_search_min_interval_seconds=_float_env(
            env,
            "DISCOVERY_WEB_SEARCH_MIN_INTERVAL_SECONDS",
            DEFAULT_WEB_SEARCH_MIN_INTERVAL_SECONDS,
        ),
        max_results=_int_env(env, "DISCOVERY_MAX_RESULTS", DEFAULT_MAX_RESULTS),
        validate_urls=(_clean(env.get("DISCOVERY_VALIDATE_URLS")) or "").lower() in _TRUTHY,
        enabled_providers=enabled,
    )
