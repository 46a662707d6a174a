"""Provider registry for discovery runs."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from discovery.config import DiscoverySettings
from discovery.models import Expense, ProviderQueryMap, UserPreferences
from discovery.providers.base import AlternativeProvider
from discovery.providers.generative import OpenAISuggestionProvider
from discovery.providers.product_search import FirecrawlProductProvider
from discovery.providers.shopping import SerperShoppingProvider
from discovery.providers.web_search import BraveSearchProvider
from discovery.ratelimit import MinIntervalGate

logger = logging.getLogger(__name__)

PROVIDER_ORDER = ("openai", "brave", "serper", "firecrawl")


def build_default_providers(
    settings: DiscoverySettings,
    gate: Optional[MinIntervalGate] = None,
) -> Dict[str, AlternativeProvider]:
    """Instantiate every provider in dispatch order, honouring DISCOVERY_PROVIDERS.

    Providers without credentials are still registered so that their
    ``unconfigured`` status shows up in the run result.
    """
    if gate is None:
        gate = MinIntervalGate(settings.web_search_min_interval_seconds)

    candidates: Dict[str, AlternativeProvider] = {
        "openai": OpenAISuggestionProvider(settings.openai_api_key, settings.openai_model),
        "brave": BraveSearchProvider(settings.brave_api_key, gate=gate),
        "serper": SerperShoppingProvider(settings.serper_api_key),
        "firecrawl": FirecrawlProductProvider(settings.firecrawl_api_key),
    }
    providers = {
        provider_id: candidates[provider_id]
        for provider_id in PROVIDER_ORDER
        if settings.provider_enabled(provider_id)
    }
    logger.info(f"[Providers] Registered providers: {list(providers.keys())}")
    return providers


def available_provider_ids(providers: Dict[str, AlternativeProvider]) -> List[str]:
    """Ids of providers that hold credentials, in dispatch order."""
    return [provider_id for provider_id, provider in providers.items() if provider.configured]


def build_provider_queries(
    providers: Dict[str, AlternativeProvider],
    expense: Expense,
    preferences: UserPreferences,
) -> ProviderQueryMap:
    queries = ProviderQueryMap()
    for provider in providers.values():
        queries.add(provider.build_query(expense, preferences))
    return queries


__all__ = [
    "PROVIDER_ORDER",
    "AlternativeProvider",
    "OpenAISuggestionProvider",
    "BraveSearchProvider",
    "SerperShoppingProvider",
    "FirecrawlProductProvider",
    "build_default_providers",
    "available_provider_ids",
    "build_provider_queries",
]
