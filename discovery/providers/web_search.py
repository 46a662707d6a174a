"""Brave web search provider, throttled by a shared minimum-interval gate."""

from __future__ import annotations

import logging
from typing import List, Optional

from discovery.constants import RETAILER_HINTS
from discovery.exceptions import ConfigurationError
from discovery.extractors import classify_expense, expense_category_group, search_locality, significant_words
from discovery.models import AlternativeCandidate, Expense, ProviderQuery, UserPreferences
from discovery.normalizers import normalize_results_for_provider
from discovery.progress import ProgressReporter
from discovery.providers.base import AlternativeProvider
from discovery.ratelimit import MinIntervalGate

logger = logging.getLogger(__name__)


class BraveSearchProvider(AlternativeProvider):
    provider_id = "brave"

    def __init__(self, api_key: Optional[str], gate: Optional[MinIntervalGate] = None):
        self.api_key = api_key
        self.gate = gate
        self.base_url = "https://api.search.brave.com/res/v1/web/search"
        self.result_count = 15

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def build_query(self, expense: Expense, preferences: UserPreferences) -> ProviderQuery:
        parts = [f"cheaper alternative to {expense.name} price comparison"]
        if expense.category:
            parts.append(expense.category)
        words = significant_words(expense.description, limit=5, min_length=4)
        if words:
            parts.append(" ".join(words))
        locality = search_locality(expense, preferences)
        if locality:
            parts.append(locality)

        group = expense_category_group(expense)
        if classify_expense(expense) == "physical":
            parts.extend(RETAILER_HINTS.get(group, RETAILER_HINTS["general"]))
        parts.append(f"under ${expense.amount:g}")

        return self._base_query(
            expense,
            preferences,
            " ".join(parts),
            filters={"count": self.result_count},
            metadata={"category_group": group},
        )

    async def search(
        self,
        expense: Expense,
        query: ProviderQuery,
        *,
        progress: Optional[ProgressReporter] = None,
    ) -> List[AlternativeCandidate]:
        if not self.api_key:
            raise ConfigurationError("BRAVE_API_KEY is not set", detail={"provider": self.provider_id})

        params = {
            "q": query.query,
            "count": self.result_count,
            "country": query.country_code.upper(),
            "search_lang": "en",
        }
        headers = {"Accept": "application/json", "X-Subscription-Token": self.api_key}

        if self.gate is not None:
            waited = await self.gate.acquire()
            if waited:
                logger.info(f"[BraveSearchProvider] Throttled for {waited:.2f}s")

        self._report(progress, "searching", 30)
        data = await self._request_json("GET", self.base_url, timeout=15.0, params=params, headers=headers)

        self._report(progress, "processing", 60)
        web = data.get("web") if isinstance(data, dict) else None
        results = (web.get("results") if isinstance(web, dict) else None) or []
        if not isinstance(results, list):
            logger.warning("[BraveSearchProvider] web.results is not a list, ignoring response")
            return []

        self._report(progress, "formatting", 80)
        candidates = normalize_results_for_provider(self.provider_id, results, expense)
        candidates.sort(key=lambda c: c.savings, reverse=True)
        logger.info(f"[BraveSearchProvider] {len(candidates)} of {len(results)} results usable")
        return candidates
