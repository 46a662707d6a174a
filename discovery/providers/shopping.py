"""Serper shopping provider: literal product listings filtered by exact specs."""

from __future__ import annotations

import logging
from typing import List, Optional

from discovery.exceptions import ConfigurationError
from discovery.extractors import expense_specifications, search_locality
from discovery.models import AlternativeCandidate, Expense, ProviderQuery, UserPreferences
from discovery.normalizers import normalize_results_for_provider
from discovery.progress import ProgressReporter
from discovery.providers.base import AlternativeProvider

logger = logging.getLogger(__name__)


class SerperShoppingProvider(AlternativeProvider):
    provider_id = "serper"

    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key
        self.base_url = "https://google.serper.dev/shopping"
        self.num_results = 25

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def build_query(self, expense: Expense, preferences: UserPreferences) -> ProviderQuery:
        specs = expense_specifications(expense.name, expense.description)
        parts = [expense.name]
        for key in ("volume", "weight"):
            if key in specs and specs[key].lower() not in expense.name.lower():
                parts.append(specs[key])
        if "size" in specs:
            parts.append(f"size {specs['size']}")
        locality = search_locality(expense, preferences)
        if locality:
            parts.append(f"in {locality} {preferences.country}")
        parts.append("supermarket store retail")

        return self._base_query(expense, preferences, " ".join(parts), filters=dict(specs))

    async def search(
        self,
        expense: Expense,
        query: ProviderQuery,
        *,
        progress: Optional[ProgressReporter] = None,
    ) -> List[AlternativeCandidate]:
        if not self.api_key:
            raise ConfigurationError(
                "SERPER_DEV_API_KEY is not set", detail={"provider": self.provider_id}
            )

        specs = {key: str(value) for key, value in query.filters.items()}
        payload = {
            "q": query.query,
            "gl": query.country_code,
            "hl": "en",
            "num": self.num_results,
        }
        headers = {"X-API-KEY": self.api_key, "Content-Type": "application/json"}

        self._report(progress, "searching", 30)
        data = await self._request_json("POST", self.base_url, timeout=15.0, json=payload, headers=headers)

        self._report(progress, "processing", 60)
        listings = data.get("shopping") if isinstance(data, dict) else None
        if not isinstance(listings, list):
            logger.warning("[SerperShoppingProvider] Response has no shopping list")
            return []

        self._report(progress, "formatting", 80)
        candidates = normalize_results_for_provider(self.provider_id, listings, expense, specs)
        logger.info(
            f"[SerperShoppingProvider] {len(candidates)} of {len(listings)} listings match "
            f"price and specs {specs}"
        )
        return candidates
