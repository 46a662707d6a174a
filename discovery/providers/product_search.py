"""Firecrawl product search with labelled placeholder data when unavailable."""

from __future__ import annotations

import logging
import math
import re
from typing import Dict, List, Optional
from urllib.parse import quote_plus

from discovery.constants import PRODUCT_SEARCH_SOURCES
from discovery.extractors import classify_expense, expense_category_group
from discovery.models import AlternativeCandidate, Expense, ProviderQuery, UserPreferences
from discovery.normalizers import normalize_results_for_provider
from discovery.progress import ProgressReporter
from discovery.providers.base import AlternativeProvider

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "using fallback"

# (upper bound on amount, minimum share of the amount worth searching for)
_MIN_PRICE_SHARES = ((20, 0.1), (50, 0.2), (100, 0.3))
_LARGE_PURCHASE_SHARE = 0.5

_FALLBACK_VARIANTS = (
    ("", 0.10, "Amazon", "https://www.amazon.com/s?k={q}"),
    ("Economy ", 0.20, "Walmart", "https://www.walmart.com/search/?query={q}"),
    ("Basic ", 0.30, "Target", "https://www.target.com/s?searchTerm={q}"),
)
_FALLBACK_PREFIXES = {
    "grocery": "Value Brand",
    "electronics": "Budget Tech",
}


def price_range_for(amount: float) -> Dict[str, int]:
    """Acceptable price window; bigger purchases get a more conservative floor."""
    share = _LARGE_PURCHASE_SHARE
    for upper, candidate_share in _MIN_PRICE_SHARES:
        if amount <= upper:
            share = candidate_share
            break
    return {"min": max(1, math.floor(amount * share)), "max": math.ceil(amount)}


def relevant_sources(expense: Expense) -> List[str]:
    group = expense_category_group(expense)
    return list(PRODUCT_SEARCH_SOURCES.get(group, PRODUCT_SEARCH_SOURCES["general"]))


def search_terms_for(expense: Expense) -> str:
    if len(expense.name.strip()) > 3:
        return expense.name.strip()
    description = re.sub(
        r"receipt from|purchase at|payment to", "", expense.description, flags=re.IGNORECASE
    ).strip()
    if len(description) > 3:
        return description
    if expense.category:
        return f"{expense.category} alternatives"
    return ""


def fallback_candidates(expense: Expense, provider_id: str = "firecrawl") -> List[AlternativeCandidate]:
    """Deterministic, clearly tagged example candidates at 10/20/30% savings."""
    prefix = _FALLBACK_PREFIXES.get(expense_category_group(expense), "Discount")
    candidate_type = classify_expense(expense)
    q = quote_plus(expense.name)

    candidates = []
    for index, (variant, share, store, url_template) in enumerate(_FALLBACK_VARIANTS):
        price = round(expense.amount * (1 - share), 2)
        candidates.append(
            AlternativeCandidate(
                id=f"{provider_id}-example-{index}",
                name=f"{prefix} {variant}{expense.name}",
                description=f"Example listing for a cheaper {expense.name}. Not a live price.",
                price=price,
                savings=round(expense.amount - price, 2),
                url=url_template.format(q=q),
                source=store,
                type=candidate_type,
                confidence=50,
                provider_id=provider_id,
                is_synthetic=True,
                provenance={"provider": provider_id, "synthetic": True},
            )
        )
    return candidates


class FirecrawlProductProvider(AlternativeProvider):
    provider_id = "firecrawl"

    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key
        self.base_url = "https://api.firecrawl.dev/v1/products/search"
        self.limit = 5

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def build_query(self, expense: Expense, preferences: UserPreferences) -> ProviderQuery:
        price_range = price_range_for(expense.amount)
        return self._base_query(
            expense,
            preferences,
            search_terms_for(expense),
            filters={
                "sources": relevant_sources(expense),
                "min_price": price_range["min"],
                "max_price": price_range["max"],
                "limit": self.limit,
            },
        )

    def _fallback(
        self, expense: Expense, reason: str, progress: Optional[ProgressReporter]
    ) -> List[AlternativeCandidate]:
        logger.warning(f"[FirecrawlProductProvider] {reason}, {FALLBACK_MESSAGE}")
        self._report(progress, "error", message=FALLBACK_MESSAGE)
        return fallback_candidates(expense, self.provider_id)

    async def search(
        self,
        expense: Expense,
        query: ProviderQuery,
        *,
        progress: Optional[ProgressReporter] = None,
    ) -> List[AlternativeCandidate]:
        if not self.api_key:
            return self._fallback(expense, "FIRECRAWL_API_KEY is not set", progress)
        if not query.query:
            return self._fallback(expense, "No usable search terms", progress)

        payload = {
            "query": query.query,
            "limit": query.filters.get("limit", self.limit),
            "includeImages": True,
            "sources": query.filters.get("sources", []),
            "priceRange": {
                "min": query.filters.get("min_price"),
                "max": query.filters.get("max_price"),
            },
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        self._report(progress, "searching", 30)
        data = await self._request_json("POST", self.base_url, timeout=15.0, json=payload, headers=headers)

        self._report(progress, "processing", 60)
        products = data.get("results") if isinstance(data, dict) else None
        if not isinstance(products, list):
            logger.warning("[FirecrawlProductProvider] Response results is not a list, ignoring")
            return []

        self._report(progress, "formatting", 80)
        candidates = normalize_results_for_provider(self.provider_id, products, expense)
        logger.info(f"[FirecrawlProductProvider] {len(candidates)} of {len(products)} products usable")
        return candidates
