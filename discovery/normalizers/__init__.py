"""Normalizers that map raw provider payload items into ``AlternativeCandidate``."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from discovery.models import AlternativeCandidate, Expense
from discovery.normalizers.generative import normalize_generative_item
from discovery.normalizers.product_search import normalize_product_item
from discovery.normalizers.shopping import normalize_shopping_item
from discovery.normalizers.web_search import is_relevant_result, normalize_web_result

logger = logging.getLogger(__name__)

Normalizer = Callable[..., Optional[AlternativeCandidate]]

NORMALIZERS: Dict[str, Normalizer] = {
    "openai": normalize_generative_item,
    "brave": normalize_web_result,
    "serper": normalize_shopping_item,
    "firecrawl": normalize_product_item,
}


def normalize_results_for_provider(
    provider_id: str,
    items: Iterable[Any],
    expense: Expense,
    *args: Any,
    **kwargs: Any,
) -> List[AlternativeCandidate]:
    """Run every raw item through the provider's normalizer, dropping rejects.

    Items that are not JSON objects are discarded at this edge.
    """
    normalizer = NORMALIZERS.get(provider_id)
    if normalizer is None:
        raise KeyError(f"No normalizer registered for provider '{provider_id}'")

    candidates: List[AlternativeCandidate] = []
    dropped = 0
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            dropped += 1
            continue
        candidate = normalizer(item, expense, *args, index=index, provider_id=provider_id, **kwargs)
        if candidate is None:
            dropped += 1
            continue
        candidates.append(candidate)

    if dropped:
        logger.debug(f"[{provider_id}] Normalizer dropped {dropped} raw items")
    return candidates


__all__ = [
    "NORMALIZERS",
    "normalize_results_for_provider",
    "normalize_generative_item",
    "normalize_web_result",
    "normalize_shopping_item",
    "normalize_product_item",
    "is_relevant_result",
]
