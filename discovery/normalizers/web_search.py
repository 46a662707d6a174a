"""Web search result normalizer."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from discovery.extractors import (
    classify_expense,
    clean_product_name,
    extract_price_with_rule,
    extract_store_name,
    score_confidence,
    summarize_description,
)
from discovery.models import AlternativeCandidate, Expense
from discovery.utils.url import ensure_absolute

logger = logging.getLogger(__name__)

PRICE_INDICATORS = ("$", "price", "cost", "month", "/mo", "dollars")
STORE_INDICATORS = (
    "store", "shop", "buy", "plan", "pricing", "package", "subscription",
    "service", "bundle", "supermarket",
)


def is_relevant_result(title: str, description: str, expense: Expense) -> bool:
    """Result must mention a price or store signal AND the product name or category."""
    text = f"{title} {description}".lower()
    has_signal = any(token in text for token in PRICE_INDICATORS + STORE_INDICATORS)
    if not has_signal:
        return False

    name = expense.name.lower()
    if name in text:
        return True
    if any(len(word) > 3 and word in text for word in name.split()):
        return True
    category = expense.category.lower().strip()
    return bool(category) and category in text


def normalize_web_result(
    item: Mapping[str, Any],
    expense: Expense,
    *,
    index: int,
    provider_id: str = "brave",
) -> Optional[AlternativeCandidate]:
    title = str(item.get("title") or "")
    description = str(item.get("description") or "")
    url = ensure_absolute(str(item.get("url") or ""))
    if not title or not url:
        return None
    if not is_relevant_result(title, description, expense):
        logger.debug(f"[{provider_id}] Skipping irrelevant result '{title}'")
        return None

    candidate_type = classify_expense(expense)
    text = f"{description} {title}"
    price, rule = extract_price_with_rule(
        text, expense.amount, candidate_type=candidate_type
    )
    if price is None:
        logger.debug(f"[{provider_id}] No usable price in '{title}'")
        return None

    return AlternativeCandidate(
        id=f"{provider_id}-{index}",
        name=clean_product_name(title, expense.name),
        description=summarize_description(description),
        price=price,
        savings=round(expense.amount - price, 2),
        url=url,
        source=extract_store_name(text, url),
        type=candidate_type,
        confidence=score_confidence(text, price, expense.amount, candidate_type=candidate_type),
        provider_id=provider_id,
        provenance={"provider": provider_id, "price_rule": rule},
    )
