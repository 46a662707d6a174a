"""Generative suggestion normalizer."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from discovery.extractors import (
    classify_expense,
    extract_store_name,
    parse_price_value,
    score_confidence,
    truncate,
)
from discovery.models import AlternativeCandidate, Expense
from discovery.utils.url import ensure_absolute

logger = logging.getLogger(__name__)


def normalize_generative_item(
    item: Mapping[str, Any],
    expense: Expense,
    *,
    index: int,
    provider_id: str = "openai",
    model: str = "",
) -> Optional[AlternativeCandidate]:
    name = str(item.get("name") or "").strip()
    price = parse_price_value(item.get("price"))
    if not name or price is None:
        logger.debug(f"[{provider_id}] Dropping suggestion without name or price: {item!r}")
        return None
    if price >= expense.amount:
        logger.debug(f"[{provider_id}] Dropping '{name}': ${price} is not below ${expense.amount}")
        return None

    description = str(item.get("description") or "").strip()
    url = ensure_absolute(str(item.get("url") or ""))
    candidate_type = classify_expense(expense)
    text = f"{name} {description}"

    return AlternativeCandidate(
        id=f"{provider_id}-{index}",
        name=truncate(name, 80),
        description=description,
        price=price,
        savings=round(expense.amount - price, 2),
        url=url,
        source=extract_store_name(text, url),
        type=candidate_type,
        confidence=score_confidence(text, price, expense.amount, candidate_type=candidate_type),
        provider_id=provider_id,
        provenance={"provider": provider_id, "model": model},
    )
