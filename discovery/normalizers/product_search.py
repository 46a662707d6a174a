"""Product search normalizer."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from discovery.extractors import (
    classify_expense,
    extract_store_name,
    parse_price_value,
    score_confidence,
)
from discovery.models import AlternativeCandidate, Expense
from discovery.utils.url import ensure_absolute


def normalize_product_item(
    item: Mapping[str, Any],
    expense: Expense,
    *,
    index: int,
    provider_id: str = "firecrawl",
) -> Optional[AlternativeCandidate]:
    title = str(item.get("title") or "").strip()
    price = parse_price_value(item.get("price"))
    if not title or price is None or price >= expense.amount:
        return None

    url = ensure_absolute(str(item.get("productUrl") or item.get("url") or ""))
    description = str(item.get("description") or "") or f"Alternative to {expense.name}"
    source = str(item.get("source") or "").strip() or extract_store_name(title, url)
    candidate_type = classify_expense(expense)

    return AlternativeCandidate(
        id=f"{provider_id}-{index}",
        name=title,
        description=description,
        price=price,
        savings=round(expense.amount - price, 2),
        url=url,
        source=source,
        type=candidate_type,
        confidence=score_confidence(
            f"{title} {description}", price, expense.amount, candidate_type=candidate_type
        ),
        provider_id=provider_id,
        image_url=item.get("imageUrl"),
        provenance={"provider": provider_id},
    )
