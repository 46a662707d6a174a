"""Shopping listing normalizer."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from discovery.extractors import (
    matches_specifications,
    parse_price_value,
    retailer_confidence,
    store_name_from_url,
    truncate,
)
from discovery.models import AlternativeCandidate, Expense
from discovery.utils.url import ensure_absolute

logger = logging.getLogger(__name__)


def normalize_shopping_item(
    item: Mapping[str, Any],
    expense: Expense,
    specs: Mapping[str, str],
    *,
    index: int,
    provider_id: str = "serper",
) -> Optional[AlternativeCandidate]:
    """Map one shopping listing; listings must match the expense's specs exactly."""
    title = str(item.get("title") or "").strip()
    price = parse_price_value(item.get("price"))
    if not title or price is None or price >= expense.amount:
        return None
    if not matches_specifications(title, specs, strict=True):
        logger.debug(f"[{provider_id}] Spec mismatch for '{title}' (wanted {dict(specs)})")
        return None

    url = ensure_absolute(str(item.get("link") or ""))
    store = str(item.get("source") or "").strip() or store_name_from_url(url)

    return AlternativeCandidate(
        id=f"{provider_id}-{index}",
        name=truncate(f"{store}: {title}", 100),
        description=str(item.get("description") or "") or f"Alternative to {expense.name}",
        price=price,
        savings=round(expense.amount - price, 2),
        url=url,
        source=store,
        type="physical",
        confidence=retailer_confidence(store),
        provider_id=provider_id,
        image_url=item.get("imageUrl"),
        provenance={"provider": provider_id, "specs": dict(specs)},
    )
