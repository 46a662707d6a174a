"""Heuristic confidence scoring for extracted prices."""

from __future__ import annotations

import re
from typing import Optional

from discovery.constants import MARKETPLACES, REPUTABLE_RETAILERS

BASE_CONFIDENCE = 70

_OFFICIAL_RE = re.compile(r"\bofficial\b", re.IGNORECASE)
_COMPARISON_RE = re.compile(r"\b(?:compare|comparison|vs\.?|versus|price\s+match)\b", re.IGNORECASE)
_EXPLICIT_RE = re.compile(r"\b(?:only|now|price:|just)\b", re.IGNORECASE)
_APPROXIMATE_RE = re.compile(
    r"(?:\b(?:around|approximately|approx\.?|about|roughly|est\.?|estimated)\b|~\s*\$?\d)",
    re.IGNORECASE,
)

# Below this share of the original price a saving is implausible for the type.
LOW_PRICE_FLOORS = {
    "insurance": 0.5,
    "subscription": 0.3,
    "service": 0.2,
    "physical": 0.2,
}


def score_confidence(
    text: str,
    price: Optional[float],
    original_price: float,
    *,
    candidate_type: str = "physical",
    base: int = BASE_CONFIDENCE,
) -> int:
    score = base
    text = text or ""

    if _OFFICIAL_RE.search(text):
        score += 10
    if _COMPARISON_RE.search(text):
        score += 10
    if _EXPLICIT_RE.search(text):
        score += 5
    if _APPROXIMATE_RE.search(text):
        score -= 15

    if price is not None and original_price > 0:
        ratio = price / original_price
        if ratio > 0.9:
            score -= 15
        elif ratio < LOW_PRICE_FLOORS.get(candidate_type, 0.2):
            score -= 25

    return max(0, min(100, score))


def retailer_confidence(source: Optional[str], base: int = BASE_CONFIDENCE) -> int:
    """Confidence for literal shopping listings, driven by who is selling."""
    score = base
    name = (source or "").lower()
    if any(retailer in name for retailer in REPUTABLE_RETAILERS):
        score += 20
    if any(marketplace in name for marketplace in MARKETPLACES):
        score -= 20
    return max(0, min(100, score))
