"""Rule-based price extraction from free text.

Rules are tried in order. Within a rule every match is considered, and the
first value that is positive and under the guard threshold wins. Nothing is
ever invented: when no rule produces an acceptable value the result is None.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Tuple

_NUMBER = r"(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)"


@dataclass(frozen=True)
class PriceRule:
    name: str
    pattern: re.Pattern
    # Candidate types the rule is limited to; None means every type.
    applies_to: Optional[FrozenSet[str]] = None

    def candidates(self, text: str) -> Iterable[float]:
        for match in self.pattern.finditer(text):
            value = _to_float(match.group(1))
            if value is not None:
                yield value


def _rule(name: str, pattern: str, applies_to: Optional[Iterable[str]] = None) -> PriceRule:
    return PriceRule(
        name=name,
        pattern=re.compile(pattern, re.IGNORECASE),
        applies_to=frozenset(applies_to) if applies_to else None,
    )


PRICE_RULES: Tuple[PriceRule, ...] = (
    _rule(
        "currency_decimal",
        r"\$\s?(\d{1,3}(?:,\d{3})+\.\d{1,2}|\d+\.\d{1,2})(?!\d)"
        r"(?:\s*/\s*mo|\s*per\s*month|\s*monthly)?",
    ),
    _rule("currency_integer", r"\$\s?(\d{1,3}(?:,\d{3})+|\d+)(?!\d|[.,]\d)"),
    _rule("labelled_price", r"(?:price|cost)s?\s*(?:is|of|:)?\s*\$?\s?" + _NUMBER),
    _rule("per_month", _NUMBER + r"\s*(?:/|per)\s*mo(?:nth)?\b"),
    _rule("monthly_rate", r"monthly\s*(?:cost|price|rate|fee)s?\s*:?\s*\$?\s?" + _NUMBER),
    _rule("dollars_word", _NUMBER + r"\s*(?:dollars|usd|aud)\b"),
    _rule(
        "insurance_premium",
        r"premiums?\s+(?:from|starting\s+(?:at|from)|of)\s+\$?\s?" + _NUMBER,
        applies_to=("insurance",),
    ),
    _rule(
        "subscription_plan",
        r"(?:plans?|subscriptions?|memberships?)\s+(?:from|start(?:s|ing)?\s+(?:at|from))\s+\$?\s?"
        + _NUMBER,
        applies_to=("subscription", "service"),
    ),
)


def _to_float(raw: str) -> Optional[float]:
    try:
        return float(raw.replace(",", ""))
    except (TypeError, ValueError):
        return None


def extract_price_with_rule(
    text: str,
    original_price: float,
    *,
    ceiling_ratio: float = 1.0,
    candidate_type: Optional[str] = None,
    rules: Tuple[PriceRule, ...] = PRICE_RULES,
) -> Tuple[Optional[float], Optional[str]]:
    """Return ``(price, rule_name)`` for the first acceptable match, or ``(None, None)``."""
    if not text or original_price is None or original_price <= 0:
        return None, None

    ceiling = original_price * ceiling_ratio
    for rule in rules:
        if rule.applies_to is not None and candidate_type not in rule.applies_to:
            continue
        for value in rule.candidates(text):
            if 0 < value < ceiling:
                return value, rule.name
    return None, None


def extract_price(
    text: str,
    original_price: float,
    *,
    ceiling_ratio: float = 1.0,
    candidate_type: Optional[str] = None,
) -> Optional[float]:
    price, _ = extract_price_with_rule(
        text, original_price, ceiling_ratio=ceiling_ratio, candidate_type=candidate_type
    )
    return price


def parse_price_value(value: object) -> Optional[float]:
    """Parse a structured provider price field (number, "$1,299.00", {"value": ...})."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dict):
        return parse_price_value(value.get("value") or value.get("amount"))
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else None
    cleaned = re.sub(r"[^0-9.]", "", str(value))
    if not cleaned:
        return None
    try:
        parsed = float(cleaned)
    except ValueError:
        return None
    return parsed if parsed > 0 else None
