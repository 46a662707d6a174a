"""Expense classification and display-text helpers."""

from __future__ import annotations

import re
from typing import List

from discovery.models import CandidateType, Expense

_INSURANCE_TERMS = ("insurance", "cover", "policy")
_SUBSCRIPTION_TERMS = (
    "subscription", "plan", "monthly", "netflix", "spotify", "prime", "disney", "streaming",
)
_SERVICE_TERMS = ("service", "membership", "internet", "phone", "utility", "utilities", "gym")

_GROCERY_TERMS = (
    "grocery", "groceries", "food", "supermarket", "milk", "bread", "fruit", "vegetable",
    "meat", "chicken", "beef", "fish", "dairy", "grains",
)
_ELECTRONICS_TERMS = ("electronics", "computer", "laptop", "phone", "tech", "tablet", "tv")
_CLOTHING_TERMS = ("clothing", "clothes", "fashion", "apparel", "shoes", "footwear", "shirt", "pants")
_SPORTING_TERMS = ("sport", "fitness", "athletic")


def classify_expense(expense: Expense) -> CandidateType:
    """Decide what kind of alternative makes sense for an expense.

    An explicit ``is_physical`` hint wins; otherwise insurance beats
    subscription beats service, and anything else is a physical good.
    """
    text = expense.text
    if expense.is_physical:
        return "physical"
    if any(term in text for term in _INSURANCE_TERMS):
        return "insurance"
    if any(term in text for term in _SUBSCRIPTION_TERMS):
        return "subscription"
    if any(term in text for term in _SERVICE_TERMS):
        return "service"
    if expense.is_physical is False:
        return "service"
    return "physical"


def expense_category_group(expense: Expense) -> str:
    text = expense.text
    if any(term in text for term in _GROCERY_TERMS):
        return "grocery"
    if any(term in text for term in _ELECTRONICS_TERMS):
        return "electronics"
    if any(term in text for term in _CLOTHING_TERMS):
        return "clothing"
    if any(term in text for term in _SPORTING_TERMS):
        return "sporting"
    return "general"


def significant_words(text: str, limit: int = 5, min_length: int = 4) -> List[str]:
    words = [word for word in re.split(r"\s+", text or "") if len(word) >= min_length]
    return words[:limit]


def truncate(text: str, max_length: int) -> str:
    if not text or len(text) <= max_length:
        return text or ""
    return text[: max_length - 3].rstrip() + "..."


def clean_product_name(title: str, fallback: str) -> str:
    """Strip search-result noise ("Best ...", "| Site", " - Site", years) from a title."""
    if not title:
        return f"{fallback} Alternative"
    cleaned = re.sub(r"^(?:top|best|cheapest|review:)\s+", "", title, flags=re.IGNORECASE)
    cleaned = re.sub(r"\s+reviews?$", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\s*\|\s*.+$", "", cleaned)
    cleaned = re.sub(r"\s+-\s+.+$", "", cleaned)
    cleaned = re.sub(r"\s*\b\d{4}$", "", cleaned)
    cleaned = cleaned.strip()
    return truncate(cleaned or title.strip(), 60)


def summarize_description(description: str, max_length: int = 120) -> str:
    """First sentence when it carries enough information, else a truncated prefix."""
    if not description:
        return ""
    first_sentence = re.split(r"[.!?]", description)[0].strip()
    if len(first_sentence) > 20:
        return truncate(first_sentence, max_length)
    return truncate(description.strip(), max_length)
