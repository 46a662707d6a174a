"""Pure text extractors shared by every provider."""

from .classify import (
    expense_category_group,
    classify_expense,
    clean_product_name,
    significant_words,
    summarize_description,
    truncate,
)
from .confidence import retailer_confidence, score_confidence
from .location import LocationHint, extract_location_hint, search_locality
from .price import PRICE_RULES, PriceRule, extract_price, extract_price_with_rule, parse_price_value
from .specs import expense_specifications, extract_specifications, matches_specifications
from .store import ONLINE_STORE, UNKNOWN_STORE, extract_store_name, store_name_from_url

__all__ = [
    "PRICE_RULES",
    "PriceRule",
    "extract_price",
    "extract_price_with_rule",
    "parse_price_value",
    "expense_specifications",
    "extract_specifications",
    "matches_specifications",
    "extract_store_name",
    "store_name_from_url",
    "ONLINE_STORE",
    "UNKNOWN_STORE",
    "score_confidence",
    "retailer_confidence",
    "classify_expense",
    "expense_category_group",
    "clean_product_name",
    "significant_words",
    "summarize_description",
    "truncate",
    "LocationHint",
    "extract_location_hint",
    "search_locality",
]
