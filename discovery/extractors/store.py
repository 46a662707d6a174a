"""Store / brand name extraction."""

from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import urlsplit

from discovery.constants import KNOWN_BRANDS

ONLINE_STORE = "Online Store"
UNKNOWN_STORE = "Unknown"

_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9'&\-]*")
_NAME = r"([A-Z][\w&'\-]*(?:\s+[A-Z][\w&'\-]*){0,2})"
_STORE_PATTERNS = (
    re.compile(r"\b(?:at|from)\s+" + _NAME),
    re.compile(_NAME + r"\s+(?:Store|Shop|Supermarket)\b"),
)
# Words that the syntactic patterns pick up but that are never store names.
_STOPWORDS = {"The", "Only", "Just", "Now", "Our", "Your", "All", "Prices", "Price", "Home"}


def _known_brand(text: str) -> Optional[str]:
    tokens: List[str] = _TOKEN_RE.findall(text.lower())
    for index in range(len(tokens)):
        for width in (3, 2, 1):
            if index + width > len(tokens):
                continue
            key = " ".join(tokens[index:index + width])
            brand = KNOWN_BRANDS.get(key)
            if brand:
                return brand
    return None


def _syntactic_store(text: str) -> Optional[str]:
    for pattern in _STORE_PATTERNS:
        for match in pattern.finditer(text):
            name = match.group(1).strip()
            if name.split()[0] in _STOPWORDS:
                continue
            return name
    return None


def store_name_from_url(url: str) -> str:
    """Derive a display name from a URL hostname ("www.aldi.com.au" -> "Aldi")."""
    try:
        hostname = urlsplit(url or "").hostname or ""
    except ValueError:
        return ONLINE_STORE
    hostname = re.sub(r"^www\.", "", hostname.lower())
    hostname = re.sub(r"\.com(\.au)?$", "", hostname)
    label = hostname.split(".")[0] if hostname else ""
    if not label:
        return ONLINE_STORE
    brand = KNOWN_BRANDS.get(label)
    if brand:
        return brand
    return label[0].upper() + label[1:]


def extract_store_name(text: str, url: Optional[str] = None) -> str:
    """Return a single display name for the store a piece of text refers to.

    Known brands are checked first, then "at X" / "from X" / "X Store" patterns,
    then the URL hostname. Falls back to "Online Store" when only a URL is known
    and "Unknown" when there is nothing to go on.
    """
    if text:
        brand = _known_brand(text)
        if brand:
            return brand
        name = _syntactic_store(text)
        if name:
            return name
    if url:
        return store_name_from_url(url)
    return UNKNOWN_STORE
