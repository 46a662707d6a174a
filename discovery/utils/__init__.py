"""Utility helpers for canonical URLs and secret redaction."""

from .security import redact_secrets_from_text
from .url import canonicalize_url, ensure_absolute, is_web_url, url_match_key

__all__ = [
    "canonicalize_url",
    "ensure_absolute",
    "is_web_url",
    "url_match_key",
    "redact_secrets_from_text",
]
