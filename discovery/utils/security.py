"""
Redaction helpers for provider error messages.

Provider failures often echo the request URL or headers back in the
exception text; everything that leaves a provider boundary as a status
message goes through ``redact_secrets_from_text`` first.
"""

import re

_TEXT_REDACTIONS = [
    (r"((?:api_key|apikey|key|token)=)[^&\s]+", r"\1[REDACTED]"),
    (r"(Authorization:\s*Bearer)\s+[^\s,]+", r"\1 [REDACTED]"),
    (r"(Bearer)\s+[A-Za-z0-9._\-]{8,}", r"\1 [REDACTED]"),
    (r"(X-(?:API-KEY|Subscription-Token):)\s*[^\s,]+", r"\1 [REDACTED]"),
    (r"\bsk-[A-Za-z0-9_\-]{8,}", "[REDACTED]"),
]


def redact_secrets_from_text(text: str) -> str:
    """
    Redact credentials embedded in free text (query strings, headers, keys).

    Args:
        text: Error message, URL or header dump

    Returns:
        The same text with every recognised secret replaced by '[REDACTED]'
    """
    if not text:
        return text

    out = text
    for pattern, repl in _TEXT_REDACTIONS:
        out = re.sub(pattern, repl, out, flags=re.IGNORECASE)
    return out
