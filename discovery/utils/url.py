"""URL helpers used for candidate de-duplication and store naming."""

from __future__ import annotations

import re
from typing import List, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

TRACKING_KEYS: Sequence[str] = (
    "gclid",
    "fbclid",
    "msclkid",
    "mc_eid",
    "mc_cid",
    "igshid",
    "ref",
    "srsltid",
)
TRACKING_PREFIXES: Sequence[str] = ("utm_", "ga_", "mkt_")

_SLASHES = re.compile(r"/{2,}")


def ensure_absolute(url: str) -> str:
    url = (url or "").strip()
    if not url:
        return ""
    if url.lower().startswith(("http://", "https://")):
        return url
    if url.startswith("//"):
        return f"https:{url}"
    if "://" not in url:
        return f"https://{url}"
    return url


def _keep_param(key: str) -> bool:
    lowered = key.lower()
    if lowered in TRACKING_KEYS:
        return False
    return not any(lowered.startswith(prefix) for prefix in TRACKING_PREFIXES)


def canonicalize_url(raw_url: str) -> str:
    """Stable form of a URL for equality checks.

    Forces https, lower-cases the host without ``www.``, drops tracking
    parameters and the fragment, collapses slashes, and sorts the query.
    Returns "" for anything that cannot be parsed as a web URL.
    """
    absolute = ensure_absolute(raw_url)
    if not absolute:
        return ""
    try:
        split = urlsplit(absolute)
    except ValueError:
        return ""
    if split.scheme.lower() not in ("http", "https") or not split.netloc:
        return ""

    host = split.netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    if host.endswith((":443", ":80")):
        host = host.rsplit(":", 1)[0]

    path = _SLASHES.sub("/", split.path or "/")
    if path != "/":
        path = path.rstrip("/") or "/"

    params: List[Tuple[str, str]] = [
        (key, value) for key, value in parse_qsl(split.query) if _keep_param(key)
    ]
    params.sort(key=lambda pair: (pair[0].lower(), pair[1]))
    return urlunsplit(("https", host, path, urlencode(params), ""))


def url_match_key(raw_url: str) -> str:
    """Canonical URL without scheme, used for containment comparisons."""
    canonical = canonicalize_url(raw_url)
    if not canonical:
        return ""
    return canonical[len("https://"):].rstrip("/")


def is_web_url(raw_url: str) -> bool:
    return bool(canonicalize_url(raw_url))
