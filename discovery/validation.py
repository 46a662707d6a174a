"""Optional reachability probing for candidate links."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import httpx

from discovery.models import AlternativeCandidate
from discovery.utils.url import is_web_url

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 5.0
# Some retailers refuse HEAD outright; the page itself still exists.
_REACHABLE_CODES = {405}


async def probe_url(
    url: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    timeout_seconds: float = PROBE_TIMEOUT_SECONDS,
) -> bool:
    if not is_web_url(url):
        return False
    try:
        if client is not None:
            response = await client.head(url, follow_redirects=True, timeout=timeout_seconds)
        else:
            async with httpx.AsyncClient(timeout=timeout_seconds) as owned:
                response = await owned.head(url, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.debug(f"[Probe] {url} unreachable: {type(e).__name__}")
        return False
    return response.status_code < 400 or response.status_code in _REACHABLE_CODES


async def probe_candidates(
    candidates: List[AlternativeCandidate],
    *,
    timeout_seconds: float = PROBE_TIMEOUT_SECONDS,
) -> List[AlternativeCandidate]:
    """Drop real candidates whose link does not answer. Synthetic ones are kept as-is."""
    to_probe = [c for c in candidates if not c.is_synthetic]
    if not to_probe:
        return list(candidates)

    async with httpx.AsyncClient(timeout=timeout_seconds) as client:
        reachable = await asyncio.gather(
            *(probe_url(c.url, client=client, timeout_seconds=timeout_seconds) for c in to_probe)
        )

    alive = {c.id for c, ok in zip(to_probe, reachable) if ok}
    kept = [c for c in candidates if c.is_synthetic or c.id in alive]
    if len(kept) != len(candidates):
        logger.info(f"[Probe] Dropped {len(candidates) - len(kept)} unreachable candidates")
    return kept
