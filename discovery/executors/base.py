"""Provider executor with status instrumentation."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional, Tuple, TYPE_CHECKING

import httpx

from discovery.exceptions import ConfigurationError, ProviderTimeoutError
from discovery.models import AlternativeCandidate, Expense, ProviderQuery, ProviderStatusSnapshot
from discovery.progress import ProgressReporter
from discovery.utils.security import redact_secrets_from_text
from observability.metrics import (
    provider_duration_seconds,
    provider_errors_total,
    provider_results_count,
)

if TYPE_CHECKING:
    from discovery.providers.base import AlternativeProvider

logger = logging.getLogger(__name__)

TIMED_OUT_MESSAGE = "timed out"


def _status_code(error: Exception) -> Optional[int]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def _observe(status: ProviderStatusSnapshot) -> None:
    provider_duration_seconds.labels(provider=status.provider_id).observe((status.latency_ms or 0) / 1000)
    provider_results_count.labels(provider=status.provider_id).observe(status.result_count)
    if status.failed:
        provider_errors_total.labels(provider=status.provider_id, error_type=status.status).inc()


def classify_failure(error: Exception) -> Tuple[str, str]:
    """Map a provider exception to ``(snapshot status, user-facing message)``."""
    code = _status_code(error)
    text = redact_secrets_from_text(str(error))
    if isinstance(error, ConfigurationError):
        return "unconfigured", text
    if isinstance(error, (ProviderTimeoutError, httpx.TimeoutException)):
        return "timeout", TIMED_OUT_MESSAGE
    if code == 402 or "Payment Required" in text:
        return "exhausted", "API quota exhausted"
    if code == 429 or "Too Many Requests" in text:
        return "rate_limited", "Rate limit exceeded"
    return "error", f"Search failed: {text[:100]}"


async def run_provider_with_status(
    provider_id: str,
    provider: "AlternativeProvider",
    expense: Expense,
    query: ProviderQuery,
    *,
    progress: Optional[ProgressReporter] = None,
    timeout_seconds: float = 12.0,
) -> Tuple[List[AlternativeCandidate], ProviderStatusSnapshot]:
    """Run one provider under a time budget. Never raises except on cancellation."""
    if progress is not None:
        progress.publish(provider_id, "started", 5)

    started = time.monotonic()
    try:
        results = await asyncio.wait_for(
            provider.search(expense, query, progress=progress), timeout=timeout_seconds
        )
    except asyncio.TimeoutError:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.warning(f"[{provider_id}] Search timed out after {timeout_seconds}s")
        if progress is not None:
            progress.publish(provider_id, "error", message=TIMED_OUT_MESSAGE)
        status = ProviderStatusSnapshot(
            provider_id=provider_id,
            status="timeout",
            result_count=0,
            latency_ms=elapsed_ms,
            message=TIMED_OUT_MESSAGE,
        )
        _observe(status)
        return [], status
    except Exception as e:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        status_name, message = classify_failure(e)
        logger.warning(
            f"[{provider_id}] Search error: {type(e).__name__}: "
            f"{redact_secrets_from_text(str(e))[:200]}"
        )
        if progress is not None:
            progress.publish(provider_id, "error", message=message)
        status = ProviderStatusSnapshot(
            provider_id=provider_id,
            status=status_name,
            result_count=0,
            latency_ms=elapsed_ms,
            message=message,
        )
        _observe(status)
        return [], status

    elapsed_ms = int((time.monotonic() - started) * 1000)
    used_fallback = bool(results) and all(candidate.is_synthetic for candidate in results)
    if progress is not None:
        if results:
            progress.publish(provider_id, "completed", count=len(results))
        else:
            progress.publish(provider_id, "no-results", count=0)

    status = ProviderStatusSnapshot(
        provider_id=provider_id,
        status="ok" if results else "no_results",
        result_count=len(results),
        latency_ms=elapsed_ms,
        message="using fallback" if used_fallback else None,
        used_fallback=used_fallback,
    )
    _observe(status)
    logger.info(f"[{provider_id}] Returned {len(results)} candidates in {elapsed_ms}ms")
    return results, status
