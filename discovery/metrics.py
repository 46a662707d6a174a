"""Per-run discovery metrics.

One structured log line per discovery run, carrying:
- provider health (called / succeeded / failed, per-provider status and latency)
- candidate counts through the pipeline (collected, located, unique, retained)
- end-to-end latency and the final outcome
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from discovery.models import ProviderStatusSnapshot

logger = logging.getLogger("discovery.metrics")


@dataclass
class ProviderMetrics:
    """Metrics for a single provider execution."""
    provider_id: str
    status: str
    result_count: int
    latency_ms: float
    used_fallback: bool = False


@dataclass
class DiscoveryMetrics:
    """Aggregated metrics for a single discovery run."""
    expense_id: str = ""
    outcome: Optional[str] = None
    collected: int = 0
    located: int = 0
    unique: int = 0
    retained: int = 0
    providers_called: int = 0
    providers_succeeded: int = 0
    providers_failed: int = 0
    total_latency_ms: float = 0.0
    provider_metrics: List[ProviderMetrics] = field(default_factory=list)

    def success_rate(self) -> float:
        if self.providers_called == 0:
            return 0.0
        return self.providers_succeeded / self.providers_called

    def has_results(self) -> bool:
        return self.retained > 0


class DiscoveryMetricsCollector:
    """Collects metrics for one run at a time; create one per aggregator."""

    def __init__(self):
        self._current: Optional[DiscoveryMetrics] = None
        self._start_time: Optional[float] = None

    @contextmanager
    def track_discovery(self, expense_id: str = "") -> Iterator[DiscoveryMetrics]:
        self._current = DiscoveryMetrics(expense_id=expense_id)
        self._start_time = time.monotonic()
        try:
            yield self._current
        finally:
            if self._current and self._start_time is not None:
                self._current.total_latency_ms = (time.monotonic() - self._start_time) * 1000
                self._log_metrics()
            self._current = None
            self._start_time = None

    def record_provider(self, snapshot: ProviderStatusSnapshot) -> None:
        if not self._current:
            return
        self._current.provider_metrics.append(
            ProviderMetrics(
                provider_id=snapshot.provider_id,
                status=snapshot.status,
                result_count=snapshot.result_count,
                latency_ms=float(snapshot.latency_ms or 0),
                used_fallback=snapshot.used_fallback,
            )
        )
        self._current.providers_called += 1
        if snapshot.failed:
            self._current.providers_failed += 1
        else:
            self._current.providers_succeeded += 1

    def record_counts(
        self,
        *,
        collected: Optional[int] = None,
        located: Optional[int] = None,
        unique: Optional[int] = None,
        retained: Optional[int] = None,
    ) -> None:
        if not self._current:
            return
        if collected is not None:
            self._current.collected = collected
        if located is not None:
            self._current.located = located
        if unique is not None:
            self._current.unique = unique
        if retained is not None:
            self._current.retained = retained

    def record_outcome(self, outcome: str) -> None:
        if self._current:
            self._current.outcome = outcome

    def _log_metrics(self) -> None:
        m = self._current
        if not m:
            return

        log_data = {
            "event": "discovery_complete",
            "expense_id": m.expense_id,
            "outcome": m.outcome,
            "candidates": {
                "collected": m.collected,
                "located": m.located,
                "unique": m.unique,
                "retained": m.retained,
            },
            "providers": {
                "called": m.providers_called,
                "succeeded": m.providers_succeeded,
                "failed": m.providers_failed,
                "success_rate": round(m.success_rate(), 2),
                "details": [
                    {
                        "id": pm.provider_id,
                        "status": pm.status,
                        "results": pm.result_count,
                        "latency_ms": round(pm.latency_ms, 1),
                        "fallback": pm.used_fallback,
                    }
                    for pm in m.provider_metrics
                ],
            },
            "latency_ms": round(m.total_latency_ms, 1),
        }

        if m.providers_called > 0 and m.providers_failed == m.providers_called:
            logger.error("Discovery failed - all providers failed", extra=log_data)
        elif m.providers_failed > 0:
            logger.warning("Discovery completed with provider failures", extra=log_data)
        elif not m.has_results():
            logger.warning("Discovery completed but no alternatives", extra=log_data)
        else:
            logger.info("Discovery completed successfully", extra=log_data)
