"""
Observability infrastructure for the discovery engine.

Provides:
- Structured logging with correlation IDs
- Prometheus metrics for providers and runs
"""

from .logging import (
    correlation_id_context,
    get_correlation_id,
    setup_logging,
)
from .metrics import (
    discovery_runs_total,
    metrics_registry,
    provider_duration_seconds,
    provider_errors_total,
    provider_results_count,
)

__all__ = [
    "setup_logging",
    "correlation_id_context",
    "get_correlation_id",
    "metrics_registry",
    "provider_duration_seconds",
    "provider_errors_total",
    "provider_results_count",
    "discovery_runs_total",
]
