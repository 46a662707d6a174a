"""
Prometheus metrics for discovery runs.

Provider RED metrics (rate, errors, duration) plus run outcomes.
"""

from prometheus_client import REGISTRY, Counter, Histogram

metrics_registry = REGISTRY

provider_duration_seconds = Histogram(
    "discovery_provider_duration_seconds",
    "Alternative provider call duration in seconds",
    ["provider"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 30.0],
    registry=metrics_registry,
)

provider_errors_total = Counter(
    "discovery_provider_errors_total",
    "Total alternative provider failures",
    ["provider", "error_type"],  # error_type: ProviderStatus value
    registry=metrics_registry,
)

provider_results_count = Histogram(
    "discovery_provider_results_count",
    "Number of candidates returned by a provider",
    ["provider"],
    buckets=[0, 1, 3, 5, 10, 25],
    registry=metrics_registry,
)

discovery_runs_total = Counter(
    "discovery_runs_total",
    "Total discovery runs by outcome",
    ["outcome"],
    registry=metrics_registry,
)
