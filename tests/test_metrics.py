import logging

from discovery.metrics import DiscoveryMetricsCollector
from discovery.models import ProviderStatusSnapshot


def _snapshot(provider_id, status, count=0):
    return ProviderStatusSnapshot(provider_id=provider_id, status=status, result_count=count, latency_ms=12)


def test_collector_counts_providers_and_candidates(caplog):
    collector = DiscoveryMetricsCollector()
    with caplog.at_level(logging.INFO, logger="discovery.metrics"):
        with collector.track_discovery("exp-1") as metrics:
            collector.record_provider(_snapshot("openai", "ok", 3))
            collector.record_provider(_snapshot("brave", "no_results"))
            collector.record_counts(collected=3, located=3, unique=2, retained=2)
            collector.record_outcome("ranked")

    assert metrics.providers_called == 2
    assert metrics.providers_succeeded == 2
    assert metrics.success_rate() == 1.0
    assert metrics.retained == 2
    assert metrics.total_latency_ms >= 0
    record = caplog.records[-1]
    assert record.levelno == logging.INFO
    assert record.outcome == "ranked"
    assert record.candidates["unique"] == 2


def test_all_failed_logs_error(caplog):
    collector = DiscoveryMetricsCollector()
    with caplog.at_level(logging.INFO, logger="discovery.metrics"):
        with collector.track_discovery("exp-2"):
            collector.record_provider(_snapshot("openai", "timeout"))
            collector.record_provider(_snapshot("brave", "exhausted"))
            collector.record_outcome("search_failed")

    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert record.providers["failed"] == 2


def test_partial_failure_logs_warning(caplog):
    collector = DiscoveryMetricsCollector()
    with caplog.at_level(logging.INFO, logger="discovery.metrics"):
        with collector.track_discovery("exp-3"):
            collector.record_provider(_snapshot("openai", "ok", 1))
            collector.record_provider(_snapshot("serper", "error"))
            collector.record_counts(retained=1)

    assert caplog.records[-1].levelno == logging.WARNING


def test_recording_outside_a_run_is_ignored():
    collector = DiscoveryMetricsCollector()
    collector.record_provider(_snapshot("openai", "ok"))
    collector.record_counts(collected=4)
    collector.record_outcome("ranked")
