import asyncio

import httpx
import pytest

from discovery.exceptions import ConfigurationError, ProviderTimeoutError
from discovery.executors import classify_failure, run_provider_with_status
from discovery.models import UserPreferences
from discovery.progress import ProgressReporter
from fakes import FakeProvider, make_candidate


def _http_error(status_code: int, reason: str) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.example.com/search?key=secret-value")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(f"Client error '{status_code} {reason}'", request=request, response=response)


async def _run(provider, expense, progress=None, timeout_seconds=1.0):
    query = provider.build_query(expense, UserPreferences())
    return await run_provider_with_status(
        provider.provider_id,
        provider,
        expense,
        query,
        progress=progress,
        timeout_seconds=timeout_seconds,
    )


async def _drain(progress: ProgressReporter):
    progress.close()
    return [event async for event in progress.events()]


@pytest.mark.asyncio
async def test_run_provider_with_status_ok(subscription_expense):
    provider = FakeProvider("dummy", [make_candidate("a", "Stan", 12.0, 13.0)])
    progress = ProgressReporter(["dummy"])

    results, status = await _run(provider, subscription_expense, progress)

    assert status.status == "ok"
    assert status.result_count == 1
    assert status.latency_ms is not None
    assert status.used_fallback is False
    assert results[0].name == "Stan"

    events = await _drain(progress)
    assert [e.status for e in events] == ["started", "searching", "completed"]
    assert events[0].progress == 5
    assert events[-1].progress == 100
    assert events[-1].count == 1


@pytest.mark.asyncio
async def test_run_provider_with_status_no_results(subscription_expense):
    progress = ProgressReporter(["dummy"])

    results, status = await _run(FakeProvider("dummy", []), subscription_expense, progress)

    assert results == []
    assert status.status == "no_results"
    assert not status.failed
    events = await _drain(progress)
    assert events[-1].status == "no-results"


@pytest.mark.asyncio
async def test_run_provider_with_status_timeout(subscription_expense):
    provider = FakeProvider("dummy", [make_candidate("a", "Stan", 12.0, 13.0)], delay=1.0)
    progress = ProgressReporter(["dummy"])

    results, status = await _run(provider, subscription_expense, progress, timeout_seconds=0.01)

    assert results == []
    assert status.status == "timeout"
    assert status.message == "timed out"
    events = await _drain(progress)
    assert events[-1].status == "error"
    assert events[-1].message == "timed out"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        httpx.ReadTimeout("read timed out"),
        httpx.ConnectTimeout("connect timed out"),
        ProviderTimeoutError("dummy did not answer within 15s", service_name="dummy"),
    ],
)
async def test_client_side_timeouts_report_timeout(subscription_expense, error):
    progress = ProgressReporter(["dummy"])

    results, status = await _run(FakeProvider("dummy", error=error), subscription_expense, progress)

    assert results == []
    assert status.status == "timeout"
    assert status.message == "timed out"
    events = await _drain(progress)
    assert events[-1].status == "error"
    assert events[-1].message == "timed out"


@pytest.mark.asyncio
async def test_quota_exhaustion(subscription_expense):
    provider = FakeProvider("dummy", error=_http_error(402, "Payment Required"))

    results, status = await _run(provider, subscription_expense)

    assert results == []
    assert status.status == "exhausted"
    assert status.message == "API quota exhausted"


@pytest.mark.asyncio
async def test_rate_limited(subscription_expense):
    provider = FakeProvider("dummy", error=_http_error(429, "Too Many Requests"))

    _, status = await _run(provider, subscription_expense)

    assert status.status == "rate_limited"
    assert status.message == "Rate limit exceeded"


@pytest.mark.asyncio
async def test_missing_credentials(subscription_expense):
    provider = FakeProvider("dummy", error=ConfigurationError("BRAVE_API_KEY is not set"))

    _, status = await _run(provider, subscription_expense)

    assert status.status == "unconfigured"
    assert status.failed


@pytest.mark.asyncio
async def test_generic_error_is_redacted(subscription_expense):
    provider = FakeProvider("dummy", error=RuntimeError("boom for api_key=abc123secret"))
    progress = ProgressReporter(["dummy"])

    _, status = await _run(provider, subscription_expense, progress)

    assert status.status == "error"
    assert status.message.startswith("Search failed: boom")
    assert "abc123secret" not in status.message
    events = await _drain(progress)
    assert events[-1].status == "error"
    assert "abc123secret" not in events[-1].message


@pytest.mark.asyncio
async def test_all_synthetic_results_mark_fallback(grocery_expense):
    provider = FakeProvider(
        "dummy", [make_candidate("x", "Example Milk", 4.0, 0.5, is_synthetic=True)]
    )

    _, status = await _run(provider, grocery_expense)

    assert status.status == "ok"
    assert status.used_fallback is True
    assert status.message == "using fallback"


@pytest.mark.asyncio
async def test_cancellation_propagates(subscription_expense):
    provider = FakeProvider("dummy", delay=5.0)
    task = asyncio.create_task(_run(provider, subscription_expense, timeout_seconds=10.0))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


def test_classify_failure_by_message():
    assert classify_failure(RuntimeError("402 Payment Required")) == ("exhausted", "API quota exhausted")
    assert classify_failure(RuntimeError("429 Too Many Requests")) == ("rate_limited", "Rate limit exceeded")
    status, message = classify_failure(ValueError("x" * 300))
    assert status == "error"
    assert len(message) == len("Search failed: ") + 100
