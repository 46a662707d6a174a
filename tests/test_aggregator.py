"""End-to-end discovery runs against fake providers."""
import asyncio

import httpx
import pytest

from discovery.aggregator import (
    FAILED_MESSAGE,
    QUOTA_MESSAGE,
    RATE_LIMIT_MESSAGE,
    AlternativeAggregator,
)
from discovery.config import DiscoverySettings
from discovery.exceptions import ConfigurationError, ValidationError
from discovery.geo import GeoMatcher
from discovery.models import Expense, UserPreferences
from fakes import FakePlacesClient, FakeProvider, make_candidate, make_place


def _http_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.example.com/search")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(f"status {status_code}", request=request, response=response)


def _streaming_candidates():
    return {
        "openai": [
            make_candidate("o-0", "Stan Basic", 12.0, 13.0, confidence=60, url="https://stan.com.au"),
            make_candidate("o-1", "Binge Standard", 18.0, 7.0, confidence=70, url="https://binge.com.au"),
        ],
        "brave": [
            make_candidate("b-0", "stan basic", 12.0, 13.0, confidence=65, url="https://www.stan.com.au/"),
            make_candidate("b-1", "Netflix Premium", 26.0, -1.0, confidence=90),
            make_candidate("b-2", "Paramount Plus", 9.0, 16.0, confidence=50, url="https://paramountplus.com"),
        ],
    }


def _aggregator(providers, **kwargs):
    kwargs.setdefault("timeout_seconds", 1.0)
    return AlternativeAggregator({p.provider_id: p for p in providers}, **kwargs)


async def _drain(progress):
    return [event async for event in progress.events()]


class TestDiscover:
    @pytest.mark.asyncio
    async def test_four_providers_capped_at_five_by_score(self, subscription_expense):
        providers = [
            FakeProvider("openai", [
                make_candidate("o-0", "Stan Basic", 12.0, 13.0, confidence=80, url="https://stan.com.au"),
                make_candidate("o-1", "Binge Standard", 18.0, 7.0, confidence=90, url="https://binge.com.au"),
            ]),
            FakeProvider("brave", [
                make_candidate("b-0", "Paramount Plus", 9.0, 16.0, confidence=50, url="https://paramountplus.com"),
                make_candidate("b-1", "Apple TV Plus", 13.0, 12.0, confidence=70, url="https://tv.apple.com"),
            ]),
            FakeProvider("serper", [
                make_candidate("s-0", "Disney Plus Standard", 14.0, 11.0, confidence=60, url="https://disneyplus.com"),
                make_candidate("s-1", "Foxtel Now", 20.0, 5.0, confidence=100, url="https://foxtel.com.au"),
            ]),
            FakeProvider("firecrawl", [
                make_candidate("f-0", "Prime Video", 10.0, 15.0, confidence=90, url="https://primevideo.com"),
                make_candidate("f-1", "YouTube Premium", 17.0, 8.0, confidence=40, url="https://youtube.com"),
            ]),
        ]

        result = await _aggregator(providers).discover(subscription_expense)

        assert result.outcome == "ranked"
        assert [s.status for s in result.provider_statuses] == ["ok"] * 4
        assert [c.id for c in result.alternatives] == ["f-0", "o-0", "b-1", "b-0", "s-0"]
        scores = [c.savings * c.confidence / 100 for c in result.alternatives]
        assert scores == sorted(scores, reverse=True)
        assert result.best.id == "f-0"
        assert [c.monthly_savings for c in result.alternatives] == [15.0, 13.0, 12.0, 16.0, 11.0]

    @pytest.mark.asyncio
    async def test_shortlist_carries_monthly_savings(self):
        yearly = Expense(id="e-yearly", name="Car insurance", category="Insurance", amount=1200.0, frequency="Yearly")
        provider = FakeProvider("openai", [make_candidate("o-0", "Budget Direct Comprehensive", 900.0, 300.0)])

        result = await _aggregator([provider]).discover(yearly)

        assert result.best.monthly_savings == 25.0
        assert result.alternatives[0].monthly_savings == 25.0

    @pytest.mark.asyncio
    async def test_ranked_run(self, subscription_expense):
        data = _streaming_candidates()
        aggregator = _aggregator([FakeProvider("openai", data["openai"]), FakeProvider("brave", data["brave"])])

        result = await aggregator.discover(subscription_expense)

        assert result.outcome == "ranked"
        assert aggregator.state == "ranked"
        assert result.state == "ranked"
        # stan duplicate collapsed, overpriced listing filtered
        assert [c.id for c in result.alternatives] == ["b-2", "o-0", "o-1"]
        assert result.best.id == "b-2"
        assert {s.provider_id: s.status for s in result.provider_statuses} == {"openai": "ok", "brave": "ok"}
        assert set(result.provider_queries.queries) == {"openai", "brave"}
        assert result.user_message is None

    @pytest.mark.asyncio
    async def test_shortlist_is_capped_and_sorted_by_preference(self, subscription_expense):
        candidates = [
            make_candidate(f"c-{i}", f"Option {chr(65 + i)}", 20.0 - i, 5.0 + i, confidence=80)
            for i in range(6)
        ]
        aggregator = _aggregator([FakeProvider("openai", candidates)], max_results=3)

        result = await aggregator.discover(subscription_expense, UserPreferences(sort_preference="price"))

        assert len(result.alternatives) == 3
        assert [c.price for c in result.alternatives] == [15.0, 16.0, 17.0]
        assert result.best.id == "c-5"

    @pytest.mark.asyncio
    async def test_timeout_of_one_provider_does_not_fail_the_run(self, subscription_expense):
        fast = FakeProvider("openai", [make_candidate("o-0", "Stan", 12.0, 13.0, confidence=60)])
        slow = FakeProvider("brave", [make_candidate("b-0", "Binge", 10.0, 15.0)], delay=1.0)
        aggregator = _aggregator([fast, slow], timeout_seconds=0.05)

        result = await aggregator.discover(subscription_expense)

        assert result.outcome == "ranked"
        statuses = result.provider_summary()
        assert statuses["brave"].status == "timeout"
        assert statuses["brave"].message == "timed out"
        assert [c.id for c in result.alternatives] == ["o-0"]

    @pytest.mark.asyncio
    async def test_all_providers_failing(self, subscription_expense):
        aggregator = _aggregator(
            [
                FakeProvider("openai", error=ConfigurationError("OPENAI_API_KEY is not set")),
                FakeProvider("brave", error=RuntimeError("connection reset")),
            ]
        )

        result = await aggregator.discover(subscription_expense)

        assert result.outcome == "search_failed"
        assert result.all_providers_failed
        assert aggregator.state == "failed"
        assert result.user_message == FAILED_MESSAGE
        assert result.alternatives == []
        assert result.best is None

    @pytest.mark.asyncio
    async def test_all_providers_out_of_quota(self, subscription_expense):
        aggregator = _aggregator(
            [FakeProvider("openai", error=_http_error(402)), FakeProvider("brave", error=_http_error(402))]
        )

        result = await aggregator.discover(subscription_expense)

        assert result.user_message == QUOTA_MESSAGE

    @pytest.mark.asyncio
    async def test_rate_limited_message(self, subscription_expense):
        aggregator = _aggregator(
            [FakeProvider("openai", error=_http_error(429)), FakeProvider("brave", error=_http_error(402))]
        )

        result = await aggregator.discover(subscription_expense)

        assert result.user_message == RATE_LIMIT_MESSAGE

    @pytest.mark.asyncio
    async def test_no_alternatives(self, subscription_expense):
        aggregator = _aggregator(
            [
                FakeProvider("openai", []),
                FakeProvider("brave", [make_candidate("b-0", "Pricier", 30.0, -5.0)]),
            ]
        )

        result = await aggregator.discover(subscription_expense)

        assert result.outcome == "no_alternatives"
        assert aggregator.state == "ranked"
        assert "Netflix Premium" in result.user_message
        assert result.provider_summary()["openai"].status == "no_results"

    @pytest.mark.asyncio
    async def test_physical_candidates_need_a_nearby_store(self, grocery_expense, sydney_preferences):
        origin = sydney_preferences.coordinates
        places = [make_place("p-aldi", "ALDI Bondi", origin.lat + 0.009, origin.lng, ["supermarket"])]
        provider = FakeProvider(
            "serper",
            [
                make_candidate("near", "Aldi Milk 2L", 3.2, 1.3, type="physical", source="Aldi", confidence=90),
                make_candidate("nowhere", "Budget Milk 2L", 3.0, 1.5, type="physical", source="Unknown"),
            ],
        )
        aggregator = _aggregator([provider], geo_matcher=GeoMatcher(FakePlacesClient(places)))

        result = await aggregator.discover(grocery_expense, sydney_preferences)

        assert [c.id for c in result.alternatives] == ["near"]
        assert result.best.location.name == "ALDI Bondi"
        assert result.best.location.formatted_distance == "1.0km"

    @pytest.mark.asyncio
    async def test_physical_candidates_dropped_without_geo(self, grocery_expense):
        provider = FakeProvider(
            "serper", [make_candidate("near", "Aldi Milk 2L", 3.2, 1.3, type="physical", source="Aldi")]
        )

        result = await _aggregator([provider]).discover(grocery_expense)

        assert result.outcome == "no_alternatives"


class TestProgressAndCancellation:
    @pytest.mark.asyncio
    async def test_progress_stream_reaches_every_terminal_state(self, subscription_expense):
        aggregator = _aggregator(
            [
                FakeProvider("openai", [make_candidate("o-0", "Stan", 12.0, 13.0)], weight=2.0),
                FakeProvider("brave", error=RuntimeError("boom")),
            ]
        )
        progress = aggregator.new_progress()

        task = asyncio.create_task(aggregator.discover(subscription_expense, progress=progress))
        events = [event async for event in progress.events()]
        result = await task

        assert result.outcome == "ranked"
        assert progress.closed
        assert progress.all_terminal
        terminal = {e.source: e.status for e in events if e.is_terminal}
        assert terminal == {"openai": "completed", "brave": "error"}
        overall = [e.overall_progress for e in events]
        assert overall == sorted(overall)
        assert overall[-1] == 100

    @pytest.mark.asyncio
    async def test_cancellation(self, subscription_expense):
        slow = FakeProvider("openai", [make_candidate("o-0", "Stan", 12.0, 13.0)], delay=5.0)
        aggregator = _aggregator([slow], timeout_seconds=10.0)
        progress = aggregator.new_progress()

        task = asyncio.create_task(aggregator.discover(subscription_expense, progress=progress))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert aggregator.state == "cancelled"
        assert progress.closed

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, subscription_expense):
        aggregator = _aggregator([FakeProvider("openai", [])])
        blank = subscription_expense.model_copy(update={"name": "   "})

        with pytest.raises(ValidationError):
            await aggregator.discover(blank)
        assert aggregator.state == "idle"

    @pytest.mark.asyncio
    async def test_no_providers_is_configuration_error(self, subscription_expense):
        with pytest.raises(ConfigurationError):
            await AlternativeAggregator({}).discover(subscription_expense)

    @pytest.mark.asyncio
    async def test_rejected_run_still_closes_progress(self, subscription_expense):
        blank = subscription_expense.model_copy(update={"name": "   "})
        for aggregator, expense in (
            (_aggregator([FakeProvider("openai", [])]), blank),
            (AlternativeAggregator({}), subscription_expense),
        ):
            progress = aggregator.new_progress()
            task = asyncio.create_task(aggregator.discover(expense, progress=progress))

            drained = await asyncio.wait_for(_drain(progress), timeout=1.0)

            assert drained == []
            assert progress.closed
            with pytest.raises((ValidationError, ConfigurationError)):
                await task


def test_from_settings():
    settings = DiscoverySettings(provider_timeout_seconds=3.0, max_results=7, validate_urls=True)
    aggregator = AlternativeAggregator.from_settings(settings, {})
    assert aggregator.timeout_seconds == 3.0
    assert aggregator.max_results == 7
    assert aggregator.validate_urls is True
    assert aggregator.state == "idle"
