"""Discovery run orchestration: fan out, settle, locate, dedupe, filter, rank."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from discovery.config import DEFAULT_MAX_RESULTS, DEFAULT_PROVIDER_TIMEOUT_SECONDS, DiscoverySettings
from discovery.exceptions import ConfigurationError, ValidationError
from discovery.executors import run_provider_with_status
from discovery.extractors import expense_specifications
from discovery.filters import apply_validity_filters, dedupe_candidates
from discovery.geo import GeoMatcher
from discovery.metrics import DiscoveryMetricsCollector
from discovery.models import (
    AlternativeCandidate,
    DiscoveryResult,
    Expense,
    ProviderQueryMap,
    ProviderStatusSnapshot,
    RunState,
    UserPreferences,
)
from discovery.progress import ProgressReporter
from discovery.providers import AlternativeProvider, build_provider_queries
from discovery.scorer import order_for_preference, rank_candidates
from discovery.validation import probe_candidates
from observability.logging import correlation_id_context, get_correlation_id
from observability.metrics import discovery_runs_total

logger = logging.getLogger(__name__)

MIN_SHORTLIST = 3

QUOTA_MESSAGE = "Search providers have exhausted their quota. Please try again later."
RATE_LIMIT_MESSAGE = "Search is temporarily rate-limited. Please wait a moment and try again."
FAILED_MESSAGE = "Unable to search for alternatives right now. Please try again later."


def failure_message(statuses: List[ProviderStatusSnapshot]) -> str:
    exhausted = sum(1 for s in statuses if s.status == "exhausted")
    if statuses and exhausted == len(statuses):
        return QUOTA_MESSAGE
    if any(s.status == "rate_limited" for s in statuses):
        return RATE_LIMIT_MESSAGE
    return FAILED_MESSAGE


class AlternativeAggregator:
    """Runs every provider for one expense and turns their output into a shortlist.

    State moves idle -> dispatching -> collecting -> deduplicating ->
    filtering -> scoring -> ranked, or ends in failed (every provider failed)
    or cancelled (the caller cancelled the run task).
    """

    def __init__(
        self,
        providers: Dict[str, AlternativeProvider],
        *,
        geo_matcher: Optional[GeoMatcher] = None,
        timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
        max_results: int = DEFAULT_MAX_RESULTS,
        validate_urls: bool = False,
    ):
        self.providers = providers
        self.geo_matcher = geo_matcher
        self.timeout_seconds = timeout_seconds
        self.max_results = max(MIN_SHORTLIST, max_results)
        self.validate_urls = validate_urls
        self.state: RunState = "idle"

    @classmethod
    def from_settings(
        cls,
        settings: DiscoverySettings,
        providers: Dict[str, AlternativeProvider],
        geo_matcher: Optional[GeoMatcher] = None,
    ) -> "AlternativeAggregator":
        return cls(
            providers,
            geo_matcher=geo_matcher,
            timeout_seconds=settings.provider_timeout_seconds,
            max_results=settings.max_results,
            validate_urls=settings.validate_urls,
        )

    def _transition(self, state: RunState) -> None:
        logger.debug(f"[Aggregator] {self.state} -> {state}")
        self.state = state

    def new_progress(self) -> ProgressReporter:
        """A progress channel pre-registered with every provider of this aggregator."""
        return ProgressReporter(
            self.providers.keys(),
            weights={pid: provider.progress_weight for pid, provider in self.providers.items()},
        )

    async def discover(
        self,
        expense: Expense,
        preferences: Optional[UserPreferences] = None,
        *,
        progress: Optional[ProgressReporter] = None,
    ) -> DiscoveryResult:
        preferences = preferences or UserPreferences()
        with correlation_id_context(get_correlation_id()):
            try:
                self._check_runnable(expense)
                return await self._run(expense, preferences, progress)
            except asyncio.CancelledError:
                self._transition("cancelled")
                discovery_runs_total.labels(outcome="cancelled").inc()
                logger.info(f"[Aggregator] Discovery for '{expense.name}' cancelled")
                raise
            finally:
                if progress is not None:
                    progress.close()

    def _check_runnable(self, expense: Expense) -> None:
        if not expense.name.strip():
            raise ValidationError("Expense name is empty", detail={"expense_id": expense.id})
        if not self.providers:
            raise ConfigurationError("No alternative providers are enabled")

    async def _run(
        self,
        expense: Expense,
        preferences: UserPreferences,
        progress: Optional[ProgressReporter],
    ) -> DiscoveryResult:
        collector = DiscoveryMetricsCollector()
        with collector.track_discovery(expense.id):
            self._transition("dispatching")
            queries = build_provider_queries(self.providers, expense, preferences)
            if progress is not None:
                for provider_id, provider in self.providers.items():
                    progress.register(provider_id, provider.progress_weight)
            logger.info(
                f"[Aggregator] Discovering alternatives for '{expense.name}' "
                f"(${expense.amount}) via {list(self.providers.keys())}"
            )

            tasks = [
                asyncio.create_task(
                    run_provider_with_status(
                        provider_id,
                        provider,
                        expense,
                        queries.get(provider_id),
                        progress=progress,
                        timeout_seconds=self.timeout_seconds,
                    ),
                    name=f"discovery:{provider_id}",
                )
                for provider_id, provider in self.providers.items()
            ]

            self._transition("collecting")
            try:
                settled = await asyncio.gather(*tasks)
            except asyncio.CancelledError:
                for task in tasks:
                    task.cancel()
                raise

            statuses: List[ProviderStatusSnapshot] = []
            collected: List[AlternativeCandidate] = []
            for results, status in settled:
                statuses.append(status)
                collector.record_provider(status)
                collected.extend(results)
            collector.record_counts(collected=len(collected))

            if statuses and all(status.failed for status in statuses):
                self._transition("failed")
                return self._finish(
                    collector,
                    DiscoveryResult(
                        outcome="search_failed",
                        provider_statuses=statuses,
                        provider_queries=queries,
                        user_message=failure_message(statuses),
                        state=self.state,
                    ),
                )

            located = collected
            if self.geo_matcher is not None:
                located = await self.geo_matcher.attach_locations(expense, collected, preferences)
            collector.record_counts(located=len(located))

            self._transition("deduplicating")
            unique = dedupe_candidates(located)
            collector.record_counts(unique=len(unique))

            self._transition("filtering")
            retained = apply_validity_filters(
                unique,
                expense,
                preferences,
                expense_specifications(expense.name, expense.description),
            )
            if self.validate_urls and retained:
                retained = await probe_candidates(retained)
            collector.record_counts(retained=len(retained))

            self._transition("scoring")
            ranked = rank_candidates(retained)

            self._transition("ranked")
            return self._finish(collector, self._build_result(expense, preferences, ranked, statuses, queries))

    def _build_result(
        self,
        expense: Expense,
        preferences: UserPreferences,
        ranked: List[AlternativeCandidate],
        statuses: List[ProviderStatusSnapshot],
        queries: ProviderQueryMap,
    ) -> DiscoveryResult:
        if not ranked:
            return DiscoveryResult(
                outcome="no_alternatives",
                provider_statuses=statuses,
                provider_queries=queries,
                user_message=f"No cheaper alternatives were found for {expense.name}.",
                state=self.state,
            )

        shortlist = [candidate.with_monthly_savings(expense) for candidate in ranked[: self.max_results]]
        return DiscoveryResult(
            outcome="ranked",
            alternatives=order_for_preference(shortlist, preferences.sort_preference),
            best=shortlist[0],
            provider_statuses=statuses,
            provider_queries=queries,
            state=self.state,
        )

    def _finish(self, collector: DiscoveryMetricsCollector, result: DiscoveryResult) -> DiscoveryResult:
        collector.record_outcome(result.outcome)
        discovery_runs_total.labels(outcome=result.outcome).inc()
        logger.info(
            f"[Aggregator] Outcome {result.outcome}: {len(result.alternatives)} alternatives, "
            f"providers {[f'{s.provider_id}={s.status}' for s in result.provider_statuses]}"
        )
        return result
