"""Provider contract shared by every alternative source."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import httpx

from discovery.exceptions import ProviderTimeoutError
from discovery.models import (
    AlternativeCandidate,
    Expense,
    ProgressStatus,
    ProviderQuery,
    UserPreferences,
)
from discovery.progress import ProgressReporter

logger = logging.getLogger(__name__)


class AlternativeProvider(ABC):
    """One external source of cheaper alternatives.

    Implementations map the provider payload into ``AlternativeCandidate`` at
    their own boundary and raise on transport or HTTP errors; the executor
    turns those into status snapshots and terminal progress events.
    """

    provider_id: str = ""
    # Share of the unified progress bar this source accounts for.
    progress_weight: float = 1.0

    @property
    def configured(self) -> bool:
        return True

    @abstractmethod
    def build_query(self, expense: Expense, preferences: UserPreferences) -> ProviderQuery:
        ...

    @abstractmethod
    async def search(
        self,
        expense: Expense,
        query: ProviderQuery,
        *,
        progress: Optional[ProgressReporter] = None,
    ) -> List[AlternativeCandidate]:
        ...

    def _report(
        self,
        progress: Optional[ProgressReporter],
        status: ProgressStatus,
        value: Optional[int] = None,
        *,
        message: Optional[str] = None,
        count: Optional[int] = None,
    ) -> None:
        if progress is not None:
            progress.publish(self.provider_id, status, value, message=message, count=count)

    def _base_query(self, expense: Expense, preferences: UserPreferences, query: str, **kwargs) -> ProviderQuery:
        return ProviderQuery(
            provider_id=self.provider_id,
            query=query,
            radius_km=preferences.location_radius_km,
            coordinates=preferences.coordinates,
            sort_preference=preferences.sort_preference,
            locality=preferences.locality,
            country_code=preferences.country_code,
            **kwargs,
        )

    def _candidate_id(self, index: int, key: str = "") -> str:
        suffix = f"-{key}" if key else ""
        return f"{self.provider_id}-{index}{suffix}"

    async def _request_json(self, method: str, url: str, *, timeout: float, **kwargs) -> Any:
        """One HTTP round trip. Returns the decoded body, or None when it is not JSON."""
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                send = client.post if method == "POST" else client.get
                response = await send(url, **kwargs)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"{self.provider_id} did not answer within {timeout:g}s",
                service_name=self.provider_id,
            ) from e

        try:
            return response.json()
        except ValueError:
            logger.warning(f"[{self.provider_id}] Response body is not JSON, ignoring")
            return None
