"""Test doubles shared by the discovery test modules."""

import asyncio
from typing import List, Optional

from discovery.geo.places import Place
from discovery.models import (
    AlternativeCandidate,
    Coordinates,
    Expense,
    ProviderQuery,
    StoreLocation,
    UserPreferences,
)
from discovery.progress import ProgressReporter
from discovery.providers.base import AlternativeProvider


def make_candidate(
    candidate_id: str,
    name: str,
    price: float,
    savings: float,
    *,
    type: str = "service",
    confidence: Optional[int] = None,
    url: str = "",
    source: str = "Unknown",
    distance_km: Optional[float] = None,
    is_synthetic: bool = False,
) -> AlternativeCandidate:
    location = None
    if distance_km is not None:
        location = StoreLocation(name=f"{source} store", distance_km=distance_km)
    return AlternativeCandidate(
        id=candidate_id,
        name=name,
        price=price,
        savings=savings,
        type=type,
        confidence=confidence,
        url=url,
        source=source,
        location=location,
        is_synthetic=is_synthetic,
    )


def make_place(place_id: str, name: str, lat: float, lng: float, types=None) -> Place:
    return Place(
        place_id=place_id,
        name=name,
        vicinity=f"{name} street",
        coordinates=Coordinates(lat=lat, lng=lng),
        types=types or ["store"],
    )


class FakeProvider(AlternativeProvider):
    """Returns canned candidates, or sleeps, or raises."""

    def __init__(
        self,
        provider_id: str,
        results: Optional[List[AlternativeCandidate]] = None,
        *,
        error: Optional[BaseException] = None,
        delay: float = 0.0,
        weight: float = 1.0,
    ):
        self.provider_id = provider_id
        self.results = results or []
        self.error = error
        self.delay = delay
        self.progress_weight = weight
        self.calls = 0

    def build_query(self, expense: Expense, preferences: UserPreferences) -> ProviderQuery:
        return self._base_query(expense, preferences, expense.name)

    async def search(
        self,
        expense: Expense,
        query: ProviderQuery,
        *,
        progress: Optional[ProgressReporter] = None,
    ) -> List[AlternativeCandidate]:
        self.calls += 1
        self._report(progress, "searching", 30)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.results)


class FakePlacesClient:
    """Stands in for GooglePlacesClient; returns the same places for every type."""

    def __init__(self, places: List[Place], configured: bool = True):
        self.places = places
        self.configured = configured
        self.calls = []

    async def nearby(self, coordinates, radius_m, place_type, keyword=""):
        self.calls.append((place_type, radius_m, keyword))
        return list(self.places)
