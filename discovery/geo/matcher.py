"""Attach nearby store locations to physical candidates."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from discovery.constants import GENERIC_SOURCES, KNOWN_BRANDS, PLACE_TYPES
from discovery.extractors import expense_category_group
from discovery.geo.distance import haversine_km
from discovery.geo.places import GooglePlacesClient, Place
from discovery.models import AlternativeCandidate, Expense, StoreLocation, UserPreferences

logger = logging.getLogger(__name__)

MAX_KEYWORD_STORES = 3

_GROCERY_TYPE_TOKENS = ("grocery", "supermarket", "food")
_RETAIL_TYPE_TOKENS = ("store", "shop", "department_store", "shopping_mall")
_CATEGORY_KEYWORDS = {
    "grocery": "supermarket grocery store",
    "electronics": "electronics tech store",
    "clothing": "{name} clothing fashion store",
    "sporting": "{name} sporting goods store",
}

LocatedPlace = Tuple[Place, float]


def store_types_for(expense: Expense) -> List[str]:
    return list(PLACE_TYPES[expense_category_group(expense)])


def store_keywords(expense: Expense, candidates: Sequence[AlternativeCandidate]) -> str:
    """Keyword for the places query: candidate store names first, then brands, then category."""
    names: List[str] = []
    for candidate in candidates:
        source = candidate.source
        if source and source not in GENERIC_SOURCES and source not in names:
            names.append(source)
    if names:
        return " ".join(names[:MAX_KEYWORD_STORES])

    description = expense.description.lower()
    brands = [
        display
        for key, display in KNOWN_BRANDS.items()
        if re.search(rf"\b{re.escape(key)}\b", description)
    ]
    if brands:
        return f"{' '.join(dict.fromkeys(brands))} {expense.name}"

    group = expense_category_group(expense)
    template = _CATEGORY_KEYWORDS.get(group, "{name} {category} store shop retail")
    return " ".join(template.format(name=expense.name, category=expense.category).split())


def is_relevant_store(place: Place, group: str) -> bool:
    if not place.types:
        return True
    types = [t.lower() for t in place.types]
    is_grocery = any(token in t for t in types for token in _GROCERY_TYPE_TOKENS)
    is_retail = any(token in t for t in types for token in _RETAIL_TYPE_TOKENS)
    if group == "grocery":
        return is_grocery
    if group == "electronics":
        return is_retail or any("electronics_store" in t for t in types)
    return is_retail


def _names_match(place_name: str, source: str) -> bool:
    place_name, source = place_name.lower(), source.lower()
    return place_name == source or source in place_name or place_name in source


def _to_location(place: Place, distance_km: float) -> StoreLocation:
    return StoreLocation(
        name=place.name,
        address=place.vicinity,
        distance_km=round(distance_km, 3),
        rating=place.rating,
        open_now=place.open_now,
        coordinates=place.coordinates,
        place_id=place.place_id,
    )


class GeoMatcher:
    def __init__(self, client: Optional[GooglePlacesClient]):
        self.client = client

    async def _fetch_places(
        self, expense: Expense, candidates: Sequence[AlternativeCandidate], preferences: UserPreferences
    ) -> List[LocatedPlace]:
        origin = preferences.coordinates
        radius_km = preferences.location_radius_km
        keyword = store_keywords(expense, candidates)
        store_types = store_types_for(expense)

        responses = await asyncio.gather(
            *(
                self.client.nearby(origin, radius_km * 1000, store_type, keyword)
                for store_type in store_types
            ),
            return_exceptions=True,
        )

        unique: Dict[str, Place] = {}
        for store_type, response in zip(store_types, responses):
            if isinstance(response, BaseException):
                logger.warning(f"[GeoMatcher] Places query for {store_type} failed: {response}")
                continue
            for place in response:
                unique.setdefault(place.place_id, place)

        located = []
        for place in unique.values():
            distance = haversine_km(origin, place.coordinates)
            if distance <= radius_km:
                located.append((place, distance))
        dropped = len(unique) - len(located)
        if dropped:
            logger.info(f"[GeoMatcher] Discarded {dropped} places beyond {radius_km}km")
        located.sort(key=lambda pair: pair[1])
        return located

    async def attach_locations(
        self,
        expense: Expense,
        candidates: List[AlternativeCandidate],
        preferences: UserPreferences,
    ) -> List[AlternativeCandidate]:
        """Return candidates with locations attached; unlocatable physical ones are dropped.

        Non-physical candidates pass through untouched, in their original order.
        """
        physical = [c for c in candidates if c.type == "physical"]
        if not physical:
            return list(candidates)

        if preferences.coordinates is None or self.client is None or not self.client.configured:
            logger.info(
                f"[GeoMatcher] No coordinates or places key, dropping {len(physical)} physical candidates"
            )
            return [c for c in candidates if c.type != "physical"]

        located = await self._fetch_places(expense, physical, preferences)
        group = expense_category_group(expense)
        assigned_places: set = set()
        assignments: Dict[str, StoreLocation] = {}

        # Name matches first so a generic assignment never steals a named store.
        for candidate in physical:
            source = candidate.source
            if not source or source in GENERIC_SOURCES:
                continue
            for place, distance in located:
                if place.place_id in assigned_places:
                    continue
                if _names_match(place.name, source):
                    assigned_places.add(place.place_id)
                    assignments[candidate.id] = _to_location(place, distance)
                    break

        for candidate in physical:
            if candidate.id in assignments:
                continue
            for place, distance in located:
                if place.place_id in assigned_places:
                    continue
                if is_relevant_store(place, group):
                    assigned_places.add(place.place_id)
                    assignments[candidate.id] = _to_location(place, distance)
                    break

        results: List[AlternativeCandidate] = []
        for candidate in candidates:
            if candidate.type != "physical":
                results.append(candidate)
            elif candidate.id in assignments:
                results.append(candidate.model_copy(update={"location": assignments[candidate.id]}))
            else:
                logger.debug(f"[GeoMatcher] No nearby store for '{candidate.name}', dropping")
        logger.info(
            f"[GeoMatcher] Located {len(assignments)} of {len(physical)} physical candidates "
            f"from {len(located)} places"
        )
        return results
