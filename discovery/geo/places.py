"""Google Places nearby search client."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from discovery.exceptions import ConfigurationError, ProviderError, ProviderTimeoutError
from discovery.models import Coordinates

logger = logging.getLogger(__name__)


class Place(BaseModel):
    place_id: str
    name: str
    vicinity: str = ""
    coordinates: Coordinates
    types: List[str] = Field(default_factory=list)
    rating: Optional[float] = None
    open_now: Optional[bool] = None


def parse_place(item: Dict[str, Any]) -> Optional[Place]:
    """Map one raw ``results[]`` entry, discarding entries without id or geometry."""
    try:
        location = item["geometry"]["location"]
        coordinates = Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))
    except (KeyError, TypeError, ValueError):
        return None
    place_id = item.get("place_id")
    name = item.get("name")
    if not place_id or not name:
        return None
    opening_hours = item.get("opening_hours") or {}
    return Place(
        place_id=str(place_id),
        name=str(name),
        vicinity=str(item.get("vicinity") or ""),
        coordinates=coordinates,
        types=[str(t) for t in item.get("types") or []],
        rating=item.get("rating"),
        open_now=opening_hours.get("open_now") if isinstance(opening_hours, dict) else None,
    )


class GooglePlacesClient:
    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key
        self.base_url = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def nearby(
        self,
        coordinates: Coordinates,
        radius_m: int,
        place_type: str,
        keyword: str = "",
    ) -> List[Place]:
        if not self.api_key:
            raise ConfigurationError("GOOGLE_PLACES_API_KEY is not set", detail={"provider": "places"})

        params = {
            "location": f"{coordinates.lat},{coordinates.lng}",
            "radius": radius_m,
            "type": place_type,
            "key": self.api_key,
        }
        if keyword:
            params["keyword"] = keyword

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(self.base_url, params=params)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError("Places search timed out", service_name="places") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError("Places response is not JSON", service_name="places") from e
        if not isinstance(data, dict):
            raise ProviderError("Places response is not an object", service_name="places")

        status = data.get("status", "OK")
        if status not in ("OK", "ZERO_RESULTS"):
            raise ProviderError(f"Places API status {status}", service_name="places")

        places = [parse_place(item) for item in data.get("results") or [] if isinstance(item, dict)]
        found = [place for place in places if place is not None]
        logger.debug(f"[GooglePlacesClient] {place_type}: {len(found)} places")
        return found
