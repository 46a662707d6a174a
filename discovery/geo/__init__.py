"""Store location matching for physical alternatives."""

from discovery.geo.distance import EARTH_RADIUS_KM, haversine_km
from discovery.geo.matcher import GeoMatcher, is_relevant_store, store_keywords, store_types_for
from discovery.geo.places import GooglePlacesClient, Place, parse_place

__all__ = [
    "EARTH_RADIUS_KM",
    "haversine_km",
    "GeoMatcher",
    "GooglePlacesClient",
    "Place",
    "parse_place",
    "is_relevant_store",
    "store_keywords",
    "store_types_for",
]
