"""
POI provider adapters.

Each adapter turns one external source into RawPlace records, resolving
every optional field of the provider's JSON at this boundary:

  AdministrativeContextResolver  town / county / state for the fix
                                 (Google Geocoding, falling back to Nominatim)
  GooglePlacesProvider           nearby attractions from Google Places
  OSMPlacesProvider              nearby attractions from OpenStreetMap,
                                 used when Google has nothing to offer

Transport errors are logged and treated as "no results"; only a missing
Google key surfaces, as ProviderNotConfiguredError, so the orchestrator
can route straight to the OSM fallback.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from dedupe import dedupe_places
from google_maps import GoogleMapsClient, GoogleMapsError, ProviderNotConfiguredError
from models import Coordinate, RawPlace, is_valid_coordinate
from nominatim import NominatimClient, NominatimError
from overpass_http import OverpassHTTPClient, OverpassQueryError, OverpassRateLimitError
from scoring_config import SCORING_MODEL, ScoringModel

logger = logging.getLogger(__name__)


def _coordinate_or(lat: Any, lng: Any, fallback: Coordinate) -> Coordinate:
    if is_valid_coordinate(lat, lng):
        return Coordinate(float(lat), float(lng))
    return fallback


def _slug(value: str) -> str:
    return "_".join(value.split())


# =============================================================================
# Administrative context
# =============================================================================

def _admin_place(kind: str, short_name: str, long_name: str, fix: Coordinate) -> RawPlace:
    types = {
        "municipality": ("locality", "municipality"),
        "county": ("administrative_area_level_2", "county"),
        "state": ("administrative_area_level_1", "state"),
    }[kind]
    return RawPlace(
        id=f"{kind}_{short_name}",
        name=long_name,
        types=types,
        coordinate=fix,
        vicinity=f"{long_name} {kind}",
    )


class AdministrativeContextResolver:
    """Which town, county and state the fix is in."""

    def __init__(self, google: Optional[GoogleMapsClient], nominatim: Optional[NominatimClient]):
        self.google = google
        self.nominatim = nominatim

    def resolve(self, fix: Coordinate) -> List[RawPlace]:
        results: List[RawPlace] = []
        if self.google is not None and self.google.api_key:
            try:
                results = self._from_google(fix)
            except GoogleMapsError:
                logger.warning("Google reverse geocoding failed", exc_info=True)
                results = []

        if not results and self.nominatim is not None:
            try:
                results = self._from_nominatim(fix)
            except NominatimError:
                logger.warning("Nominatim reverse geocoding failed", exc_info=True)
                results = []

        # The geocoder repeats components across its results
        seen = set()
        unique = []
        for place in results:
            if place.id not in seen:
                seen.add(place.id)
                unique.append(place)
        return unique

    def _from_google(self, fix: Coordinate) -> List[RawPlace]:
        results = []
        for result in self.google.reverse_geocode(fix.latitude, fix.longitude):
            for component in result.get("address_components") or []:
                types = component.get("types") or []
                long_name = component.get("long_name")
                short_name = component.get("short_name") or long_name
                if not long_name:
                    continue
                if "locality" in types or "administrative_area_level_3" in types:
                    results.append(_admin_place("municipality", short_name, long_name, fix))
                if "administrative_area_level_2" in types:
                    results.append(_admin_place("county", short_name, long_name, fix))
                if "administrative_area_level_1" in types:
                    results.append(_admin_place("state", short_name, long_name, fix))
        return results

    def _from_nominatim(self, fix: Coordinate) -> List[RawPlace]:
        data = self.nominatim.reverse(fix.latitude, fix.longitude)
        address = data.get("address") or {}
        results = []

        city = address.get("city") or address.get("town") or address.get("village")
        if city:
            results.append(_admin_place("municipality", _slug(city), city, fix))
        if address.get("county"):
            county = address["county"]
            results.append(_admin_place("county", _slug(county), county, fix))
        if address.get("state"):
            state = address["state"]
            results.append(_admin_place("state", _slug(state), state, fix))
        return results


# =============================================================================
# Google Places
# =============================================================================

class GooglePlacesProvider:
    def __init__(self, client: GoogleMapsClient, model: Optional[ScoringModel] = None):
        self.client = client
        self.model = model or SCORING_MODEL
        if not self.is_configured():
            logger.warning(
                "Google Places API key not configured. POI search will use OpenStreetMap."
            )

    def is_configured(self) -> bool:
        return bool(self.client.api_key)

    def search(self, fix: Coordinate, radius_m: int, max_results: int) -> List[RawPlace]:
        """Nearby places across the configured place types, deduplicated."""
        if not self.is_configured():
            raise ProviderNotConfiguredError("Google Places API key not configured")

        search = self.model.search
        places: List[RawPlace] = []
        for place_type in search.google_place_types[:search.google_type_queries]:
            try:
                results = self.client.places_nearby(
                    fix.latitude, fix.longitude, place_type, radius_meters=radius_m,
                )
            except GoogleMapsError:
                logger.warning(
                    "Google Places query failed for type %s", place_type, exc_info=True,
                )
                continue
            for result in results:
                place = self._to_raw_place(result, place_type, fix)
                if place is not None:
                    places.append(place)

        return dedupe_places(places)[:max_results]

    @staticmethod
    def _to_raw_place(result: Dict[str, Any], place_type: str, fix: Coordinate) -> Optional[RawPlace]:
        name = result.get("name")
        if not name:
            return None
        location = (result.get("geometry") or {}).get("location") or {}
        place_id = result.get("place_id") or None
        rating = result.get("rating")
        if isinstance(rating, bool) or not isinstance(rating, (int, float)):
            rating = None
        return RawPlace(
            id=place_id or str(uuid.uuid4()),
            name=name,
            types=tuple(result.get("types") or [place_type]),
            coordinate=_coordinate_or(location.get("lat"), location.get("lng"), fix),
            vicinity=result.get("vicinity"),
            rating=rating,
            place_id=place_id,
        )


# =============================================================================
# OpenStreetMap
# =============================================================================

# OSM key -> internal type tags
OSM_TAG_MAPPINGS = {
    "tourism": ("tourist_attraction", "museum", "monument"),
    "amenity": ("restaurant", "cafe", "hospital", "school", "library"),
    "historic": ("monument", "archaeological_site", "castle"),
    "leisure": ("park", "stadium", "golf_course"),
    "natural": ("peak", "water", "forest"),
}

# Keys whose value is also a meaningful type ("amenity=library" -> "library")
OSM_VALUE_KEYS = ("amenity", "tourism", "historic")


def extract_osm_types(tags: Dict[str, str]) -> List[str]:
    types: List[str] = []
    for key, value in tags.items():
        if key in OSM_TAG_MAPPINGS:
            types.extend(OSM_TAG_MAPPINGS[key])
        if key in OSM_VALUE_KEYS and isinstance(value, str):
            types.append(value)
    return types or ["point_of_interest"]


def build_osm_vicinity(tags: Dict[str, str]) -> str:
    parts = [tags[k] for k in ("addr:city", "addr:state", "addr:country") if tags.get(k)]
    return ", ".join(parts) or "Unknown location"


def build_poi_query(lat: float, lng: float, radius_m: int) -> str:
    around = f"(around:{radius_m},{lat},{lng})"
    keys = ("tourism", "amenity", "historic", "leisure", "natural")
    lines = [f'node["{k}"]{around};' for k in keys] + [f'way["{k}"]{around};' for k in keys]
    body = "\n      ".join(lines)
    return f"""
    [out:json][timeout:25];
    (
      {body}
    );
    out center;
    """


class OSMPlacesProvider:
    def __init__(self, overpass: OverpassHTTPClient):
        self.overpass = overpass

    def search(self, fix: Coordinate, radius_m: int, max_results: int) -> List[RawPlace]:
        query = build_poi_query(fix.latitude, fix.longitude, radius_m)
        try:
            data = self.overpass.query(query, caller="osm_pois")
        except (OverpassQueryError, OverpassRateLimitError):
            logger.warning("OpenStreetMap POI query failed", exc_info=True)
            return []

        elements = data.get("elements", []) if isinstance(data, dict) else []
        return list(self._parse(elements, fix))[:max_results]

    @staticmethod
    def _parse(elements: Iterable[Dict[str, Any]], fix: Coordinate) -> Iterable[RawPlace]:
        for element in elements:
            tags = element.get("tags") or {}
            name = tags.get("name")
            if not name:
                continue
            center = element.get("center") or {}
            lat = element.get("lat", center.get("lat"))
            lng = element.get("lon", center.get("lon"))
            yield RawPlace(
                id=f"osm_{element.get('type', 'node')}_{element.get('id')}",
                name=name,
                types=tuple(extract_osm_types(tags)),
                coordinate=_coordinate_or(lat, lng, fix),
                vicinity=build_osm_vicinity(tags),
            )
