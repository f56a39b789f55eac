"""
Google Roads adapter: identify the road under a GPS fix directly.

snap() uses snapToRoads on a single-point path; nearest_roads() uses
nearestRoads and returns every candidate segment.  Road names come from
Place Details keyed by the snapped point's place id.
"""

import logging
from typing import Dict, List, Optional

from geometry import haversine_m
from google_maps import GoogleMapsClient, GoogleMapsError, ProviderNotConfiguredError
from models import Coordinate, LocationFix, RoadMatch
from road_names import classify_road_type_from_name, extract_highway_ref
from scoring_config import SCORING_MODEL

logger = logging.getLogger(__name__)

DETECTION_METHOD = "google_roads"
UNKNOWN_ROAD = "Unknown Road"

# Times Square, NYC: always on a mapped road
_TEST_FIX = (40.7580, -73.9855)


def snap_confidence(distance_m: float) -> float:
    """1.0 at the road, falling linearly to 0.0 at snap_zero_at_m (1 km)."""
    zero_at = SCORING_MODEL.confidence.snap_zero_at_m
    if distance_m <= 0:
        return 1.0
    if distance_m >= zero_at:
        return 0.0
    return max(0.0, min(1.0, 1.0 - distance_m / zero_at))


def road_name_from_address(address: Optional[str]) -> str:
    """First comma-separated part of a formatted address."""
    if not address:
        return UNKNOWN_ROAD
    first = address.split(",")[0].strip()
    return first or UNKNOWN_ROAD


class RoadSnapAdapter:
    def __init__(self, client: GoogleMapsClient):
        self.client = client
        if not self.is_configured():
            logger.warning(
                "Google Roads API key not configured. Road snapping is disabled."
            )

    def is_configured(self) -> bool:
        return bool(self.client.roads_api_key)

    def _require_configured(self):
        if not self.is_configured():
            raise ProviderNotConfiguredError("Google Roads API key not configured")

    def _road_name(self, place_id: Optional[str]) -> str:
        if not place_id:
            return UNKNOWN_ROAD
        try:
            details = self.client.place_details(place_id, ["name", "formatted_address", "types"])
        except GoogleMapsError:
            logger.warning("Place details lookup failed for %s", place_id, exc_info=True)
            return UNKNOWN_ROAD
        return details.get("name") or road_name_from_address(details.get("formatted_address"))

    def _to_match(self, fix: LocationFix, point: Dict, source: str) -> Optional[RoadMatch]:
        loc = point.get("location") or {}
        lat, lng = loc.get("latitude"), loc.get("longitude")
        if lat is None or lng is None:
            return None

        distance = haversine_m(fix.latitude, fix.longitude, lat, lng)
        place_id = point.get("placeId")
        name = self._road_name(place_id)
        ref = extract_highway_ref(name)
        snapped = Coordinate(lat, lng)
        return RoadMatch(
            polyline=(snapped,),
            classification="road",
            distance_m=distance,
            confidence=snap_confidence(distance),
            display_name=name,
            detection_method=DETECTION_METHOD,
            name=name,
            ref=ref,
            road_type=classify_road_type_from_name(name),
            metadata={
                "method": DETECTION_METHOD,
                "source": source,
                "place_id": place_id,
                "snapped_location": snapped,
                "extracted_ref": ref,
            },
        )

    def snap(self, fix: LocationFix) -> Optional[RoadMatch]:
        """The road under *fix*, or None when Google finds no road."""
        self._require_configured()
        points = self.client.snap_to_roads([(fix.latitude, fix.longitude)], interpolate=True)
        for point in points:
            match = self._to_match(fix, point, "snap_to_roads")
            if match is not None:
                return match
        return None

    def nearest_roads(self, fix: LocationFix) -> List[RoadMatch]:
        """Every nearby road segment, closest first."""
        self._require_configured()
        points = self.client.nearest_roads([(fix.latitude, fix.longitude)])
        matches = []
        for point in points:
            match = self._to_match(fix, point, "nearest_roads")
            if match is not None:
                matches.append(match)
        return sorted(matches, key=lambda m: m.distance_m)

    def test_connection(self) -> bool:
        """Snap a known on-road point.  Never raises."""
        if not self.is_configured():
            return False
        try:
            return self.snap(LocationFix.at(*_TEST_FIX)) is not None
        except (GoogleMapsError, ProviderNotConfiguredError):
            logger.error("Google Roads API connection test failed", exc_info=True)
            return False
