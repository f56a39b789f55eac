"""
Road-network queries against OpenStreetMap (Overpass).

Fetches named / numbered major roads (motorway, trunk, primary,
secondary) around a point with full way geometry, and normalizes them
into RoadCandidate records.  Malformed vertices never leave this module:
non-numeric, NaN, and out-of-range coordinates are dropped, and ways left
with fewer than two vertices are skipped.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from geometry import polyline_centroid
from models import Coordinate, Polyline, is_valid_coordinate
from overpass_http import OverpassHTTPClient, OverpassQueryError, OverpassRateLimitError
from road_names import create_display_name, map_highway_type

logger = logging.getLogger(__name__)

MAJOR_HIGHWAY_PATTERN = "^(motorway|trunk|primary|secondary)$"
QUERY_TIMEOUT_S = 15


@dataclass(frozen=True)
class RoadCandidate:
    """A major road near the query point, with usable geometry."""
    osm_id: str
    name: Optional[str]
    ref: Optional[str]
    highway: str              # OSM highway tag value
    classification: str       # interstate | us_highway | state_highway | highway
    display_name: str
    polyline: Polyline
    center: Coordinate


def build_highway_query(lat: float, lng: float, radius_m: int) -> str:
    around = f"(around:{radius_m},{lat},{lng})"
    return f"""
    [out:json][timeout:{QUERY_TIMEOUT_S}];
    (
      way["highway"~"{MAJOR_HIGHWAY_PATTERN}"]["name"]{around};
      way["highway"~"{MAJOR_HIGHWAY_PATTERN}"]["ref"]{around};
    );
    out geom;
    """


def normalize_geometry(raw_geometry: Any) -> Polyline:
    """Keep only well-formed vertices from an Overpass `geometry` array."""
    if not isinstance(raw_geometry, list):
        return ()
    points = []
    for point in raw_geometry:
        if not isinstance(point, dict):
            continue
        lat = point.get("lat")
        lon = point.get("lon")
        if not is_valid_coordinate(lat, lon):
            continue
        points.append(Coordinate(float(lat), float(lon)))
    return tuple(points)


def parse_highway_elements(data: Dict[str, Any]) -> List[RoadCandidate]:
    """Parse an Overpass `out geom` response into RoadCandidates.

    Ways appear once per matching union branch (name and ref), so the
    same OSM id is only kept once.
    """
    roads: List[RoadCandidate] = []
    seen_ids = set()
    for element in data.get("elements", []) or []:
        if element.get("type", "way") != "way":
            continue
        tags = element.get("tags") or {}
        name = tags.get("name") or None
        ref = tags.get("ref") or None
        if not name and not ref:
            continue

        osm_id = str(element.get("id", ""))
        if osm_id and osm_id in seen_ids:
            continue

        polyline = normalize_geometry(element.get("geometry"))
        if len(polyline) < 2:
            continue

        highway = tags.get("highway", "")
        classification = map_highway_type(highway)
        seen_ids.add(osm_id)
        roads.append(RoadCandidate(
            osm_id=osm_id,
            name=name,
            ref=ref,
            highway=highway,
            classification=classification,
            display_name=create_display_name(name, ref),
            polyline=polyline,
            center=polyline_centroid(polyline),
        ))
    return roads


class RoadNetworkAdapter:
    """Major-road lookup for the highway locators."""

    def __init__(self, overpass: OverpassHTTPClient):
        self.overpass = overpass

    def find_major_roads(self, center: Coordinate, radius_m: int) -> List[RoadCandidate]:
        """Major roads within *radius_m* of *center*.

        Returns an empty list when Overpass is unavailable (graceful
        degradation; the caller treats it as "nothing found").
        """
        query = build_highway_query(center.latitude, center.longitude, radius_m)
        try:
            data = self.overpass.query(
                query, caller=f"highways_r{radius_m}", timeout=QUERY_TIMEOUT_S + 10,
            )
        except (OverpassQueryError, OverpassRateLimitError):
            logger.warning(
                "Overpass highway query failed at radius %dm", radius_m, exc_info=True,
            )
            return []

        roads = parse_highway_elements(data if isinstance(data, dict) else {})
        logger.debug("Found %d major roads within %dm", len(roads), radius_m)
        return roads
