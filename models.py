"""
Data model for POI discovery and highway detection.

Every entity here is built fresh for one request and discarded with the
response.  Nothing holds a connection, a cache, or a background task.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# =============================================================================
# Coordinates and fixes
# =============================================================================

def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """True for finite numeric lat/lng inside [-90, 90] x [-180, 180]."""
    if isinstance(lat, bool) or isinstance(lng, bool):
        return False
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


# Ordered vertices approximating a road.  0-1 points is a valid (degenerate)
# polyline; distance to it is +inf.
Polyline = Tuple[Coordinate, ...]


@dataclass(frozen=True)
class LocationFix:
    """A single GPS reading from the vehicle."""
    latitude: float
    longitude: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    accuracy_m: float = 10.0

    def __post_init__(self):
        if not is_valid_coordinate(self.latitude, self.longitude):
            raise ValueError(
                f"Invalid coordinate: ({self.latitude}, {self.longitude})"
            )
        if self.accuracy_m < 0:
            raise ValueError(f"Invalid accuracy: {self.accuracy_m} (must be >= 0)")

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    @classmethod
    def at(cls, latitude: float, longitude: float, accuracy_m: float = 10.0) -> "LocationFix":
        return cls(latitude=latitude, longitude=longitude, accuracy_m=accuracy_m)


# =============================================================================
# Road matches
# =============================================================================

@dataclass(frozen=True)
class RoadMatch:
    """One candidate road for a fix, produced by a detection strategy."""
    polyline: Polyline
    classification: str         # "interstate" | "us_highway" | "state_highway" | ...
    distance_m: float
    confidence: float           # 0.0 - 1.0
    display_name: str           # e.g. "Interstate 287 (Cross Westchester Expressway)"
    detection_method: str       # "current" | "point_to_line" | "google_roads" | "enhanced_overpass"
    name: str = ""              # raw name as reported by the source
    ref: Optional[str] = None   # e.g. "I 287"
    road_type: str = "unknown"
    metadata: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Points of interest
# =============================================================================

class POICategory(str, Enum):
    # Geographic features
    TOWN = "town"
    COUNTY = "county"
    NEIGHBORHOOD = "neighborhood"
    WATERWAY = "waterway"
    MOUNTAIN = "mountain"
    VALLEY = "valley"
    PLATEAU = "plateau"

    # Infrastructure
    MAJOR_ROAD = "major_road"
    BRIDGE = "bridge"
    LANDMARK = "landmark"
    AIRPORT = "airport"
    TRAIN_STATION = "train_station"
    REST_STOP = "rest_stop"

    # Institutions
    INSTITUTION = "institution"
    MUSEUM = "museum"
    LIBRARY = "library"
    CULTURAL_CENTER = "cultural_center"

    # Natural areas
    PARK = "park"
    WILDLIFE_REFUGE = "wildlife_refuge"
    SCENIC_OVERLOOK = "scenic_overlook"

    # Cultural sites
    THEATER = "theater"
    MUSIC_VENUE = "music_venue"
    ART_INSTALLATION = "art_installation"

    # Religious sites
    RELIGIOUS_SITE = "religious_site"
    CHURCH = "church"
    TEMPLE = "temple"
    MONASTERY = "monastery"
    PILGRIMAGE_SITE = "pilgrimage_site"

    # Industrial heritage
    FACTORY = "factory"
    MILL = "mill"
    MINING_SITE = "mining_site"
    AGRICULTURAL_FACILITY = "agricultural_facility"

    # Sports and recreation
    STADIUM = "stadium"
    RACE_TRACK = "race_track"
    GOLF_COURSE = "golf_course"
    SKI_RESORT = "ski_resort"

    # Military sites
    MILITARY_BASE = "military_base"
    BATTLEFIELD = "battlefield"
    MEMORIAL = "memorial"
    FORT = "fort"

    # Transportation history
    HISTORIC_ROUTE = "historic_route"
    CANAL = "canal"
    RAILROAD_HERITAGE = "railroad_heritage"

    # Geological features
    CAVE = "cave"
    ROCK_FORMATION = "rock_formation"
    MINERAL_SITE = "mineral_site"
    FAULT_LINE = "fault_line"

    # Agricultural landmarks
    FARM = "farm"
    VINEYARD = "vineyard"
    ORCHARD = "orchard"
    FARMERS_MARKET = "farmers_market"


CATEGORY_GROUPS: Dict[str, Tuple[POICategory, ...]] = {
    "geographic": (
        POICategory.TOWN, POICategory.COUNTY, POICategory.NEIGHBORHOOD,
        POICategory.WATERWAY, POICategory.MOUNTAIN, POICategory.VALLEY,
        POICategory.PLATEAU,
    ),
    "infrastructure": (
        POICategory.MAJOR_ROAD, POICategory.BRIDGE, POICategory.LANDMARK,
        POICategory.AIRPORT, POICategory.TRAIN_STATION, POICategory.REST_STOP,
    ),
    "institutions": (
        POICategory.INSTITUTION, POICategory.MUSEUM, POICategory.LIBRARY,
        POICategory.CULTURAL_CENTER,
    ),
    "natural": (
        POICategory.PARK, POICategory.WILDLIFE_REFUGE, POICategory.SCENIC_OVERLOOK,
    ),
    "cultural": (
        POICategory.THEATER, POICategory.MUSIC_VENUE, POICategory.ART_INSTALLATION,
    ),
    "religious": (
        POICategory.RELIGIOUS_SITE, POICategory.CHURCH, POICategory.TEMPLE,
        POICategory.MONASTERY, POICategory.PILGRIMAGE_SITE,
    ),
    "industrial": (
        POICategory.FACTORY, POICategory.MILL, POICategory.MINING_SITE,
        POICategory.AGRICULTURAL_FACILITY,
    ),
    "recreation": (
        POICategory.STADIUM, POICategory.RACE_TRACK, POICategory.GOLF_COURSE,
        POICategory.SKI_RESORT,
    ),
    "military": (
        POICategory.MILITARY_BASE, POICategory.BATTLEFIELD, POICategory.MEMORIAL,
        POICategory.FORT,
    ),
    "transportation": (
        POICategory.HISTORIC_ROUTE, POICategory.CANAL, POICategory.RAILROAD_HERITAGE,
    ),
    "geological": (
        POICategory.CAVE, POICategory.ROCK_FORMATION, POICategory.MINERAL_SITE,
        POICategory.FAULT_LINE,
    ),
    "agricultural": (
        POICategory.FARM, POICategory.VINEYARD, POICategory.ORCHARD,
        POICategory.FARMERS_MARKET,
    ),
}


@dataclass(frozen=True)
class POIMetadata:
    significance: float                     # 0-100 road-trip relevance
    tags: Tuple[str, ...] = ()              # provider type tags, as received
    descriptors: Tuple[str, ...] = ()       # "highly_rated", "notable_landmark", ...
    population: Optional[int] = None
    founded_year: Optional[int] = None
    elevation_m: Optional[float] = None


@dataclass(frozen=True)
class PointOfInterest:
    id: str
    name: str
    category: POICategory
    coordinate: Coordinate
    description: str
    metadata: POIMetadata


# Ids of the built-in fallback POIs served when no live source answers
FALLBACK_ID_PREFIX = "mock_"


def is_fallback_poi(poi: PointOfInterest) -> bool:
    return poi.id.startswith(FALLBACK_ID_PREFIX)


def validate_point_of_interest(poi: PointOfInterest) -> bool:
    """Check the invariants every outgoing POI must satisfy."""
    if not isinstance(poi.id, str) or not poi.id.strip():
        return False
    if not isinstance(poi.name, str) or not poi.name.strip():
        return False
    if not isinstance(poi.description, str):
        return False
    if not isinstance(poi.category, POICategory):
        return False
    if not is_valid_coordinate(poi.coordinate.latitude, poi.coordinate.longitude):
        return False

    meta = poi.metadata
    if not 0 <= meta.significance <= 100:
        return False
    if meta.population is not None and meta.population < 0:
        return False
    if meta.founded_year is not None and meta.founded_year < 0:
        return False
    return True


# =============================================================================
# Provider boundary record
# =============================================================================

@dataclass(frozen=True)
class RawPlace:
    """A provider result with its optional fields already resolved.

    Adapters build these from heterogeneous JSON; the categorizer and the
    significance scorer only ever read these attributes.
    """
    id: str
    name: str
    types: Tuple[str, ...]
    coordinate: Coordinate
    vicinity: Optional[str] = None
    rating: Optional[float] = None
    place_id: Optional[str] = None
    # Road results only
    geometric_distance_m: Optional[float] = None
    road_geometry: Polyline = ()
    confidence: Optional[float] = None
    detection_method: Optional[str] = None


# =============================================================================
# Detection comparison
# =============================================================================

@dataclass(frozen=True)
class DetectionMethodResult:
    method: str
    matches: Tuple[RoadMatch, ...] = ()     # ascending distance
    processing_time_ms: float = 0.0
    error: Optional[str] = None


@dataclass(frozen=True)
class HighwayDetectionComparison:
    location: Coordinate
    methods: Dict[str, DetectionMethodResult]
    timestamp: datetime


# =============================================================================
# Discovery configuration
# =============================================================================

@dataclass(frozen=True)
class POIDiscoveryConfig:
    radius_meters: int = 5000
    max_results: int = 20
    min_significance: Optional[float] = None    # 0-100 scale

    def __post_init__(self):
        if self.radius_meters <= 0:
            raise ValueError(f"radius_meters must be positive, got {self.radius_meters}")
        if self.max_results < 1:
            raise ValueError(f"max_results must be >= 1, got {self.max_results}")
        if self.min_significance is not None and not 0 <= self.min_significance <= 100:
            raise ValueError(
                f"min_significance must be within 0-100, got {self.min_significance}"
            )


def poi_to_dict(poi: PointOfInterest) -> Dict[str, Any]:
    """JSON-friendly view of a POI (used by the CLI)."""
    meta = poi.metadata
    out: Dict[str, Any] = {
        "id": poi.id,
        "name": poi.name,
        "category": poi.category.value,
        "location": {
            "latitude": poi.coordinate.latitude,
            "longitude": poi.coordinate.longitude,
        },
        "description": poi.description,
        "metadata": {
            "significance": meta.significance,
            "tags": list(meta.tags),
            "descriptors": list(meta.descriptors),
        },
    }
    for key in ("population", "founded_year", "elevation_m"):
        value = getattr(meta, key)
        if value is not None:
            out["metadata"][key] = value
    return out


def road_match_to_dict(match: RoadMatch) -> Dict[str, Any]:
    return {
        "name": match.name,
        "ref": match.ref,
        "display_name": match.display_name,
        "classification": match.classification,
        "road_type": match.road_type,
        "distance_m": round(match.distance_m, 1),
        "confidence": round(match.confidence, 3),
        "detection_method": match.detection_method,
        "geometry_points": len(match.polyline),
    }


def comparison_to_dict(comparison: HighwayDetectionComparison) -> Dict[str, Any]:
    methods: Dict[str, Any] = {}
    for key, result in comparison.methods.items():
        entry: Dict[str, Any] = {
            "method": result.method,
            "processing_time_ms": round(result.processing_time_ms, 1),
            "highways": [road_match_to_dict(m) for m in result.matches],
        }
        if result.error:
            entry["error"] = result.error
        methods[key] = entry
    return {
        "location": {
            "latitude": comparison.location.latitude,
            "longitude": comparison.location.longitude,
        },
        "methods": methods,
        "timestamp": comparison.timestamp.isoformat(),
    }


def sorted_by_distance(matches: List[RoadMatch]) -> List[RoadMatch]:
    return sorted(matches, key=lambda m: m.distance_m)
