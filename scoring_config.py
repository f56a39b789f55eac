"""
Scoring model configuration for POI discovery.

Owns every numeric constant that affects a significance score or a road
match confidence: category base scores, rating adjustments, proximity
buckets, tag bonus sets, confidence breakpoints, and the highway search
radii.

Frozen dataclasses provide type checking and IDE support without
the indirection of YAML/JSON config files.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from models import POICategory


# =============================================================================
# Dataclasses
# =============================================================================

@dataclass(frozen=True)
class DistanceBand:
    """Adjustment applied when a distance is <= max_m.

    Bands are evaluated nearest-first: the first band whose max_m >= the
    distance is used.
    """
    max_m: float
    adjustment: float


@dataclass(frozen=True)
class RatingAdjustment:
    """Maps a minimum rating threshold to a score adjustment.

    Evaluated highest-first: the first entry whose min_rating <= the
    place's rating is used.
    """
    min_rating: float
    points: int


@dataclass(frozen=True)
class TagBonus:
    """Flat adjustment applied once if any tag is in *tags*."""
    tags: FrozenSet[str]
    points: int


@dataclass(frozen=True)
class ConfidenceConfig:
    """Breakpoints for road-match confidence (0.0 - 1.0)."""
    base: float
    distance_bands: Tuple[DistanceBand, ...]
    vertex_bonuses: Tuple[Tuple[int, float], ...]   # (min vertices, bonus), highest first
    classification_bonuses: Dict[str, float]        # enhanced locator only
    snap_zero_at_m: float                           # road-snap: confidence hits 0 here


@dataclass(frozen=True)
class SignificanceConfig:
    """Rules for the 0-100 road-trip significance score."""
    category_base: Dict[POICategory, int]
    default_base: int
    rating_adjustments: Tuple[RatingAdjustment, ...]
    low_rating_below: float
    low_rating_points: int
    high_visibility: TagBonus
    road_tags: FrozenSet[str]
    road_proximity: Tuple[DistanceBand, ...]
    distant_road_points: int
    municipality: TagBonus
    county: TagBonus
    signage: TagBonus
    local_business: TagBonus


@dataclass(frozen=True)
class SearchConfig:
    highway_radii_m: Tuple[int, ...]
    comparison_max_matches: int
    comparison_radius_m: int
    current_method_max_results: int
    google_place_types: Tuple[str, ...]
    google_type_queries: int


@dataclass(frozen=True)
class ScoringModel:
    """Top-level container for all scoring parameters.

    A single module-level instance (SCORING_MODEL) is the source of truth.
    Bump `version` on every change that alters score outputs.
    """
    version: str
    significance: SignificanceConfig
    confidence: ConfidenceConfig
    search: SearchConfig


# =============================================================================
# Pure scoring functions
# =============================================================================

def apply_distance_bands(
    bands: Tuple[DistanceBand, ...], distance_m: float, beyond: float = 0.0
) -> float:
    """Return the adjustment of the first band covering *distance_m*.

    Bands are assumed sorted nearest-first.  Returns *beyond* when the
    distance exceeds every band.
    """
    for band in bands:
        if distance_m <= band.max_m:
            return band.adjustment
    return beyond


def apply_rating_adjustment(config: SignificanceConfig, rating: float) -> int:
    for adj in config.rating_adjustments:
        if rating >= adj.min_rating:
            return adj.points
    if rating < config.low_rating_below:
        return config.low_rating_points
    return 0


def vertex_bonus(bonuses: Tuple[Tuple[int, float], ...], vertex_count: int) -> float:
    for min_vertices, bonus in bonuses:
        if vertex_count >= min_vertices:
            return bonus
    return 0.0


# =============================================================================
# SCORING_MODEL: current production values
# =============================================================================

# Category base scores reflect how visible a feature is from the road and
# how likely it is to appear on highway signage.
_CATEGORY_BASE: Dict[POICategory, int] = {
    # Visible from highways, on signage
    POICategory.MAJOR_ROAD: 95,
    POICategory.TOWN: 90,
    POICategory.COUNTY: 70,
    POICategory.AIRPORT: 85,
    POICategory.BRIDGE: 75,
    POICategory.MOUNTAIN: 75,
    POICategory.WATERWAY: 70,

    # Major landmarks and infrastructure
    POICategory.TRAIN_STATION: 70,
    POICategory.STADIUM: 65,
    POICategory.INSTITUTION: 60,
    POICategory.PARK: 60,
    POICategory.SCENIC_OVERLOOK: 80,
    POICategory.MEMORIAL: 65,
    POICategory.FORT: 60,

    # Notable but less visible
    POICategory.MUSEUM: 55,
    POICategory.LIBRARY: 40,
    POICategory.CHURCH: 50,
    POICategory.TEMPLE: 50,
    POICategory.RELIGIOUS_SITE: 45,
    POICategory.THEATER: 45,
    POICategory.CULTURAL_CENTER: 45,

    POICategory.VALLEY: 55,
    POICategory.PLATEAU: 50,
    POICategory.NEIGHBORHOOD: 35,

    POICategory.REST_STOP: 40,
    POICategory.LANDMARK: 50,

    POICategory.WILDLIFE_REFUGE: 45,
    POICategory.MUSIC_VENUE: 35,
    POICategory.ART_INSTALLATION: 30,
    POICategory.MONASTERY: 40,
    POICategory.PILGRIMAGE_SITE: 45,

    POICategory.FACTORY: 25,
    POICategory.MILL: 30,
    POICategory.MINING_SITE: 35,
    POICategory.AGRICULTURAL_FACILITY: 20,
    POICategory.FARM: 25,
    POICategory.VINEYARD: 40,
    POICategory.ORCHARD: 30,
    POICategory.FARMERS_MARKET: 35,

    POICategory.RACE_TRACK: 50,
    POICategory.GOLF_COURSE: 30,
    POICategory.SKI_RESORT: 55,

    POICategory.MILITARY_BASE: 45,
    POICategory.BATTLEFIELD: 60,

    POICategory.HISTORIC_ROUTE: 65,
    POICategory.CANAL: 50,
    POICategory.RAILROAD_HERITAGE: 55,

    POICategory.CAVE: 60,
    POICategory.ROCK_FORMATION: 65,
    POICategory.MINERAL_SITE: 40,
    POICategory.FAULT_LINE: 35,
}

ROAD_TAGS = frozenset({
    "highway", "motorway", "interstate", "trunk",
    "us_highway", "state_highway", "major_road",
})

# Road proximity: on the road (GPS noise) > very close > nearby > visible.
_ROAD_PROXIMITY = (
    DistanceBand(max_m=50, adjustment=15),
    DistanceBand(max_m=100, adjustment=10),
    DistanceBand(max_m=500, adjustment=5),
    DistanceBand(max_m=2000, adjustment=-15),
)


SCORING_MODEL = ScoringModel(
    version="1.0.0",

    significance=SignificanceConfig(
        category_base=_CATEGORY_BASE,
        default_base=30,
        rating_adjustments=(
            RatingAdjustment(min_rating=4.5, points=15),
            RatingAdjustment(min_rating=4.0, points=10),
            RatingAdjustment(min_rating=3.5, points=5),
        ),
        low_rating_below=3.0,
        low_rating_points=-5,
        high_visibility=TagBonus(
            tags=frozenset({
                "tourist_attraction", "monument", "landmark", "scenic_overlook",
                "park", "national_park", "state_park", "historic", "castle",
            }),
            points=10,
        ),
        road_tags=ROAD_TAGS,
        road_proximity=_ROAD_PROXIMITY,
        distant_road_points=-35,
        municipality=TagBonus(
            tags=frozenset({"locality", "municipality", "city", "town", "village"}),
            points=15,
        ),
        county=TagBonus(
            tags=frozenset({
                "county", "state",
                "administrative_area_level_2", "administrative_area_level_1",
            }),
            points=10,
        ),
        signage=TagBonus(
            tags=frozenset({
                "airport", "university", "hospital", "stadium", "downtown",
                "city_hall", "courthouse", "convention_center",
            }),
            points=8,
        ),
        local_business=TagBonus(
            tags=frozenset({
                "restaurant", "cafe", "store", "shop", "gas_station",
                "convenience_store", "pharmacy", "bank",
            }),
            points=-10,
        ),
    ),

    confidence=ConfidenceConfig(
        base=0.5,
        distance_bands=(
            DistanceBand(max_m=50, adjustment=0.4),
            DistanceBand(max_m=200, adjustment=0.3),
            DistanceBand(max_m=500, adjustment=0.2),
            DistanceBand(max_m=1000, adjustment=0.1),
        ),
        vertex_bonuses=((10, 0.1), (5, 0.05)),
        classification_bonuses={
            "interstate": 0.1,
            "us_highway": 0.08,
            "state_highway": 0.05,
        },
        snap_zero_at_m=1000.0,
    ),

    search=SearchConfig(
        highway_radii_m=(100, 500, 2000),
        comparison_max_matches=5,
        comparison_radius_m=5000,
        current_method_max_results=10,
        # Only the first google_type_queries types are queried per request.
        google_place_types=(
            "tourist_attraction", "museum", "park", "church", "university",
            "stadium", "airport", "train_station", "city_hall", "library",
            "hospital", "cemetery", "bridge",
        ),
        google_type_queries=3,
    ),
)


def category_base_score(category: POICategory, model: Optional[ScoringModel] = None) -> int:
    sig = (model or SCORING_MODEL).significance
    return sig.category_base.get(category, sig.default_base)


# Validate at import time (ValueError, not assert, so validation is never
# stripped by python -O).
for _cat, _score in _CATEGORY_BASE.items():
    if not 0 <= _score <= 100:
        raise ValueError(f"Base score for {_cat.value!r} is {_score}, expected 0-100")
_radii = SCORING_MODEL.search.highway_radii_m
if list(_radii) != sorted(set(_radii)) or not _radii or _radii[0] <= 0:
    raise ValueError(f"Highway search radii must be positive and ascending, got {_radii}")
for _bands in (_ROAD_PROXIMITY, SCORING_MODEL.confidence.distance_bands):
    _limits = [b.max_m for b in _bands]
    if _limits != sorted(_limits):
        raise ValueError(f"Distance bands must be sorted nearest-first, got {_limits}")
