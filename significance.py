"""
Road-trip significance scoring.

Scores a place 0-100 by how relevant it is to someone driving past:
visibility from the road, presence on highway signage, and, for roads,
how close the vehicle actually is to it.  Rules run in a fixed order and
each applies at most once; the result is clamped to [0, 100].

    1. category base score (default 30)
    2. provider rating
    3. high-visibility tag bonus
    4. road proximity (road-tagged places only)
    5. municipality bonus, else county/state bonus
    6. highway signage bonus
    7. local-business penalty
"""

from typing import Iterable, List, Optional

from geometry import great_circle_distance
from models import Coordinate, POICategory, RawPlace
from scoring_config import (
    SCORING_MODEL,
    ScoringModel,
    apply_distance_bands,
    apply_rating_adjustment,
    category_base_score,
)

# Tags that mark a place as a notable landmark in its descriptors
NOTABLE_LANDMARK_TAGS = frozenset({
    "museum", "university", "hospital", "airport", "train_station",
    "tourist_attraction", "monument", "park", "stadium", "church",
})


def _lower_tags(tags: Iterable[str]) -> List[str]:
    return [t.lower() for t in tags if isinstance(t, str)]


def _any_tag(tags: List[str], wanted: frozenset) -> bool:
    return any(t in wanted for t in tags)


def road_distance_m(place: RawPlace, fix: Coordinate) -> float:
    """Geometric distance when the locator supplied one, else point-to-point."""
    if place.geometric_distance_m is not None:
        return place.geometric_distance_m
    return great_circle_distance(fix, place.coordinate)


def score_significance(
    place: RawPlace,
    category: POICategory,
    fix: Coordinate,
    model: Optional[ScoringModel] = None,
) -> int:
    model = model or SCORING_MODEL
    cfg = model.significance
    tags = _lower_tags(place.types)

    score = float(category_base_score(category, model))

    if place.rating:
        score += apply_rating_adjustment(cfg, place.rating)

    if _any_tag(tags, cfg.high_visibility.tags):
        score += cfg.high_visibility.points

    if _any_tag(tags, cfg.road_tags):
        score += apply_distance_bands(
            cfg.road_proximity,
            road_distance_m(place, fix),
            beyond=cfg.distant_road_points,
        )

    for tag in tags:
        if tag in cfg.municipality.tags:
            score += cfg.municipality.points
            break
        if tag in cfg.county.tags:
            score += cfg.county.points
            break

    if _any_tag(tags, cfg.signage.tags):
        score += cfg.signage.points

    if _any_tag(tags, cfg.local_business.tags):
        score += cfg.local_business.points

    return int(max(0.0, min(100.0, score)))


def significance_descriptors(place: RawPlace) -> List[str]:
    """Qualitative descriptors: highly_rated / notable_landmark / local_interest."""
    descriptors = []
    if place.rating and place.rating >= 4.0:
        descriptors.append("highly_rated")
    if _any_tag(_lower_tags(place.types), NOTABLE_LANDMARK_TAGS):
        descriptors.append("notable_landmark")
    if not descriptors:
        descriptors.append("local_interest")
    return descriptors


def generate_description(place: RawPlace) -> str:
    """e.g. "A museum located in Springfield with a 4.5/5 rating"."""
    parts = []
    if place.types:
        parts.append(f"A {place.types[0].replace('_', ' ')}")
    if place.vicinity:
        parts.append(f"located in {place.vicinity}")
    if place.rating:
        parts.append(f"with a {place.rating:g}/5 rating")
    return " ".join(parts) or f"{place.name} is a point of interest in the area."
