"""
Progressive highway locator.

Finds the major roads closest to a GPS fix by querying the road network
at increasing radii (100 m, 500 m, 2 km) and stopping at the first radius
that yields anything.  Candidates are ranked by true point-to-polyline
distance, not by distance to a road's center point, so a long interstate
running past the fix wins over a short road whose midpoint is closer.

Two variants:
  HighwayLocator           detection method "point_to_line", base confidence
  EnhancedHighwayLocator   detection method "enhanced_overpass", adds a
                           classification bonus to confidence and rejects
                           candidates farther than the radius that found them
"""

import logging
from typing import List, Optional, Sequence

from geometry import point_to_polyline_distance
from models import Coordinate, RoadMatch, sorted_by_distance
from road_names import classify_road_type
from road_network import RoadCandidate, RoadNetworkAdapter
from scoring_config import SCORING_MODEL, ScoringModel, apply_distance_bands, vertex_bonus

logger = logging.getLogger(__name__)


# =============================================================================
# Confidence
# =============================================================================

def geometric_confidence(
    distance_m: float, vertex_count: int, model: Optional[ScoringModel] = None
) -> float:
    """Confidence from distance to the road and geometry resolution."""
    cfg = (model or SCORING_MODEL).confidence
    confidence = cfg.base
    confidence += apply_distance_bands(cfg.distance_bands, distance_m)
    confidence += vertex_bonus(cfg.vertex_bonuses, vertex_count)
    return max(0.0, min(1.0, confidence))


def enhanced_confidence(
    distance_m: float,
    classification: str,
    vertex_count: int,
    model: Optional[ScoringModel] = None,
) -> float:
    """geometric_confidence plus a bonus for well-mapped road classes."""
    cfg = (model or SCORING_MODEL).confidence
    confidence = geometric_confidence(distance_m, vertex_count, model)
    confidence += cfg.classification_bonuses.get(classification, 0.0)
    return max(0.0, min(1.0, confidence))


# =============================================================================
# Locators
# =============================================================================

class HighwayLocator:
    """Point-to-line highway search with progressive radius expansion."""

    detection_method = "point_to_line"

    def __init__(
        self,
        road_network: RoadNetworkAdapter,
        radii_m: Optional[Sequence[int]] = None,
        model: Optional[ScoringModel] = None,
    ):
        self.road_network = road_network
        self.model = model or SCORING_MODEL
        self.radii_m = tuple(radii_m or self.model.search.highway_radii_m)

    def locate(self, location: Coordinate, max_radius_m: int) -> List[RoadMatch]:
        """Closest major roads to *location*, ascending by distance.

        Radii above *max_radius_m* are never queried.  Returns [] when no
        radius produced a usable road.  Never raises.
        """
        radii = [r for r in sorted(self.radii_m) if r <= max_radius_m]
        for radius in radii:
            try:
                candidates = self.road_network.find_major_roads(location, radius)
            except Exception:
                logger.warning(
                    "Highway search failed at radius %dm", radius, exc_info=True,
                )
                continue

            matches = []
            for road in candidates:
                distance = point_to_polyline_distance(location, road.polyline)
                if not self._accept(distance, radius):
                    continue
                matches.append(self._build_match(road, distance, radius))

            if matches:
                logger.info(
                    "%s: %d roads at radius %dm (closest %s, %.0fm)",
                    self.detection_method, len(matches), radius,
                    min(matches, key=lambda m: m.distance_m).display_name,
                    min(m.distance_m for m in matches),
                )
                return sorted_by_distance(matches)

        return []

    def _accept(self, distance_m: float, radius_m: int) -> bool:
        return distance_m != float("inf")

    def _confidence(self, road: RoadCandidate, distance_m: float) -> float:
        return geometric_confidence(distance_m, len(road.polyline), self.model)

    def _metadata(self, road: RoadCandidate, distance_m: float, radius_m: int) -> dict:
        return {
            "method": self.detection_method,
            "osm_id": road.osm_id,
            "highway": road.highway,
            "geometry_points": len(road.polyline),
            "center_point": road.center,
            "geometric_distance": distance_m,
            "raw_name": road.name,
            "raw_ref": road.ref,
        }

    def _build_match(self, road: RoadCandidate, distance_m: float, radius_m: int) -> RoadMatch:
        name = road.name or road.display_name
        return RoadMatch(
            polyline=road.polyline,
            classification=road.classification,
            distance_m=distance_m,
            confidence=self._confidence(road, distance_m),
            display_name=road.display_name,
            detection_method=self.detection_method,
            name=name,
            ref=road.ref,
            road_type=classify_road_type(road.highway, road.ref, name),
            metadata=self._metadata(road, distance_m, radius_m),
        )


class EnhancedHighwayLocator(HighwayLocator):
    """Stricter variant with classification-aware confidence."""

    detection_method = "enhanced_overpass"

    def _accept(self, distance_m: float, radius_m: int) -> bool:
        return distance_m <= radius_m

    def _confidence(self, road: RoadCandidate, distance_m: float) -> float:
        return enhanced_confidence(
            distance_m, road.classification, len(road.polyline), self.model,
        )

    def _metadata(self, road: RoadCandidate, distance_m: float, radius_m: int) -> dict:
        meta = super()._metadata(road, distance_m, radius_m)
        meta["search_radius"] = radius_m
        return meta
