"""
Side-by-side comparison of highway detection strategies.

Runs four strategies against the same fix, concurrently:

  current            legacy point-to-point: MAJOR_ROAD POIs from discovery,
                     distance measured to the POI's reference point
  point_to_line      HighwayLocator, nearest polyline distance
  google_roads       Google snapToRoads + nearestRoads
  enhanced_overpass  EnhancedHighwayLocator

A failing strategy does not affect the others: it reports an empty
match list and its error, and its processing time is still measured.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from geometry import great_circle_distance
from highway_locator import HighwayLocator
from models import (
    DetectionMethodResult,
    HighwayDetectionComparison,
    LocationFix,
    POICategory,
    POIDiscoveryConfig,
    RoadMatch,
    is_fallback_poi,
    sorted_by_distance,
)
from road_names import classify_road_type_from_name
from road_snap import RoadSnapAdapter
from rt_trace import get_trace, run_with_trace
from scoring_config import SCORING_MODEL, ScoringModel

logger = logging.getLogger(__name__)

METHOD_KEYS = ("current", "point_to_line", "google_roads", "enhanced_overpass")


class HighwayDetectionComparator:
    def __init__(
        self,
        poi_service,
        point_to_line: HighwayLocator,
        road_snap: RoadSnapAdapter,
        enhanced: HighwayLocator,
        model: Optional[ScoringModel] = None,
    ):
        self.poi_service = poi_service
        self.point_to_line = point_to_line
        self.road_snap = road_snap
        self.enhanced = enhanced
        self.model = model or SCORING_MODEL

    def compare(self, fix: LocationFix) -> HighwayDetectionComparison:
        strategies: Dict[str, Callable[[LocationFix], List[RoadMatch]]] = {
            "current": self._run_current,
            "point_to_line": self._run_point_to_line,
            "google_roads": self._run_google_roads,
            "enhanced_overpass": self._run_enhanced_overpass,
        }

        parent_trace = get_trace()
        with ThreadPoolExecutor(max_workers=len(strategies)) as pool:
            futures = {
                key: pool.submit(run_with_trace, parent_trace, self._timed, key, fn, fix)
                for key, fn in strategies.items()
            }
            # Every branch settles before we build the response
            methods = {key: futures[key].result() for key in METHOD_KEYS}

        return HighwayDetectionComparison(
            location=fix.coordinate,
            methods=methods,
            timestamp=datetime.now(timezone.utc),
        )

    def _timed(
        self, key: str, fn: Callable[[LocationFix], List[RoadMatch]], fix: LocationFix
    ) -> DetectionMethodResult:
        t0 = time.monotonic()
        try:
            matches = fn(fix)
        except Exception as exc:
            elapsed_ms = (time.monotonic() - t0) * 1000
            logger.warning("Detection method %s failed", key, exc_info=True)
            return DetectionMethodResult(
                method=key,
                matches=(),
                processing_time_ms=elapsed_ms,
                error=f"{type(exc).__name__}: {exc}",
            )
        elapsed_ms = (time.monotonic() - t0) * 1000
        limit = self.model.search.comparison_max_matches
        return DetectionMethodResult(
            method=key,
            matches=tuple(sorted_by_distance(matches)[:limit]),
            processing_time_ms=elapsed_ms,
        )

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _run_current(self, fix: LocationFix) -> List[RoadMatch]:
        search = self.model.search
        pois = self.poi_service.discover_pois(
            fix,
            POIDiscoveryConfig(
                radius_meters=search.comparison_radius_m,
                max_results=search.current_method_max_results,
            ),
        )
        matches = []
        for poi in pois:
            # Fallback POIs are placeholders, not detections
            if poi.category != POICategory.MAJOR_ROAD or is_fallback_poi(poi):
                continue
            matches.append(RoadMatch(
                polyline=(poi.coordinate,),
                classification="highway",
                distance_m=great_circle_distance(fix.coordinate, poi.coordinate),
                confidence=max(0.0, min(1.0, poi.metadata.significance / 100)),
                display_name=poi.name,
                detection_method="current",
                name=poi.name,
                ref=None,
                road_type=classify_road_type_from_name(poi.name),
                metadata={
                    "method": "current",
                    "center_point": poi.coordinate,
                    "poi_id": poi.id,
                },
            ))
        return matches

    def _run_point_to_line(self, fix: LocationFix) -> List[RoadMatch]:
        return self.point_to_line.locate(fix.coordinate, self.model.search.comparison_radius_m)

    def _run_google_roads(self, fix: LocationFix) -> List[RoadMatch]:
        snapped = self.road_snap.snap(fix)
        nearest = self.road_snap.nearest_roads(fix)

        matches: List[RoadMatch] = []
        seen_place_ids = set()
        for road in ([snapped] if snapped is not None else []) + nearest[:4]:
            place_id = road.metadata.get("place_id")
            if place_id and place_id in seen_place_ids:
                continue
            seen_place_ids.add(place_id)
            matches.append(road)
        return sorted_by_distance(matches)

    def _run_enhanced_overpass(self, fix: LocationFix) -> List[RoadMatch]:
        return self.enhanced.locate(fix.coordinate, self.model.search.comparison_radius_m)


def summarize_comparison(comparison: HighwayDetectionComparison) -> List[Tuple[str, str]]:
    """(method, closest road or error) pairs for log / CLI output."""
    rows = []
    for key in METHOD_KEYS:
        result = comparison.methods[key]
        if result.error:
            rows.append((key, f"error: {result.error}"))
        elif result.matches:
            best = result.matches[0]
            rows.append((
                key,
                f"{best.display_name} ({best.distance_m:.0f}m, conf {best.confidence:.2f}, "
                f"{result.processing_time_ms:.0f}ms)",
            ))
        else:
            rows.append((key, f"no roads ({result.processing_time_ms:.0f}ms)"))
    return rows
