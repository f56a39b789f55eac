"""
POI discovery for a moving vehicle.

Given a GPS fix, returns the points of interest a road-trip narrator
should know about, each categorized and scored 0-100 for road-trip
significance:

  - administrative context: the town, county and state the fix is in
  - the major roads the vehicle is on or near (progressive highway search)
  - nearby attractions (Google Places, falling back to OpenStreetMap)

Administrative context and attraction search run concurrently while the
highway search runs in the calling thread.  Results are merged in that
order (admin, highways, attractions), deduplicated, categorized, scored,
filtered and truncated.  If anything unexpected fails, or every live
source comes back empty, a fixed set of fallback POIs around the fix is
returned so callers always have something to narrate.

Usage:
    python poi_discovery.py 41.0340 -73.7629
    python poi_discovery.py 41.0340 -73.7629 --compare --json
"""

import argparse
import json
import logging
import sys
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Union

from categorizer import categorize
from config import Settings
from dedupe import dedupe_places
from detection_comparison import HighwayDetectionComparator, summarize_comparison
from geometry import great_circle_distance
from google_maps import GoogleMapsClient, GoogleMapsError, ProviderNotConfiguredError
from highway_locator import EnhancedHighwayLocator, HighwayLocator
from models import (
    Coordinate,
    HighwayDetectionComparison,
    LocationFix,
    POICategory,
    POIDiscoveryConfig,
    POIMetadata,
    PointOfInterest,
    RawPlace,
    RoadMatch,
    comparison_to_dict,
    poi_to_dict,
    validate_point_of_interest,
)
from nominatim import NominatimClient
from overpass_http import OverpassHTTPClient
from poi_providers import AdministrativeContextResolver, GooglePlacesProvider, OSMPlacesProvider
from road_names import highway_type_tags
from road_network import RoadNetworkAdapter
from road_snap import RoadSnapAdapter
from rt_trace import TraceContext, clear_trace, get_trace, run_with_trace, set_trace
from scoring_config import SCORING_MODEL
from significance import generate_description, score_significance, significance_descriptors

logger = logging.getLogger(__name__)

LocationLike = Union[LocationFix, Coordinate]


# =============================================================================
# Fallback POIs
# =============================================================================

# (id, name, category, d_lat, d_lng, description, significance, descriptors, extras)
_FALLBACK_POIS = (
    ("mock_town_1", "Historic Downtown", POICategory.TOWN, 0.01, 0.01,
     "A charming historic downtown area with 19th-century architecture",
     90, ("historical", "architectural"), {"founded_year": 1850, "population": 15000}),
    ("mock_park_1", "Riverside Park", POICategory.PARK, -0.005, 0.008,
     "A scenic park along the river with walking trails and picnic areas",
     60, ("recreational", "natural"), {"elevation_m": 150.0}),
    ("mock_museum_1", "Local History Museum", POICategory.MUSEUM, 0.003, -0.007,
     "Museum showcasing the rich history and culture of the region",
     55, ("cultural", "educational"), {"founded_year": 1925}),
    ("mock_church_1", "St. Mary's Cathedral", POICategory.CHURCH, 0.002, 0.004,
     "A beautiful Gothic cathedral built in the early 1900s",
     50, ("religious", "architectural"), {"founded_year": 1905}),
    ("mock_bridge_1", "Memorial Bridge", POICategory.BRIDGE, -0.003, -0.002,
     "A historic bridge spanning the local river, built to honor veterans",
     75, ("historical", "memorial"), {"founded_year": 1945}),
    ("mock_highway_1", "Interstate 95", POICategory.MAJOR_ROAD, 0.0, 0.0,
     "Major interstate highway running north-south along the East Coast",
     100, ("transportation", "infrastructure"), {}),
    ("mock_municipality_1", "Springfield", POICategory.TOWN, 0.0, 0.0,
     "Municipality in the local area",
     90, ("administrative", "municipal"), {"population": 25000}),
)


def fallback_pois(location: Coordinate, max_results: Optional[int] = None) -> List[PointOfInterest]:
    """Deterministic POIs placed at fixed offsets from *location*."""
    pois = []
    for (poi_id, name, category, d_lat, d_lng, description,
         significance, descriptors, extras) in _FALLBACK_POIS:
        coordinate = Coordinate(
            max(-90.0, min(90.0, location.latitude + d_lat)),
            max(-180.0, min(180.0, location.longitude + d_lng)),
        )
        pois.append(PointOfInterest(
            id=poi_id,
            name=name,
            category=category,
            coordinate=coordinate,
            description=description,
            metadata=POIMetadata(
                significance=significance,
                descriptors=descriptors,
                **extras,
            ),
        ))
    if max_results and max_results > 0:
        return pois[:max_results]
    return pois


# =============================================================================
# Helpers
# =============================================================================

def _timed_stage(stage_name, fn, *args, **kwargs):
    """Run *fn* as a trace stage, or just log its duration when untraced."""
    trace = get_trace()
    if trace:
        with trace.stage(stage_name):
            return fn(*args, **kwargs)

    t0 = time.time()
    try:
        result = fn(*args, **kwargs)
    except Exception:
        logger.warning("  [stage] %s FAILED (%.1fs)", stage_name, time.time() - t0, exc_info=True)
        raise
    logger.info("  [stage] %s OK (%.1fs)", stage_name, time.time() - t0)
    return result


def _as_fix(location: LocationLike) -> LocationFix:
    if isinstance(location, LocationFix):
        return location
    return LocationFix.at(location.latitude, location.longitude)


def highway_to_raw_place(match: RoadMatch, fix: Coordinate) -> RawPlace:
    """A located road as a scorable place carrying its geometric distance."""
    center = match.metadata.get("center_point") or fix
    osm_id = match.metadata.get("osm_id") or match.display_name
    return RawPlace(
        id=f"highway_{osm_id}",
        name=match.display_name,
        types=highway_type_tags(match.classification),
        coordinate=center,
        vicinity=f"{match.classification} near {fix.latitude:.4f}, {fix.longitude:.4f}",
        geometric_distance_m=match.distance_m,
        road_geometry=match.polyline,
        confidence=match.confidence,
        detection_method=match.detection_method,
    )


def filter_by_distance(
    pois: Sequence[PointOfInterest], center: LocationLike, max_distance_m: float
) -> List[PointOfInterest]:
    """POIs whose coordinate is within *max_distance_m* of *center*."""
    origin = Coordinate(center.latitude, center.longitude)
    return [p for p in pois if great_circle_distance(origin, p.coordinate) <= max_distance_m]


def sort_by_significance(pois: Sequence[PointOfInterest]) -> List[PointOfInterest]:
    """Highest significance first; ties keep their input order."""
    return sorted(pois, key=lambda p: p.metadata.significance or 0, reverse=True)


# =============================================================================
# Service
# =============================================================================

class POIDiscoveryService:
    def __init__(
        self,
        admin_resolver: AdministrativeContextResolver,
        google_places: Optional[GooglePlacesProvider],
        osm_places: Optional[OSMPlacesProvider],
        highway_locator: HighwayLocator,
        road_snap: RoadSnapAdapter,
        enhanced_locator: Optional[HighwayLocator] = None,
    ):
        self.admin_resolver = admin_resolver
        self.google_places = google_places
        self.osm_places = osm_places
        self.highway_locator = highway_locator
        self.road_snap = road_snap
        self.comparator = HighwayDetectionComparator(
            poi_service=self,
            point_to_line=highway_locator,
            road_snap=road_snap,
            enhanced=enhanced_locator or EnhancedHighwayLocator(highway_locator.road_network),
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "POIDiscoveryService":
        settings = settings or Settings.from_env()
        overpass = OverpassHTTPClient(settings.overpass_base_url, settings.http_timeout)
        google = GoogleMapsClient(
            settings.google_places_api_key,
            roads_api_key=settings.google_roads_api_key,
            timeout=settings.http_timeout,
        )
        nominatim = NominatimClient(
            settings.nominatim_base_url,
            user_agent=settings.nominatim_user_agent,
            timeout=settings.http_timeout,
        )
        road_network = RoadNetworkAdapter(overpass)
        return cls(
            admin_resolver=AdministrativeContextResolver(google, nominatim),
            google_places=GooglePlacesProvider(google),
            osm_places=OSMPlacesProvider(overpass),
            highway_locator=HighwayLocator(road_network),
            road_snap=RoadSnapAdapter(google),
            enhanced_locator=EnhancedHighwayLocator(road_network),
        )

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover_pois(
        self, location: LocationLike, config: Optional[POIDiscoveryConfig] = None
    ) -> List[PointOfInterest]:
        config = config or POIDiscoveryConfig()
        fix = _as_fix(location)

        trace = get_trace()
        owns_trace = trace is None
        if owns_trace:
            trace = TraceContext(trace_id=uuid.uuid4().hex[:12])
            trace.scoring_version = SCORING_MODEL.version
            set_trace(trace)

        try:
            try:
                places = self._gather(fix, config)
            except Exception:
                logger.exception(
                    "POI discovery failed at (%.5f, %.5f); returning fallback POIs",
                    fix.latitude, fix.longitude,
                )
                return fallback_pois(fix.coordinate, config.max_results)

            if not places:
                logger.warning(
                    "No live POI sources returned results at (%.5f, %.5f); "
                    "returning fallback POIs",
                    fix.latitude, fix.longitude,
                )
                return fallback_pois(fix.coordinate, config.max_results)

            try:
                return _timed_stage("scoring", self._build_pois, places, fix, config)
            except Exception:
                logger.exception("POI scoring failed; returning fallback POIs")
                return fallback_pois(fix.coordinate, config.max_results)
        finally:
            if owns_trace:
                trace.log_summary()
                clear_trace()

    def _gather(self, fix: LocationFix, config: POIDiscoveryConfig) -> List[RawPlace]:
        parent_trace = get_trace()
        with ThreadPoolExecutor(max_workers=2) as pool:
            admin_future = pool.submit(
                run_with_trace, parent_trace,
                _timed_stage, "admin_context", self.admin_resolver.resolve, fix.coordinate,
            )
            poi_future = pool.submit(
                run_with_trace, parent_trace,
                _timed_stage, "poi_search", self._search_pois, fix.coordinate, config,
            )

            highway_matches = _timed_stage(
                "highway_search", self.highway_locator.locate,
                fix.coordinate, config.radius_meters,
            )
            admin_places = admin_future.result()
            poi_places = poi_future.result()

        highway_places = [highway_to_raw_place(m, fix.coordinate) for m in highway_matches]
        logger.info(
            "Gathered %d admin, %d highway, %d POI results",
            len(admin_places), len(highway_places), len(poi_places),
        )
        return dedupe_places(admin_places + highway_places + poi_places)

    def _search_pois(self, fix: Coordinate, config: POIDiscoveryConfig) -> List[RawPlace]:
        if self.google_places is not None and self.google_places.is_configured():
            try:
                results = self.google_places.search(fix, config.radius_meters, config.max_results)
            except (GoogleMapsError, ProviderNotConfiguredError):
                logger.warning("Google Places search failed", exc_info=True)
                results = []
            if results:
                return results
            logger.info("Google Places returned nothing; falling back to OpenStreetMap")

        if self.osm_places is None:
            return []
        return self.osm_places.search(fix, config.radius_meters, config.max_results)

    def _build_pois(
        self, places: Sequence[RawPlace], fix: LocationFix, config: POIDiscoveryConfig
    ) -> List[PointOfInterest]:
        pois = []
        for place in places:
            category = categorize(place.types)
            poi = PointOfInterest(
                id=place.id,
                name=place.name,
                category=category,
                coordinate=place.coordinate,
                description=generate_description(place),
                metadata=POIMetadata(
                    significance=score_significance(place, category, fix.coordinate),
                    tags=tuple(place.types),
                    descriptors=tuple(significance_descriptors(place)),
                ),
            )
            if not validate_point_of_interest(poi):
                logger.debug("Dropping invalid POI %r", place.id)
                continue
            if (
                config.min_significance is not None
                and poi.metadata.significance < config.min_significance
            ):
                continue
            pois.append(poi)
        return pois[:config.max_results]

    # ------------------------------------------------------------------
    # Highway detection comparison
    # ------------------------------------------------------------------

    def compare_detection_methods(self, location: LocationLike) -> HighwayDetectionComparison:
        return self.comparator.compare(_as_fix(location))

    # Convenience pass-throughs so callers holding a service need nothing else
    filter_by_distance = staticmethod(filter_by_distance)
    sort_by_significance = staticmethod(sort_by_significance)


# =============================================================================
# CLI
# =============================================================================

def main():
    parser = argparse.ArgumentParser(
        description="Discover road-trip points of interest around a GPS fix"
    )
    parser.add_argument("latitude", type=float, help="Latitude of the fix")
    parser.add_argument("longitude", type=float, help="Longitude of the fix")
    parser.add_argument(
        "--radius",
        type=int,
        default=5000,
        help="Search radius in meters (default 5000)",
    )
    parser.add_argument(
        "--max-results",
        type=int,
        default=20,
        help="Maximum number of POIs to return (default 20)",
    )
    parser.add_argument(
        "--min-significance",
        type=float,
        help="Drop POIs scoring below this (0-100)",
    )
    parser.add_argument(
        "--compare",
        action="store_true",
        help="Compare the four highway detection methods instead",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON instead of formatted text",
    )

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    try:
        fix = LocationFix.at(args.latitude, args.longitude)
        config = POIDiscoveryConfig(
            radius_meters=args.radius,
            max_results=args.max_results,
            min_significance=args.min_significance,
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    service = POIDiscoveryService.from_settings()

    if args.compare:
        comparison = service.compare_detection_methods(fix)
        if args.json:
            print(json.dumps(comparison_to_dict(comparison), indent=2))
        else:
            for method, summary in summarize_comparison(comparison):
                print(f"{method:<18} {summary}")
        return

    pois = sort_by_significance(service.discover_pois(fix, config))
    if args.json:
        print(json.dumps([poi_to_dict(p) for p in pois], indent=2))
    else:
        for poi in pois:
            distance = great_circle_distance(fix.coordinate, poi.coordinate)
            print(
                f"{poi.metadata.significance:>5.0f}  {poi.category.value:<16} "
                f"{poi.name}  ({distance:.0f}m)"
            )


if __name__ == "__main__":
    main()
