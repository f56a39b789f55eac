"""Tests for highway_locator.py: progressive radius search and confidence."""

from unittest.mock import MagicMock

import pytest

from geometry import polyline_centroid
from highway_locator import (
    EnhancedHighwayLocator,
    HighwayLocator,
    enhanced_confidence,
    geometric_confidence,
)
from models import Coordinate
from road_network import RoadCandidate, RoadNetworkAdapter

FIX = Coordinate(41.0, -73.75)


# =========================================================================
# Helpers
# =========================================================================

def _road(osm_id, lat_offset, classification="state_highway", highway="primary",
          name=None, ref=None, vertices=2):
    """East-west road passing *lat_offset* degrees north of FIX."""
    lat = FIX.latitude + lat_offset
    step = 0.1 / (vertices - 1)
    polyline = tuple(Coordinate(lat, -73.80 + i * step) for i in range(vertices))
    name = name or f"Road {osm_id}"
    return RoadCandidate(
        osm_id=str(osm_id),
        name=name,
        ref=ref,
        highway=highway,
        classification=classification,
        display_name=name,
        polyline=polyline,
        center=polyline_centroid(polyline),
    )


def _network(by_radius):
    network = MagicMock(spec=RoadNetworkAdapter)
    network.find_major_roads.side_effect = lambda center, radius: by_radius.get(radius, [])
    return network


def _queried_radii(network):
    return [c.args[1] for c in network.find_major_roads.call_args_list]


# =========================================================================
# Confidence
# =========================================================================

class TestConfidence:
    def test_close_detailed_road(self):
        assert geometric_confidence(30, 12) == pytest.approx(1.0)

    def test_far_sparse_road(self):
        assert geometric_confidence(1500, 2) == pytest.approx(0.5)

    def test_band_boundaries(self):
        assert geometric_confidence(200, 2) == pytest.approx(0.8)
        assert geometric_confidence(500, 6) == pytest.approx(0.75)

    def test_interstate_at_30m_is_clamped(self):
        c = enhanced_confidence(30, "interstate", 12)
        assert c == pytest.approx(1.0)
        assert enhanced_confidence(30, "interstate", 2) >= 0.95

    def test_classification_bonus(self):
        assert enhanced_confidence(800, "us_highway", 2) == pytest.approx(
            geometric_confidence(800, 2) + 0.08
        )
        assert enhanced_confidence(800, "highway", 2) == pytest.approx(
            geometric_confidence(800, 2)
        )


# =========================================================================
# Progressive search
# =========================================================================

class TestProgressiveSearch:
    def test_stops_at_first_non_empty_radius(self):
        at_500 = [_road(1, 0.002), _road(2, 0.001)]
        at_2000 = [_road(i, 0.01) for i in range(10, 15)]
        network = _network({100: [], 500: at_500, 2000: at_2000})

        matches = HighwayLocator(network).locate(FIX, 5000)

        assert len(matches) == 2
        assert _queried_radii(network) == [100, 500]
        assert [m.name for m in matches] == ["Road 2", "Road 1"]

    def test_respects_max_radius(self):
        network = _network({})
        assert HighwayLocator(network).locate(FIX, 500) == []
        assert _queried_radii(network) == [100, 500]

    def test_nothing_found(self):
        network = _network({})
        assert HighwayLocator(network).locate(FIX, 5000) == []
        assert _queried_radii(network) == [100, 500, 2000]

    def test_network_exception_moves_to_next_radius(self):
        network = MagicMock(spec=RoadNetworkAdapter)
        network.find_major_roads.side_effect = [RuntimeError("boom"), [_road(1, 0.001)]]

        matches = HighwayLocator(network).locate(FIX, 5000)

        assert len(matches) == 1

    def test_custom_radii(self):
        network = _network({})
        HighwayLocator(network, radii_m=[250, 50]).locate(FIX, 5000)
        assert _queried_radii(network) == [50, 250]

    def test_true_distance_beats_midpoint(self):
        # Long road right next to FIX but with a far-away centroid
        long_road = RoadCandidate(
            osm_id="99", name="Long Road", ref=None, highway="motorway",
            classification="interstate", display_name="Long Road",
            polyline=(Coordinate(41.0002, -74.5), Coordinate(41.0002, -73.7)),
            center=Coordinate(41.0002, -74.1),
        )
        short_road = _road(1, 0.003)
        network = _network({100: [], 500: [short_road, long_road]})

        matches = HighwayLocator(network).locate(FIX, 5000)

        assert matches[0].name == "Long Road"
        assert matches[0].distance_m < 50


# =========================================================================
# Match contents
# =========================================================================

class TestMatchContents:
    def test_point_to_line_metadata(self):
        road = _road(5, 0.001, name="Boston Post Road", ref="US 1",
                     classification="us_highway", highway="trunk")
        network = _network({100: [road]})

        match = HighwayLocator(network).locate(FIX, 5000)[0]

        assert match.detection_method == "point_to_line"
        assert match.classification == "us_highway"
        assert match.road_type == "us_highway"
        assert match.metadata["osm_id"] == "5"
        assert match.metadata["geometry_points"] == 2
        assert match.metadata["raw_ref"] == "US 1"
        assert "search_radius" not in match.metadata
        assert 0.0 <= match.confidence <= 1.0

    def test_road_type_from_osm_highway_tag(self):
        road = _road(6, 0.0005, name="Northway Connector", highway="motorway")
        network = _network({100: [road]})

        match = HighwayLocator(network).locate(FIX, 5000)[0]

        assert match.road_type == "interstate"

    def test_enhanced_rejects_beyond_radius(self):
        near = _road(1, 0.003)   # ~333m
        far = _road(2, 0.006)    # ~667m
        network = _network({100: [], 500: [near, far]})

        matches = EnhancedHighwayLocator(network).locate(FIX, 5000)

        assert [m.name for m in matches] == ["Road 1"]
        assert matches[0].detection_method == "enhanced_overpass"
        assert matches[0].metadata["search_radius"] == 500

    def test_enhanced_keeps_expanding_when_all_rejected(self):
        far = _road(2, 0.006)
        network = _network({100: [], 500: [far], 2000: [far]})

        matches = EnhancedHighwayLocator(network).locate(FIX, 5000)

        assert len(matches) == 1
        assert matches[0].metadata["search_radius"] == 2000

    def test_enhanced_confidence_higher_for_interstate(self):
        interstate = _road(1, 0.0005, classification="interstate", highway="motorway")  # ~56m
        network = _network({100: [interstate]})

        plain = HighwayLocator(network).locate(FIX, 5000)[0]
        enhanced = EnhancedHighwayLocator(network).locate(FIX, 5000)[0]

        assert enhanced.confidence >= plain.confidence
