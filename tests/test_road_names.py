"""Tests for road_names.py: ref formatting, display names, classification."""

import pytest

from road_names import (
    DEFAULT_TYPE_TAGS,
    classify_road_type,
    classify_road_type_from_name,
    create_display_name,
    extract_highway_ref,
    format_highway_ref,
    highway_type_tags,
    map_highway_type,
)


class TestHighwayTypeMapping:
    @pytest.mark.parametrize("highway,expected", [
        ("motorway", "interstate"),
        ("trunk", "us_highway"),
        ("primary", "state_highway"),
        ("secondary", "state_highway"),
        ("tertiary", "highway"),
        (None, "highway"),
    ])
    def test_map_highway_type(self, highway, expected):
        assert map_highway_type(highway) == expected

    def test_type_tags(self):
        assert highway_type_tags("interstate") == ("highway", "motorway", "interstate")
        assert highway_type_tags("highway") == DEFAULT_TYPE_TAGS


class TestFormatHighwayRef:
    @pytest.mark.parametrize("ref,expected", [
        ("I-95", "Interstate 95"),
        ("I 287", "Interstate 287"),
        ("US 9", "US Highway 9"),
        ("US-1", "US Highway 1"),
        ("SR 9A", "SR 9A"),
        ("CA-1", "State Route 1"),
        ("NY 9", "NY 9"),
        ("nj-440", "NJ 440"),
        ("22", "Highway 22"),
        ("Bronx River Pkwy", "Bronx River Pkwy"),
    ])
    def test_formats(self, ref, expected):
        assert format_highway_ref(ref) == expected


class TestDisplayName:
    def test_name_and_ref(self):
        assert (
            create_display_name("Cross Westchester Expressway", "I 287")
            == "Interstate 287 (Cross Westchester Expressway)"
        )

    def test_name_already_contains_ref(self):
        assert create_display_name("Interstate 95", "I-95") == "Interstate 95"

    def test_ref_only(self):
        assert create_display_name(None, "US 1") == "US Highway 1"

    def test_name_only(self):
        assert create_display_name("Main Street", None) == "Main Street"

    def test_nothing(self):
        assert create_display_name(None, None) == "Unknown Highway"


class TestClassifyRoadType:
    @pytest.mark.parametrize("highway,ref,name,expected", [
        ("motorway", None, None, "interstate"),
        ("", "I-87", None, "interstate"),
        ("", None, "Interstate 80", "interstate"),
        ("trunk", None, None, "us_highway"),
        ("", "NY 22", None, "state_highway"),
        ("", "CR 35", None, "county_road"),
        ("tertiary", None, None, "arterial"),
        ("residential", None, None, "local_road"),
        ("", None, "Garden State Parkway", "major_highway"),
        ("motorway_link", None, None, "interstate"),
        ("secondary_link", None, None, "county_road"),
        ("", None, None, "unknown"),
    ])
    def test_classification(self, highway, ref, name, expected):
        assert classify_road_type(highway, ref, name) == expected


class TestClassifyFromName:
    @pytest.mark.parametrize("name,expected", [
        ("I-95", "interstate"),
        ("US Route 1", "us_highway"),
        ("NJ-440", "state_highway"),
        ("Capital Beltway", "major_highway"),
        ("County Road 12", "county_road"),
        ("Mamaroneck Avenue", "arterial"),
        ("", "arterial"),
    ])
    def test_from_name(self, name, expected):
        assert classify_road_type_from_name(name) == expected


class TestExtractHighwayRef:
    @pytest.mark.parametrize("name,expected", [
        ("Interstate 80", "I-80"),
        ("I-287 Cross Westchester Expy", "I-287"),
        ("US Highway 9", "US-9"),
        ("US-1", "US-1"),
        ("New Jersey 440", "NJ-440"),
        ("NY 22", "NY-22"),
        ("Route 9", "SR-9"),
        ("Main Street", None),
        (None, None),
    ])
    def test_extract(self, name, expected):
        assert extract_highway_ref(name) == expected

    def test_word_boundaries(self):
        assert extract_highway_ref("Ridge Road") is None
