"""Tests for dedupe.py: merged provider result de-duplication."""

from dedupe import dedupe_key, dedupe_places
from models import Coordinate, RawPlace


def _place(id, name="Playland", lat=40.9683, lng=-73.6707, place_id=None):
    return RawPlace(
        id=id, name=name, types=("amusement_park",),
        coordinate=Coordinate(lat, lng), place_id=place_id,
    )


class TestDedupeKey:
    def test_place_id_preferred(self):
        assert dedupe_key(_place("a", place_id="ChIJ123")) == "ChIJ123"

    def test_name_and_rounded_coords(self):
        assert dedupe_key(_place("a", lat=40.968312, lng=-73.670741)) == (
            "Playland", 40.96831, -73.67074,
        )


class TestDedupePlaces:
    def test_shared_place_id(self):
        places = [
            _place("google_1", place_id="ChIJ123"),
            _place("google_2", name="Rye Playland", lat=40.97, place_id="ChIJ123"),
        ]
        assert [p.id for p in dedupe_places(places)] == ["google_1"]

    def test_same_name_same_spot(self):
        places = [_place("osm_node_1"), _place("osm_way_2", lat=40.968301)]
        assert [p.id for p in dedupe_places(places)] == ["osm_node_1"]

    def test_distinct_places_kept_in_order(self):
        places = [
            _place("a", name="Rye Town Park"),
            _place("b"),
            _place("c", name="Playland", lat=41.0),
        ]
        assert [p.id for p in dedupe_places(places)] == ["a", "b", "c"]

    def test_empty(self):
        assert dedupe_places([]) == []
