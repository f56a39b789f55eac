"""Duplicate removal for merged provider results."""

from typing import List, Sequence, Tuple, Union

from models import RawPlace

DedupeKey = Union[str, Tuple[str, float, float]]


def dedupe_key(place: RawPlace) -> DedupeKey:
    """place_id when the provider gave one, else name + rounded coordinates."""
    if place.place_id:
        return place.place_id
    return (
        place.name,
        round(place.coordinate.latitude, 5),
        round(place.coordinate.longitude, 5),
    )


def dedupe_places(places: Sequence[RawPlace]) -> List[RawPlace]:
    """Remove duplicates, preserving first occurrence and input order."""
    seen: set = set()
    unique: List[RawPlace] = []
    for p in places:
        key = dedupe_key(p)
        if key in seen:
            continue
        seen.add(key)
        unique.append(p)
    return unique
