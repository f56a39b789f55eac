"""
Road naming and classification helpers.

Turns raw OSM tags (highway / name / ref) and free-form road names from
Google into the classifications and display names used in RoadMatch:

    "I 287" + "Cross Westchester Expressway"
        -> "Interstate 287 (Cross Westchester Expressway)"
"""

import re
from typing import Optional, Tuple

# OSM highway tag -> classification used for confidence bonuses
HIGHWAY_CLASSIFICATION = {
    "motorway": "interstate",
    "trunk": "us_highway",
    "primary": "state_highway",
    "secondary": "state_highway",
}

# OSM highway tag -> type tags carried by road RawPlaces
HIGHWAY_TYPE_TAGS = {
    "motorway": ("highway", "motorway", "interstate"),
    "trunk": ("highway", "trunk", "us_highway"),
    "primary": ("highway", "primary", "state_highway"),
    "secondary": ("highway", "secondary", "state_highway"),
}
DEFAULT_TYPE_TAGS = ("highway", "major_road")

_STATE_NAMES = {
    "new jersey": "NJ",
    "new york": "NY",
    "illinois": "IL",
}

_MAJOR_HIGHWAY_WORDS = ("parkway", "expressway", "freeway", "turnpike")

_LINK_ROAD_TYPES = {
    "motorway_link": "interstate",
    "trunk_link": "major_highway",
    "primary_link": "state_highway",
    "secondary_link": "county_road",
    "tertiary_link": "arterial",
}


def map_highway_type(highway: Optional[str]) -> str:
    return HIGHWAY_CLASSIFICATION.get(highway or "", "highway")


def highway_type_tags(classification: str) -> Tuple[str, ...]:
    """Type tags for a road with the given classification."""
    for osm_value, tags in HIGHWAY_TYPE_TAGS.items():
        if HIGHWAY_CLASSIFICATION[osm_value] == classification:
            return tags
    return DEFAULT_TYPE_TAGS


def format_highway_ref(ref: str) -> str:
    """Format an OSM ref for display ("I-95" -> "Interstate 95")."""
    ref = ref.strip()
    if re.match(r"^I-?\s?\d+$", ref, re.I):
        return "Interstate " + re.sub(r"^I-?\s?", "", ref, flags=re.I)
    if re.match(r"^US-?\s?\d+$", ref, re.I):
        return "US Highway " + re.sub(r"^US-?\s?", "", ref, flags=re.I)
    if re.match(r"^(SR|CA)-?\s?\d+$", ref, re.I):
        return "State Route " + re.sub(r"^(SR|CA)-?\s?", "", ref, flags=re.I)
    if re.match(r"^[A-Z]{2}-?\s?\d+$", ref, re.I):
        state = ref[:2].upper()
        number = re.sub(r"^[A-Z]{2}-?\s?", "", ref, flags=re.I)
        return f"{state} {number}"
    if re.match(r"^\d+$", ref):
        return f"Highway {ref}"
    return ref


def create_display_name(name: Optional[str], ref: Optional[str]) -> str:
    """Combine name and ref: "Interstate 287 (Cross Westchester Expressway)"."""
    if name and ref:
        formatted = format_highway_ref(ref)
        lower = name.lower()
        if ref.lower() in lower or formatted.lower() in lower:
            return name
        return f"{formatted} ({name})"
    if ref:
        return format_highway_ref(ref)
    if name:
        return name
    return "Unknown Highway"


def classify_road_type(
    highway: str = "", ref: Optional[str] = None, name: Optional[str] = None
) -> str:
    """Classify a road from its OSM highway tag, ref and name."""
    ref = (ref or "").strip()
    lower = (name or "").lower()

    if highway == "motorway" or re.match(r"^I-?\s?\d+$", ref, re.I) or "interstate" in lower:
        return "interstate"
    if highway == "trunk" or re.match(r"^US-?\s?\d+$", ref, re.I) or "us highway" in lower:
        return "us_highway"
    if (
        highway == "primary"
        or re.match(r"^(SR|CA|NY|NJ|IL|TX|FL)-?\s?\d+$", ref, re.I)
        or "state route" in lower
        or "state highway" in lower
    ):
        return "state_highway"
    if (
        highway == "secondary"
        or re.match(r"^(CR|CO|COUNTY)-?\s?\d+$", ref, re.I)
        or "county" in lower
        or "farm to market" in lower
    ):
        return "county_road"
    if highway in ("tertiary", "unclassified"):
        return "arterial"
    if highway in ("residential", "service"):
        return "local_road"
    if any(word in lower for word in _MAJOR_HIGHWAY_WORDS):
        return "major_highway"

    return _LINK_ROAD_TYPES.get(highway, "unknown")


def classify_road_type_from_name(name: str) -> str:
    """Classify a road from its name alone (Google and POI-derived roads)."""
    lower = (name or "").lower()

    if "interstate" in lower or re.search(r"\bi-?\d+\b", lower):
        return "interstate"
    if "us highway" in lower or "us route" in lower or re.search(r"\bus-?\d+\b", lower):
        return "us_highway"
    if (
        "state route" in lower
        or "state highway" in lower
        or re.search(r"\b(sr|ca|ny|nj|il|tx|fl)-?\d+\b", lower)
    ):
        return "state_highway"
    if any(word in lower for word in _MAJOR_HIGHWAY_WORDS + ("beltway", "bypass")):
        return "major_highway"
    if (
        "county" in lower
        or "farm to market" in lower
        or re.search(r"\b(cr|co|county)-?\d+\b", lower)
    ):
        return "county_road"
    return "arterial"


def extract_highway_ref(road_name: Optional[str]) -> Optional[str]:
    """Pull a highway ref out of a free-form road name ("Interstate 80" -> "I-80")."""
    if not road_name:
        return None
    name = road_name.lower()

    m = re.search(r"\binterstate\s+(\d+)\b", name) or re.search(r"\bi-?(\d+)\b", name)
    if m:
        return f"I-{m.group(1)}"

    m = re.search(r"\bus\s+(?:highway|route)\s+(\d+)\b", name) or re.search(r"\bus-?(\d+)\b", name)
    if m:
        return f"US-{m.group(1)}"

    for state_name, abbrev in _STATE_NAMES.items():
        m = re.search(rf"\b(?:{state_name}|{abbrev.lower()})\s+(\d+)\b", name)
        if m:
            return f"{abbrev}-{m.group(1)}"
    m = re.search(r"\b(?!us\b)([a-z]{2})\s+(\d+)\b", name)
    if m:
        return f"{m.group(1).upper()}-{m.group(2)}"

    m = re.search(r"\broute\s+(\d+)\b", name) or re.search(r"\bsr\s+(\d+)\b", name)
    if m:
        return f"SR-{m.group(1)}"

    return None
