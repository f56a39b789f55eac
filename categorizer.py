"""
Map provider type tags onto the POICategory taxonomy.

Tags are read in the order the provider gave them: the first tag with an
entry in CATEGORY_TABLE decides the category. Road places list "highway"
first, so they categorize as roads even when an attraction tag follows.
"""

from typing import Iterable, Tuple

from models import POICategory

CATEGORY_TABLE: Tuple[Tuple[str, POICategory], ...] = (
    # Highways and roads
    ("highway", POICategory.MAJOR_ROAD),
    ("motorway", POICategory.MAJOR_ROAD),
    ("interstate", POICategory.MAJOR_ROAD),
    ("trunk", POICategory.MAJOR_ROAD),
    ("us_highway", POICategory.MAJOR_ROAD),
    ("state_highway", POICategory.MAJOR_ROAD),
    ("primary", POICategory.MAJOR_ROAD),
    ("major_road", POICategory.MAJOR_ROAD),

    # Municipalities and administrative areas
    ("locality", POICategory.TOWN),
    ("municipality", POICategory.TOWN),
    ("city", POICategory.TOWN),
    ("town", POICategory.TOWN),
    ("village", POICategory.TOWN),
    ("administrative_area_level_2", POICategory.COUNTY),
    ("county", POICategory.COUNTY),
    ("administrative_area_level_1", POICategory.COUNTY),  # states get county treatment
    ("state", POICategory.COUNTY),
    ("neighborhood", POICategory.NEIGHBORHOOD),

    # Geographic features
    ("natural_feature", POICategory.WATERWAY),
    ("mountain", POICategory.MOUNTAIN),
    ("peak", POICategory.MOUNTAIN),
    ("valley", POICategory.VALLEY),

    # Infrastructure
    ("route", POICategory.MAJOR_ROAD),
    ("bridge", POICategory.BRIDGE),
    ("landmark", POICategory.LANDMARK),
    ("airport", POICategory.AIRPORT),
    ("train_station", POICategory.TRAIN_STATION),
    ("gas_station", POICategory.REST_STOP),

    # Institutions
    ("university", POICategory.INSTITUTION),
    ("school", POICategory.INSTITUTION),
    ("museum", POICategory.MUSEUM),
    ("library", POICategory.LIBRARY),
    ("cultural_center", POICategory.CULTURAL_CENTER),

    # Natural areas
    ("park", POICategory.PARK),
    ("national_park", POICategory.PARK),
    ("forest", POICategory.PARK),

    # Cultural
    ("theater", POICategory.THEATER),
    ("movie_theater", POICategory.THEATER),
    ("art_gallery", POICategory.ART_INSTALLATION),

    # Religious
    ("church", POICategory.CHURCH),
    ("mosque", POICategory.RELIGIOUS_SITE),
    ("synagogue", POICategory.RELIGIOUS_SITE),
    ("temple", POICategory.TEMPLE),
    ("place_of_worship", POICategory.RELIGIOUS_SITE),

    # Recreation
    ("stadium", POICategory.STADIUM),
    ("golf_course", POICategory.GOLF_COURSE),
    ("amusement_park", POICategory.STADIUM),

    # Historical
    ("monument", POICategory.MEMORIAL),
    ("historic", POICategory.MEMORIAL),
    ("archaeological_site", POICategory.MEMORIAL),
    ("castle", POICategory.FORT),
    ("cemetery", POICategory.MEMORIAL),

    # Generic attractions
    ("tourist_attraction", POICategory.LANDMARK),
    ("point_of_interest", POICategory.LANDMARK),
)

DEFAULT_CATEGORY = POICategory.LANDMARK

_CATEGORY_BY_TAG = dict(CATEGORY_TABLE)


def categorize(tags: Iterable[str]) -> POICategory:
    """Category of the first known tag.  Unknown or empty -> LANDMARK."""
    for tag in tags:
        if isinstance(tag, str) and tag.lower() in _CATEGORY_BY_TAG:
            return _CATEGORY_BY_TAG[tag.lower()]
    return DEFAULT_CATEGORY
