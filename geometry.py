"""
Geometry helpers for road and POI proximity.

Distances are great-circle (Haversine, meters).  Point-to-segment
projection works on raw lat/lng, which is accurate enough at the scales
we search (a few kilometers) and away from the poles and antimeridian.
"""

import math
from typing import Sequence, Tuple

from models import Coordinate

EARTH_RADIUS_M = 6371000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points, returned in meters."""
    lat1_r, lon1_r = math.radians(lat1), math.radians(lon1)
    lat2_r, lon2_r = math.radians(lat2), math.radians(lon2)

    dlat = lat2_r - lat1_r
    dlon = lon2_r - lon1_r

    a = (math.sin(dlat / 2) ** 2
         + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def great_circle_distance(a: Coordinate, b: Coordinate) -> float:
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def _nearest_point_on_segment(
    px: float, py: float,
    ax: float, ay: float,
    bx: float, by: float,
) -> Tuple[float, float]:
    """Return the closest point on segment A->B to point P.

    Vector projection on lat/lng directly, t clamped to [0, 1].
    """
    abx = bx - ax
    aby = by - ay
    apx = px - ax
    apy = py - ay

    ab_dot_ab = abx * abx + aby * aby
    if ab_dot_ab == 0:
        # Degenerate segment (A == B)
        return (ax, ay)

    t = (apx * abx + apy * aby) / ab_dot_ab
    t = max(0.0, min(1.0, t))

    return (ax + t * abx, ay + t * aby)


def point_to_segment_distance(
    p: Coordinate, seg_start: Coordinate, seg_end: Coordinate
) -> float:
    """Meters from *p* to the nearest point of the segment."""
    near_lat, near_lng = _nearest_point_on_segment(
        p.latitude, p.longitude,
        seg_start.latitude, seg_start.longitude,
        seg_end.latitude, seg_end.longitude,
    )
    return haversine_m(p.latitude, p.longitude, near_lat, near_lng)


def point_to_polyline_distance(p: Coordinate, polyline: Sequence[Coordinate]) -> float:
    """Minimum distance from *p* to any segment of the polyline.

    Fewer than two vertices means there is no segment: returns +inf.
    """
    min_dist = math.inf
    for i in range(len(polyline) - 1):
        dist = point_to_segment_distance(p, polyline[i], polyline[i + 1])
        if dist < min_dist:
            min_dist = dist
    return min_dist


def polyline_centroid(polyline: Sequence[Coordinate]) -> Coordinate:
    """Arithmetic mean of the vertices; (0, 0) for an empty polyline."""
    if not polyline:
        return Coordinate(0.0, 0.0)
    if len(polyline) == 1:
        return polyline[0]
    n = len(polyline)
    return Coordinate(
        sum(c.latitude for c in polyline) / n,
        sum(c.longitude for c in polyline) / n,
    )


def polyline_length(polyline: Sequence[Coordinate]) -> float:
    if len(polyline) < 2:
        return 0.0
    return sum(
        great_circle_distance(polyline[i], polyline[i + 1])
        for i in range(len(polyline) - 1)
    )
