"""Great-circle helpers for tracking-point geometry."""

from __future__ import annotations

import math
from collections.abc import Sequence

from agrisk.scoring.models import GeoPoint

EARTH_RADIUS_KM = 6371.0088


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in kilometres."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def bearing_deg(a: GeoPoint, b: GeoPoint) -> float:
    """Initial bearing from a to b, degrees clockwise from north in [0, 360)."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlng = math.radians(b.lng - a.lng)
    x = math.sin(dlng) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlng)
    return (math.degrees(math.atan2(x, y)) + 360.0) % 360.0


def heading_change_deg(first: float, second: float) -> float:
    """Smallest absolute angle between two bearings, in [0, 180]."""
    diff = abs(second - first) % 360.0
    return 360.0 - diff if diff > 180.0 else diff


def path_length_km(points: Sequence[GeoPoint]) -> float:
    return sum(haversine_km(a, b) for a, b in zip(points, points[1:]))


def _project(point: GeoPoint, origin: GeoPoint) -> tuple[float, float]:
    # Local equirectangular projection around origin, in km.
    x = math.radians(point.lng - origin.lng) * math.cos(math.radians(origin.lat)) * EARTH_RADIUS_KM
    y = math.radians(point.lat - origin.lat) * EARTH_RADIUS_KM
    return x, y


def _closest_on_segment(
    point: GeoPoint, start: GeoPoint, end: GeoPoint
) -> tuple[float, float]:
    """Return (distance_km, fraction along segment) of the closest point."""
    px, py = _project(point, start)
    ex, ey = _project(end, start)
    seg_sq = ex * ex + ey * ey
    if seg_sq == 0:
        return math.hypot(px, py), 0.0
    t = max(0.0, min(1.0, (px * ex + py * ey) / seg_sq))
    return math.hypot(px - t * ex, py - t * ey), t


def locate_on_path(point: GeoPoint, path: Sequence[GeoPoint]) -> tuple[float, float]:
    """Locate a point relative to a polyline.

    Returns:
        (lateral distance to the path in km, distance along the path in km
        of the closest point).
    """
    if not path:
        raise ValueError("path must contain at least one point")
    if len(path) == 1:
        return haversine_km(point, path[0]), 0.0

    best_distance = math.inf
    best_along = 0.0
    travelled = 0.0
    for start, end in zip(path, path[1:]):
        segment = haversine_km(start, end)
        distance, fraction = _closest_on_segment(point, start, end)
        if distance < best_distance:
            best_distance = distance
            best_along = travelled + fraction * segment
        travelled += segment
    return best_distance, best_along


def distance_to_path_km(point: GeoPoint, path: Sequence[GeoPoint]) -> float:
    return locate_on_path(point, path)[0]
