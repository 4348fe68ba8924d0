"""
Polygon centroids and great-circle distances.

Coordinates follow GeoJSON, i.e. ``[lng, lat]`` pairs, while every function
here returns or accepts ``(lat, lng)``.
"""

import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from shapely.errors import ShapelyError
from shapely.geometry import shape

EARTH_RADIUS_KM = 6371.0

LatLng = Tuple[float, float]


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def get_centroid(geometry: Optional[Dict[str, Any]]) -> Optional[LatLng]:
    """
    Area-weighted centroid of a GeoJSON Polygon or MultiPolygon (holes
    subtract). Returns None for missing, malformed, empty or zero-area
    geometry.
    """
    if not geometry:
        return None

    try:
        geom = shape(geometry)
        if geom.is_empty or geom.area == 0:
            return None
        c = geom.centroid
    except (ShapelyError, ValueError, TypeError, AttributeError, KeyError, IndexError):
        return None

    return c.y, c.x


def nearest_by_distance(
    origin: LatLng,
    candidates: Iterable[Tuple[Any, LatLng]],
    limit: int,
) -> List[Tuple[Any, float]]:
    lat, lng = origin
    ranked = [
        (item, haversine_distance(lat, lng, c_lat, c_lng))
        for item, (c_lat, c_lng) in candidates
    ]
    ranked.sort(key=lambda pair: pair[1])
    return ranked[:limit]
