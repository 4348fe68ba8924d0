from typing import Iterable, List, Tuple

from wardaqi.core.config import STATION_SEARCH_RADIUS_KM
from wardaqi.core.geometry import haversine_distance
from wardaqi.schemas import Station

NearbyStation = Tuple[Station, float]


def find_nearby_stations(
    lat: float,
    lng: float,
    stations: Iterable[Station],
    max_radius_km: float = STATION_SEARCH_RADIUS_KM,
) -> List[NearbyStation]:
    """Stations within ``max_radius_km`` of the point, closest first (stable on ties)."""
    nearby = []
    for station in stations:
        distance = haversine_distance(lat, lng, station.lat, station.lng)
        if distance <= max_radius_km:
            nearby.append((station, distance))

    nearby.sort(key=lambda pair: pair[1])
    return nearby
