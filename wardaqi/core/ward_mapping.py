"""
Ward-level AQI.

Maps monitoring stations onto ward polygons in two passes:

1. wards with at least one station within the search radius get an
   inverse-distance-weighted reading from those stations;
2. the remaining ("silent") wards are estimated from wards resolved in the
   first pass, either their configured neighbours or the nearest few by
   centroid distance.

Everything here is a pure function of its arguments.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from wardaqi.core.aggregation import aggregate_pollutants, average_pollutants
from wardaqi.core.config import NEIGHBOR_WARD_COUNT, STATION_SEARCH_RADIUS_KM, WARD_NEIGHBOR_OVERRIDES
from wardaqi.core.conversions import calculate_aqi, restrict_reading
from wardaqi.core.geometry import LatLng, get_centroid, nearest_by_distance
from wardaqi.core.locator import find_nearby_stations
from wardaqi.schemas import WATER_BODY_WARD_ID, Station, Ward, WardAQIData, WardId, WardMapSummary

logger = logging.getLogger(__name__)

ESTIMATED_LABEL = "Estimated from neighbors ({})"


def _feature_ward_id(props: Mapping[str, Any]) -> WardId:
    ward_id = props.get("Ward_No") or props.get("FID")
    if ward_id is None:
        return WATER_BODY_WARD_ID
    return ward_id


def wards_from_geojson(feature_collection: Mapping[str, Any]) -> List[Ward]:
    wards = []
    for feature in feature_collection.get("features") or []:
        props = feature.get("properties") or {}
        wards.append(
            Ward(
                id=_feature_ward_id(props),
                name=props.get("Ward_Name"),
                geometry=feature.get("geometry"),
            )
        )
    return wards


def _build_entry(ward_id: WardId, pollutants: Dict, **fields: Any) -> WardAQIData:
    aqi_result = calculate_aqi(pollutants)
    return WardAQIData(
        ward_id=ward_id,
        aqi=aqi_result.aqi,
        status=aqi_result.status,
        dominant_pollutant=aqi_result.dominant_pollutant,
        sub_indices=aqi_result.sub_indices,
        pollutants=pollutants,
        **fields,
    )


def _resolve_from_stations(
    ward: Ward,
    centroid: LatLng,
    stations: Sequence[Station],
    max_radius_km: float,
) -> Optional[WardAQIData]:
    nearby = find_nearby_stations(centroid[0], centroid[1], stations, max_radius_km)
    if not nearby:
        return None

    nearest = nearby[0][0]
    pollutants = aggregate_pollutants(nearby)
    return _build_entry(
        ward.id,
        pollutants,
        station_count=len(nearby),
        nearest_station=nearest.name,
        nearest_station_id=nearest.id,
        last_updated=nearest.last_updated,
        is_estimated=False,
    )


def _neighbor_candidates(
    ward: Ward,
    centroid: Optional[LatLng],
    resolved: Mapping[WardId, Tuple[WardAQIData, LatLng]],
    neighbor_count: int,
    neighbor_overrides: Mapping[str, Sequence[Any]],
) -> List[WardAQIData]:
    override = neighbor_overrides.get(str(ward.id))
    if override:
        by_key = {str(wid): entry for wid, entry in resolved.items()}
        listed = [by_key[str(n)] for n in override if str(n) in by_key]
        if listed:
            if centroid is None:
                return [data for data, _ in listed]
            # nearest listed neighbour first, listed order on ties
            ranked = nearest_by_distance(centroid, listed, len(listed))
            return [data for data, _ in ranked]
        logger.debug("ward %s: none of the configured neighbours resolved, using nearest wards", ward.id)

    if centroid is None:
        return []

    ranked = nearest_by_distance(centroid, resolved.values(), neighbor_count)
    return [data for data, _ in ranked]


def map_wards_to_aqi(
    wards: Iterable[Ward],
    stations: Sequence[Station],
    max_radius_km: float = STATION_SEARCH_RADIUS_KM,
    neighbor_count: int = NEIGHBOR_WARD_COUNT,
    neighbor_overrides: Optional[Mapping[str, Sequence[Any]]] = None,
) -> Dict[WardId, WardAQIData]:
    if neighbor_overrides is None:
        neighbor_overrides = WARD_NEIGHBOR_OVERRIDES

    wards = list(wards)
    ward_aqi_map: Dict[WardId, WardAQIData] = {}
    resolved: Dict[WardId, Tuple[WardAQIData, LatLng]] = {}
    centroids: Dict[WardId, Optional[LatLng]] = {}

    # First pass: wards with direct station coverage
    for ward in wards:
        if ward.id in centroids:
            continue
        centroid = get_centroid(ward.geometry)
        centroids[ward.id] = centroid
        if centroid is None:
            logger.debug("ward %s: no usable geometry", ward.id)
            continue

        entry = _resolve_from_stations(ward, centroid, stations, max_radius_km)
        if entry is None:
            continue
        ward_aqi_map[ward.id] = entry
        resolved[ward.id] = (entry, centroid)
        logger.debug("ward %s: aqi %d from %d stations", ward.id, entry.aqi, entry.station_count)

    # Second pass: silent wards, estimated from first-pass wards only
    seen = set()
    for ward in wards:
        if ward.id in ward_aqi_map or ward.id in seen:
            continue
        seen.add(ward.id)

        candidates = _neighbor_candidates(
            ward, centroids.get(ward.id), resolved, neighbor_count, neighbor_overrides
        )
        if not candidates:
            logger.debug("ward %s: no neighbours to estimate from", ward.id)
            continue

        first = candidates[0]
        pollutants = average_pollutants(c.pollutants for c in candidates)
        ward_aqi_map[ward.id] = _build_entry(
            ward.id,
            pollutants,
            station_count=0,
            nearest_station=ESTIMATED_LABEL.format(first.ward_id),
            nearest_station_id=first.nearest_station_id,
            last_updated=first.last_updated,
            is_estimated=True,
        )

    summary = summarize_ward_map(wards, ward_aqi_map)
    logger.info(
        "mapped %d wards from %d stations: %d direct, %d estimated, %d unresolved",
        summary.total, len(stations), summary.direct, summary.estimated, summary.unresolved,
    )
    return ward_aqi_map


def summarize_ward_map(wards: Iterable[Ward], ward_aqi_map: Mapping[WardId, WardAQIData]) -> WardMapSummary:
    ids = list(dict.fromkeys(w.id for w in wards))
    unresolved = [wid for wid in ids if wid not in ward_aqi_map]
    estimated = sum(1 for d in ward_aqi_map.values() if d.is_estimated)
    return WardMapSummary(
        total=len(ids),
        direct=len(ward_aqi_map) - estimated,
        estimated=estimated,
        unresolved=len(unresolved),
        unresolved_ids=unresolved,
    )


def get_filtered_aqi(ward_data: WardAQIData, active_pollutants: Iterable[Any]) -> int:
    """AQI of the ward when only ``active_pollutants`` are considered."""
    return calculate_aqi(restrict_reading(ward_data.pollutants, active_pollutants)).aqi
