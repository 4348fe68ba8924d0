from typing import Any, Dict, List, Optional, Sequence

from fastapi import Body, FastAPI, HTTPException, Query, Request

from wardaqi.core.breakpoints import BREAKPOINTS
from wardaqi.core.conversions import calculate_aqi, get_aqi_status, get_sub_index
from wardaqi.core.pollutants import DISPLAY_NAMES, UNITS, Pollutant
from wardaqi.core.ward_mapping import get_filtered_aqi, map_wards_to_aqi, summarize_ward_map, wards_from_geojson
from wardaqi.schemas import (
    AQIResult,
    Station,
    SubIndexResponse,
    WardAQIEntry,
    WardAQIRequest,
    WardAQIResponse,
)
from wardaqi.services.cache import TTLCache
from wardaqi.services.fetchers import fetch_city_stations, stations_cache_key


def _station_cache(request: Request) -> TTLCache:
    return request.app.state.station_cache


def _ward_response(
    feature_collection: Dict[str, Any],
    stations: Sequence[Station],
    active: Optional[List[Pollutant]],
) -> WardAQIResponse:
    if feature_collection.get("type") != "FeatureCollection":
        raise HTTPException(status_code=422, detail="wards must be a GeoJSON FeatureCollection")

    wards = wards_from_geojson(feature_collection)
    keys: Dict[str, Any] = {}
    for ward in wards:
        prev = keys.setdefault(str(ward.id), ward.id)
        if prev != ward.id:
            # JSON object keys are strings, 1 and "1" would overwrite each other
            raise HTTPException(status_code=422, detail=f"ward ids {prev!r} and {ward.id!r} collide")

    ward_map = map_wards_to_aqi(wards, stations)

    entries = {}
    for ward_id, data in ward_map.items():
        filtered = get_filtered_aqi(data, active) if active else None
        entries[str(ward_id)] = WardAQIEntry(**data.model_dump(), filtered_aqi=filtered)

    return WardAQIResponse(wards=entries, summary=summarize_ward_map(wards, ward_map))


def register_routes(app: FastAPI) -> None:
    @app.get("/pollutants")
    async def list_pollutants() -> dict:
        return {
            "pollutants": [
                {
                    "id": p.value,
                    "name": DISPLAY_NAMES[p],
                    "unit": UNITS[p],
                    "breakpoints": [list(bp) for bp in BREAKPOINTS[p]],
                }
                for p in Pollutant
            ]
        }

    @app.get("/aqi/sub-index", response_model=SubIndexResponse)
    async def sub_index(pollutant: Pollutant, concentration: float = Query(..., allow_inf_nan=False)):
        idx = get_sub_index(pollutant, concentration)
        return SubIndexResponse(
            pollutant=pollutant,
            concentration=concentration,
            unit=UNITS[pollutant],
            sub_index=idx,
            status=get_aqi_status(idx),
        )

    @app.post("/aqi", response_model=AQIResult)
    async def composite_aqi(reading: Dict[str, Any] = Body(...)):
        return calculate_aqi(reading)

    @app.post("/wards/aqi", response_model=WardAQIResponse)
    async def ward_aqi(payload: WardAQIRequest):
        return _ward_response(payload.wards, payload.stations, payload.pollutants)

    @app.get("/stations", response_model=List[Station])
    async def list_stations(request: Request):
        return await fetch_city_stations(_station_cache(request))

    @app.post("/wards/aqi/live", response_model=WardAQIResponse)
    async def ward_aqi_live(
        request: Request,
        wards: Dict[str, Any] = Body(...),
        pollutants: Optional[List[Pollutant]] = Query(None),
    ):
        stations = await fetch_city_stations(_station_cache(request))
        return _ward_response(wards, stations, pollutants)

    @app.get("/cache/status")
    async def cache_status(request: Request) -> dict:
        return _station_cache(request).status(stations_cache_key())

    @app.post("/cache/clear")
    async def cache_clear(request: Request) -> dict:
        _station_cache(request).clear()
        return {"cleared": True}
