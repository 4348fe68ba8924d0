import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import HTTPException

from wardaqi.core.config import CITY_CENTER, HTTP_TIMEOUT, OPENAQ_BASE_URL, OPENAQ_LOCATION_LIMIT, openaq_api_key
from wardaqi.core.pollutants import Pollutant, is_present, to_pollutant
from wardaqi.schemas import Station
from wardaqi.services.cache import TTLCache, make_key

logger = logging.getLogger(__name__)


def stations_cache_key():
    return make_key(
        "openaq-stations",
        lat=CITY_CENTER["lat"],
        lng=CITY_CENTER["lng"],
        radius_m=CITY_CENTER["radius_m"],
        limit=OPENAQ_LOCATION_LIMIT,
    )


def parse_station(location: Dict[str, Any], latest: Dict[str, Any]) -> Optional[Station]:
    """
    Build a Station from an OpenAQ v3 location and its ``/latest`` payload.

    ``/latest`` only carries sensor ids, so parameters are resolved through the
    location's sensor list. Returns None for locations without PM readings.
    """
    sensor_params = {}
    for sensor in location.get("sensors") or []:
        param = (sensor.get("parameter") or {}).get("name")
        if sensor.get("id") is not None and param:
            sensor_params[sensor["id"]] = param

    measurements = {}
    sensor_ids = {}
    last_updated = None

    for result in latest.get("results") or []:
        sensor_id = result.get("sensorsId")
        pollutant = to_pollutant(sensor_params.get(sensor_id))
        value = result.get("value")
        if pollutant is None or not is_present(value):
            continue

        value = float(value)
        if pollutant == Pollutant.CO:
            # OpenAQ reports CO in µg/m³, CPCB breakpoints are in mg/m³
            value = value / 1000.0

        measurements[pollutant] = value
        sensor_ids[pollutant] = sensor_id

        utc = (result.get("datetime") or {}).get("utc")
        if utc and (last_updated is None or utc > last_updated):
            last_updated = utc

    if Pollutant.PM25 not in measurements and Pollutant.PM10 not in measurements:
        return None

    coords = location.get("coordinates") or {}
    if coords.get("latitude") is None or coords.get("longitude") is None:
        return None

    return Station(
        id=location["id"],
        name=location.get("name") or str(location["id"]),
        lat=coords["latitude"],
        lng=coords["longitude"],
        measurements=measurements,
        sensor_ids=sensor_ids,
        last_updated=last_updated,
    )


async def fetch_openaq_stations(client: httpx.AsyncClient, api_key: str) -> List[Station]:
    headers = {"X-API-Key": api_key, "Accept": "application/json"}
    params = {
        "coordinates": f"{CITY_CENTER['lat']},{CITY_CENTER['lng']}",
        "radius": CITY_CENTER["radius_m"],
        "limit": OPENAQ_LOCATION_LIMIT,
    }

    try:
        r = await client.get(f"{OPENAQ_BASE_URL}/locations", params=params, headers=headers)
    except httpx.HTTPError as e:
        logger.error("OpenAQ locations request failed: %s", e)
        raise HTTPException(status_code=502, detail="openaq request failed")

    if r.status_code == 401:
        raise HTTPException(status_code=502, detail="openaq rejected the api key")
    if r.status_code != 200:
        raise HTTPException(status_code=502, detail="openaq request failed")

    locations = r.json().get("results") or []
    if not locations:
        raise HTTPException(status_code=404, detail="no openaq stations found")
    logger.info("OpenAQ returned %d locations", len(locations))

    stations = []
    for location in locations:
        loc_id = location.get("id")
        try:
            lr = await client.get(f"{OPENAQ_BASE_URL}/locations/{loc_id}/latest", headers=headers)
            lr.raise_for_status()
            station = parse_station(location, lr.json())
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning("skipping OpenAQ location %s: %s", loc_id, e)
            continue
        if station is not None:
            stations.append(station)

    logger.info("loaded %d stations with PM data", len(stations))
    return stations


async def fetch_city_stations(
    cache: TTLCache,
    client: Optional[httpx.AsyncClient] = None,
    api_key: Optional[str] = None,
) -> List[Station]:
    api_key = api_key or openaq_api_key
    if not api_key:
        raise HTTPException(status_code=500, detail="OPENAQ_API_KEY not configured")

    key = stations_cache_key()
    cached = cache.get(key)
    if cached is not None:
        logger.debug("using cached station data")
        return cached

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as own_client:
                stations = await fetch_openaq_stations(own_client, api_key)
        else:
            stations = await fetch_openaq_stations(client, api_key)
    except HTTPException as e:
        stale = cache.get_stale(key)
        if stale is None:
            raise
        logger.warning("station refresh failed (%s), serving stale cache", e.detail)
        return stale

    cache.set(key, stations)
    return stations
