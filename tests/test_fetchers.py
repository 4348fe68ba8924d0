import asyncio

import httpx
import pytest
from fastapi import HTTPException

from wardaqi.core.pollutants import Pollutant
from wardaqi.services.cache import TTLCache
from wardaqi.services.fetchers import fetch_city_stations, parse_station

LOCATIONS = {
    "results": [
        {
            "id": 8118,
            "name": "RK Puram, Delhi - DPCC",
            "coordinates": {"latitude": 28.563, "longitude": 77.186},
            "sensors": [
                {"id": 11, "parameter": {"name": "pm25"}},
                {"id": 12, "parameter": {"name": "pm10"}},
                {"id": 13, "parameter": {"name": "co"}},
            ],
        },
        {
            "id": 8119,
            "name": "Gas Only",
            "coordinates": {"latitude": 28.6, "longitude": 77.2},
            "sensors": [{"id": 21, "parameter": {"name": "no2"}}],
        },
        {
            "id": 8120,
            "name": "Broken",
            "coordinates": {"latitude": 28.7, "longitude": 77.1},
            "sensors": [{"id": 31, "parameter": {"name": "pm25"}}],
        },
    ]
}

LATEST = {
    8118: {
        "results": [
            {"sensorsId": 11, "value": 145.0, "datetime": {"utc": "2025-11-02T09:00:00Z"}},
            {"sensorsId": 12, "value": 210.0, "datetime": {"utc": "2025-11-02T10:00:00Z"}},
            {"sensorsId": 13, "value": 1200.0, "datetime": {"utc": "2025-11-02T08:00:00Z"}},
            {"sensorsId": 99, "value": 5.0, "datetime": {"utc": "2025-11-02T11:00:00Z"}},
        ]
    },
    8119: {"results": [{"sensorsId": 21, "value": 45.0, "datetime": {"utc": "2025-11-02T10:00:00Z"}}]},
}


def make_transport(calls, locations_status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        path = request.url.path
        if path.endswith("/locations"):
            if locations_status != 200:
                return httpx.Response(locations_status)
            return httpx.Response(200, json=LOCATIONS)
        loc_id = int(path.split("/")[-2])
        if loc_id in LATEST:
            return httpx.Response(200, json=LATEST[loc_id])
        return httpx.Response(500)

    return httpx.MockTransport(handler)


def run_fetch(cache, calls, locations_status=200, api_key="test-key"):
    async def _go():
        async with httpx.AsyncClient(transport=make_transport(calls, locations_status)) as client:
            return await fetch_city_stations(cache, client=client, api_key=api_key)

    return asyncio.run(_go())


def test_parse_station_converts_co_and_tracks_latest_time():
    station = parse_station(LOCATIONS["results"][0], LATEST[8118])

    assert station.id == 8118
    assert station.lat == 28.563
    assert station.measurements == {
        Pollutant.PM25: 145.0,
        Pollutant.PM10: 210.0,
        Pollutant.CO: 1.2,
    }
    assert station.sensor_ids == {Pollutant.PM25: 11, Pollutant.PM10: 12, Pollutant.CO: 13}
    assert station.last_updated == "2025-11-02T10:00:00Z"


def test_parse_station_requires_particulates():
    assert parse_station(LOCATIONS["results"][1], LATEST[8119]) is None


def test_fetch_skips_failing_and_gas_only_locations():
    calls = []
    stations = run_fetch(TTLCache(600), calls)

    assert [s.id for s in stations] == [8118]
    assert calls[0].headers["X-API-Key"] == "test-key"
    assert calls[0].url.params["radius"] == "25000"


def test_fetch_uses_cache_on_second_call():
    calls = []
    cache = TTLCache(600)
    first = run_fetch(cache, calls)
    n = len(calls)
    second = run_fetch(cache, calls)

    assert second == first
    assert len(calls) == n


def test_missing_api_key_is_a_server_error(monkeypatch):
    monkeypatch.setattr("wardaqi.services.fetchers.openaq_api_key", None)
    with pytest.raises(HTTPException) as exc:
        run_fetch(TTLCache(600), [], api_key=None)
    assert exc.value.status_code == 500


def test_upstream_failure_without_cache_raises():
    with pytest.raises(HTTPException) as exc:
        run_fetch(TTLCache(600), [], locations_status=503)
    assert exc.value.status_code == 502


def test_upstream_failure_serves_stale_cache():
    clock_now = [0.0]
    cache = TTLCache(600, clock=lambda: clock_now[0])
    fresh = run_fetch(cache, [])

    clock_now[0] = 10_000.0
    stale = run_fetch(cache, [], locations_status=503)
    assert stale == fresh


def test_empty_location_list_is_not_found(monkeypatch):
    monkeypatch.setitem(LOCATIONS, "results", [])
    with pytest.raises(HTTPException) as exc:
        run_fetch(TTLCache(600), [])
    assert exc.value.status_code == 404
