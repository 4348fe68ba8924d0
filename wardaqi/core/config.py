import os
import json
from dotenv import load_dotenv
from typing import Dict, Any, List

load_dotenv()

_data_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")

def _load_json(fname: str) -> Dict[str, Any]:
    p = os.path.join(_data_dir, fname)
    with open(p, "r", encoding="utf-8") as f:
        return json.load(f)

def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw not in (None, "") else default

def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else default

AQI_BREAKPOINTS = _load_json("aqi_breakpoints.json")

# Manually curated neighbours for wards whose centroid distance does not
# reflect real adjacency (keyed by ward id as a string).
WARD_NEIGHBOR_OVERRIDES: Dict[str, List[str]] = {
    str(ward_id): [str(n) for n in neighbors]
    for ward_id, neighbors in _load_json("ward_overrides.json").items()
}

openaq_api_key = os.getenv("OPENAQ_API_KEY")
OPENAQ_BASE_URL = os.getenv("OPENAQ_BASE_URL", "https://api.openaq.org/v3").rstrip("/")

# Station search area (Delhi NCR by default). OpenAQ caps the radius at 25 km.
CITY_CENTER = {
    "lat": _env_float("CITY_CENTER_LAT", 28.6139),
    "lng": _env_float("CITY_CENTER_LNG", 77.2090),
    "radius_m": _env_int("CITY_RADIUS_M", 25000),
}
OPENAQ_LOCATION_LIMIT = _env_int("OPENAQ_LOCATION_LIMIT", 100)

STATION_SEARCH_RADIUS_KM = _env_float("STATION_SEARCH_RADIUS_KM", 25.0)
NEIGHBOR_WARD_COUNT = _env_int("NEIGHBOR_WARD_COUNT", 3)

CACHE_DURATION = _env_int("CACHE_DURATION", 600)  # 10 minutes
HTTP_TIMEOUT = _env_float("HTTP_TIMEOUT", 20.0)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
