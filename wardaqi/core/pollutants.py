import math
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class Pollutant(str, Enum):
    # Declaration order doubles as the dominant-pollutant tie-break priority.
    PM25 = "pm25"
    PM10 = "pm10"
    NO2 = "no2"
    O3 = "o3"
    SO2 = "so2"
    CO = "co"


POLLUTANT_ORDER = list(Pollutant)

PollutantReading = Dict[Pollutant, float]

UNITS = {p: "µg/m³" for p in Pollutant}
UNITS[Pollutant.CO] = "mg/m³"

DISPLAY_NAMES = {
    Pollutant.PM25: "PM2.5",
    Pollutant.PM10: "PM10",
    Pollutant.NO2: "NO₂",
    Pollutant.O3: "O₃",
    Pollutant.SO2: "SO₂",
    Pollutant.CO: "CO",
}

key_map = {
    "pm2.5": Pollutant.PM25, "pm2_5": Pollutant.PM25, "pm25": Pollutant.PM25,
    "pm10": Pollutant.PM10,
    "no2": Pollutant.NO2, "nitrogen_dioxide": Pollutant.NO2,
    "o3": Pollutant.O3, "ozone": Pollutant.O3,
    "so2": Pollutant.SO2, "sulphur_dioxide": Pollutant.SO2, "sulfur_dioxide": Pollutant.SO2,
    "co": Pollutant.CO, "carbon_monoxide": Pollutant.CO,
}


def to_pollutant(key: Any) -> Optional[Pollutant]:
    if isinstance(key, Pollutant):
        return key
    if not isinstance(key, str):
        return None
    return key_map.get(key.lower().strip())


def is_present(value: Any) -> bool:
    """True for a usable concentration: a finite number (bools excluded)."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def normalize_reading(raw: Optional[Mapping[Any, Any]]) -> PollutantReading:
    """
    Map upstream pollutant keys onto Pollutant and drop anything that is not
    a finite number. Unknown keys (temperature, humidity, ...) are ignored.
    """
    reading: PollutantReading = {}
    if not raw:
        return reading
    for raw_key, val in raw.items():
        pollutant = to_pollutant(raw_key)
        if pollutant is None or not is_present(val):
            continue
        reading[pollutant] = float(val)
    return reading
