from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wardaqi.core.pollutants import Pollutant, PollutantReading, normalize_reading, to_pollutant

WardId = Union[int, str]


class SentinelWard(str, Enum):
    # GeoJSON feature with null identity properties: the Yamuna river polygon.
    YAMUNA_RIVER = "YAMUNA_RIVER"


WATER_BODY_WARD_ID: str = SentinelWard.YAMUNA_RIVER.value


class Station(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    name: str
    lat: float
    lng: float
    measurements: PollutantReading = Field(default_factory=dict)
    sensor_ids: Dict[Pollutant, int] = Field(default_factory=dict)
    last_updated: Optional[str] = None

    @field_validator("measurements", mode="before")
    @classmethod
    def _normalize_measurements(cls, v: Any) -> PollutantReading:
        return normalize_reading(v)

    @field_validator("sensor_ids", mode="before")
    @classmethod
    def _normalize_sensor_ids(cls, v: Any) -> Dict[Pollutant, Any]:
        out = {}
        for k, sid in (v or {}).items():
            p = to_pollutant(k)
            if p is not None and sid is not None:
                out[p] = sid
        return out


class AQIResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    aqi: int
    status: str
    dominant_pollutant: Optional[Pollutant] = None
    sub_indices: Dict[Pollutant, int] = Field(default_factory=dict)


class Ward(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: WardId
    name: Optional[str] = None
    geometry: Optional[Dict[str, Any]] = None


class WardAQIData(BaseModel):
    model_config = ConfigDict(frozen=True)

    ward_id: WardId
    aqi: int
    status: str
    dominant_pollutant: Optional[Pollutant] = None
    sub_indices: Dict[Pollutant, int] = Field(default_factory=dict)
    pollutants: PollutantReading = Field(default_factory=dict)
    station_count: int
    nearest_station: Optional[str] = None
    nearest_station_id: Optional[Union[int, str]] = None
    last_updated: Optional[str] = None
    is_estimated: bool = False


###### API PAYLOADS ######

class WardAQIRequest(BaseModel):
    stations: List[Station]
    wards: Dict[str, Any]
    pollutants: Optional[List[Pollutant]] = None


class WardAQIEntry(WardAQIData):
    filtered_aqi: Optional[int] = None


class WardMapSummary(BaseModel):
    total: int
    direct: int
    estimated: int
    unresolved: int
    unresolved_ids: List[WardId] = Field(default_factory=list)


class WardAQIResponse(BaseModel):
    wards: Dict[str, WardAQIEntry]
    summary: WardMapSummary


class SubIndexResponse(BaseModel):
    pollutant: Pollutant
    concentration: float
    unit: str
    sub_index: int
    status: str
