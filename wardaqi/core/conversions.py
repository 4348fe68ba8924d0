from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from wardaqi.core.breakpoints import BREAKPOINTS, MAX_INDEX, Breakpoint
from wardaqi.core.pollutants import POLLUTANT_ORDER, Pollutant, is_present, to_pollutant
from wardaqi.schemas import AQIResult

UNKNOWN_STATUS = "Unknown"

# Upper bound of each CPCB category, inclusive.
STATUS_BANDS = [
    (50, "Good"),
    (100, "Satisfactory"),
    (200, "Moderate"),
    (300, "Poor"),
    (400, "Very Poor"),
]


def linear_interpolate(c: float, bp: Breakpoint) -> int:
    c_lo, c_hi, i_lo, i_hi = bp
    if c_hi - c_lo == 0:
        return i_lo
    val = ((i_hi - i_lo) / (c_hi - c_lo)) * (c - c_lo) + i_lo
    return int(round(val))


def get_sub_index(pollutant: Pollutant, conc: float, breakpoints: Optional[Sequence[Breakpoint]] = None) -> int:
    bps = breakpoints if breakpoints is not None else BREAKPOINTS[pollutant]

    if not is_present(conc) or conc < 0:
        return 0

    for bp in bps:
        if conc <= bp[1]:
            # values in the gap between two tiers snap to the upper tier's floor
            return linear_interpolate(max(conc, bp[0]), bp)

    return MAX_INDEX


def get_aqi_status(aqi: int) -> str:
    for upper, label in STATUS_BANDS:
        if aqi <= upper:
            return label
    return "Severe"


def empty_result() -> AQIResult:
    return AQIResult(aqi=0, status=UNKNOWN_STATUS, dominant_pollutant=None, sub_indices={})


def calculate_aqi(pollutants: Mapping[Any, Any]) -> AQIResult:
    sub_indices: Dict[Pollutant, int] = {}
    for raw_key, val in pollutants.items():
        pollutant = to_pollutant(raw_key)
        if pollutant is None or not is_present(val):
            continue
        sub_indices[pollutant] = get_sub_index(pollutant, float(val))

    if not sub_indices:
        return empty_result()

    max_index = -1
    dominant_pollutant = None
    for pollutant in POLLUTANT_ORDER:
        if pollutant in sub_indices and sub_indices[pollutant] > max_index:
            max_index = sub_indices[pollutant]
            dominant_pollutant = pollutant

    ordered = {p: sub_indices[p] for p in POLLUTANT_ORDER if p in sub_indices}

    return AQIResult(
        aqi=max_index,
        status=get_aqi_status(max_index),
        dominant_pollutant=dominant_pollutant,
        sub_indices=ordered,
    )


def restrict_reading(pollutants: Mapping[Pollutant, float], active: Iterable[Any]) -> Dict[Pollutant, float]:
    wanted = {to_pollutant(p) for p in active}
    return {p: v for p, v in pollutants.items() if p in wanted}
