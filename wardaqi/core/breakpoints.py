"""
CPCB breakpoint tables.

Tiers are loaded from ``data/aqi_breakpoints.json`` and validated at import,
so a malformed table stops the process before any index is computed.
"""

from typing import Any, Dict, List, Mapping, Sequence, Tuple

from wardaqi.core.config import AQI_BREAKPOINTS
from wardaqi.core.pollutants import Pollutant, to_pollutant

# (c_low, c_high, i_low, i_high)
Breakpoint = Tuple[float, float, int, int]

MAX_INDEX = 500


class BreakpointTableError(ValueError):
    pass


def _validate_tiers(pollutant: Pollutant, tiers: Sequence[Breakpoint]) -> None:
    if not tiers:
        raise BreakpointTableError(f"{pollutant.value}: no breakpoints defined")

    prev = None
    for c_lo, c_hi, i_lo, i_hi in tiers:
        if c_lo < 0 or c_lo >= c_hi:
            raise BreakpointTableError(
                f"{pollutant.value}: invalid concentration range [{c_lo}, {c_hi}]"
            )
        if i_lo < 0 or i_lo > i_hi or i_hi > MAX_INDEX:
            raise BreakpointTableError(
                f"{pollutant.value}: invalid index range [{i_lo}, {i_hi}]"
            )
        if prev is not None:
            p_c_lo, p_c_hi, p_i_lo, p_i_hi = prev
            if c_lo <= p_c_hi:
                raise BreakpointTableError(
                    f"{pollutant.value}: range starting at {c_lo} overlaps previous range ending at {p_c_hi}"
                )
            if i_lo <= p_i_hi:
                raise BreakpointTableError(
                    f"{pollutant.value}: index {i_lo} does not increase past previous tier's {p_i_hi}"
                )
        prev = (c_lo, c_hi, i_lo, i_hi)


def build_breakpoint_table(raw: Mapping[str, Any]) -> Dict[Pollutant, List[Breakpoint]]:
    table: Dict[Pollutant, List[Breakpoint]] = {}

    for raw_key, rows in raw.items():
        pollutant = to_pollutant(raw_key)
        if pollutant is None:
            raise BreakpointTableError(f"unknown pollutant in breakpoint table: {raw_key!r}")
        try:
            tiers = [(float(r[0]), float(r[1]), int(r[2]), int(r[3])) for r in rows]
        except (TypeError, ValueError, IndexError) as e:
            raise BreakpointTableError(f"{pollutant.value}: malformed breakpoint row ({e})") from e
        _validate_tiers(pollutant, tiers)
        table[pollutant] = tiers

    missing = [p.value for p in Pollutant if p not in table]
    if missing:
        raise BreakpointTableError(f"no breakpoints for: {', '.join(missing)}")

    return table


BREAKPOINTS = build_breakpoint_table(AQI_BREAKPOINTS)
