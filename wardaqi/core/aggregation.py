from typing import Iterable, Mapping, Sequence

from wardaqi.core.locator import NearbyStation
from wardaqi.core.pollutants import POLLUTANT_ORDER, PollutantReading, is_present

# Keeps the weight finite for a station sitting on the centroid.
DISTANCE_OFFSET_KM = 0.1


def aggregate_pollutants(nearby_stations: Sequence[NearbyStation]) -> PollutantReading:
    """
    Inverse-distance-weighted reading for a point from the stations around it.

    A single station is passed through untouched. Pollutants that no station
    reports stay absent rather than becoming zero.
    """
    if not nearby_stations:
        return {}

    if len(nearby_stations) == 1:
        return dict(nearby_stations[0][0].measurements)

    result: PollutantReading = {}
    for pollutant in POLLUTANT_ORDER:
        weighted_sum = 0.0
        weight_sum = 0.0

        for station, distance in nearby_stations:
            value = station.measurements.get(pollutant)
            if not is_present(value):
                continue
            weight = 1.0 / (distance + DISTANCE_OFFSET_KM)
            weighted_sum += value * weight
            weight_sum += weight

        if weight_sum > 0:
            result[pollutant] = round(weighted_sum / weight_sum)

    return result


def average_pollutants(readings: Iterable[Mapping]) -> PollutantReading:
    """Plain per-pollutant mean over the readings that report each pollutant."""
    readings = list(readings)
    result: PollutantReading = {}
    for pollutant in POLLUTANT_ORDER:
        values = [r[pollutant] for r in readings if is_present(r.get(pollutant))]
        if values:
            result[pollutant] = round(sum(values) / len(values))
    return result
