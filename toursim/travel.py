# toursim/travel.py
from __future__ import annotations

from typing import Dict, List, Optional, Union

from toursim.config import (
    COMFORT_DECAY_PER_100KM,
    COMFORT_MAX,
    COMFORT_MAX_DISTANCE_PENALTY,
    COMFORT_MIN,
    MAX_TRAVEL_HOURS_PER_DAY,
)
from toursim.errors import InvalidInputError
from toursim.models import TravelEstimate, TravelLeg, TravelMode, TravelModeConfig, TravelOption
from toursim.numeric import clamp, is_finite_number, round_half_up


# coach: cheap/slow/rough; air: expensive/fast/comfy; taxi and ferry sit in between.
# Any retune must keep coach the cheapest per km and air the fastest.
TRAVEL_MODES: Dict[TravelMode, TravelModeConfig] = {
    TravelMode.COACH: TravelModeConfig(
        TravelMode.COACH, cost_per_km=0.08, speed_kmh=65, base_comfort=35,
        max_distance_km=1500),
    TravelMode.FERRY: TravelModeConfig(
        TravelMode.FERRY, cost_per_km=0.12, speed_kmh=35, base_comfort=65,
        min_distance_km=20, max_distance_km=2000),
    TravelMode.TAXI: TravelModeConfig(
        TravelMode.TAXI, cost_per_km=0.20, speed_kmh=80, base_comfort=55,
        max_distance_km=300),
    TravelMode.AIR: TravelModeConfig(
        TravelMode.AIR, cost_per_km=0.35, speed_kmh=800, base_comfort=80,
        min_distance_km=150),
}


def parse_travel_mode(value: Union[TravelMode, str]) -> TravelMode:
    if isinstance(value, TravelMode):
        return value
    if isinstance(value, str):
        try:
            return TravelMode(value.strip().lower())
        except ValueError:
            pass
    raise InvalidInputError(f"Unknown travel mode: {value!r}")


def _check_distance(distance_km: float) -> float:
    if not is_finite_number(distance_km) or distance_km < 0:
        raise InvalidInputError(f"distance_km must be a finite number >= 0, got {distance_km!r}")
    return float(distance_km)


def leg_comfort(distance_km: float, cfg: TravelModeConfig) -> int:
    """Base comfort of the mode, worn down a little by every hundred km."""
    penalty = min(COMFORT_MAX_DISTANCE_PENALTY, (distance_km / 100.0) * COMFORT_DECAY_PER_100KM)
    return round_half_up(clamp(cfg.base_comfort - penalty, COMFORT_MIN, COMFORT_MAX))


def estimate(distance_km: float, mode: Union[TravelMode, str]) -> TravelEstimate:
    distance = _check_distance(distance_km)
    cfg = TRAVEL_MODES[parse_travel_mode(mode)]

    if distance == 0:
        # same-location leg: nothing to pay, nothing to endure
        return TravelEstimate(cost=0.0, time_hours=0.0, comfort=round_half_up(cfg.base_comfort))

    return TravelEstimate(
        cost=round(distance * cfg.cost_per_km, 2),
        time_hours=round(distance / cfg.speed_kmh, 2),
        comfort=leg_comfort(distance, cfg),
    )


def rest_days_for(time_hours: float) -> int:
    return int(time_hours // MAX_TRAVEL_HOURS_PER_DAY)


def build_leg(distance_km: float, mode: Union[TravelMode, str]) -> TravelLeg:
    travel_mode = parse_travel_mode(mode)
    est = estimate(distance_km, travel_mode)
    return TravelLeg(
        distance_km=float(distance_km),
        mode=travel_mode,
        cost=est.cost,
        time_hours=est.time_hours,
        comfort=est.comfort,
        rest_days=rest_days_for(est.time_hours),
    )


def _unavailable_reason(distance: float, cfg: TravelModeConfig) -> str:
    if distance < cfg.min_distance_km:
        return f"Distance too short (min {cfg.min_distance_km:g}km)"
    if cfg.max_distance_km is not None and distance > cfg.max_distance_km:
        return f"Distance too far (max {cfg.max_distance_km:g}km)"
    return ""


def travel_options(distance_km: float) -> List[TravelOption]:
    """Every mode for this distance; usable ones first, cheapest first."""
    distance = _check_distance(distance_km)
    options: List[TravelOption] = []
    for mode, cfg in TRAVEL_MODES.items():
        est = estimate(distance, mode)
        reason = _unavailable_reason(distance, cfg)
        options.append(TravelOption(
            mode=mode,
            distance_km=distance,
            cost=est.cost,
            time_hours=est.time_hours,
            comfort=est.comfort,
            available=not reason,
            unavailable_reason=reason,
        ))
    options.sort(key=lambda o: (not o.available, o.cost))
    return options


def cheapest_option(distance_km: float) -> Optional[TravelOption]:
    available = [o for o in travel_options(distance_km) if o.available]
    return min(available, key=lambda o: o.cost) if available else None


def fastest_option(distance_km: float) -> Optional[TravelOption]:
    available = [o for o in travel_options(distance_km) if o.available]
    return min(available, key=lambda o: o.time_hours) if available else None
