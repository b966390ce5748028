# toursim/fatigue.py
from __future__ import annotations

from typing import List, Optional, Sequence

from toursim.config import FATIGUE_PENALTY_SCALE, HEALTH_MAX, HEALTH_MIN, LOW_COMFORT_THRESHOLD
from toursim.models import FatigueReport, HealthBreakdown, StopStatus
from toursim.numeric import clamp, round_half_up


def chronological(stops: Sequence) -> List:
    # sorted() is stable, so same-day stops keep their booking order
    return sorted(stops, key=lambda s: s.scheduled_date)


def _leg_comfort(stop) -> Optional[float]:
    leg = getattr(stop, "travel_leg", None)
    return None if leg is None else leg.comfort


def is_low_comfort(comfort: float, threshold: float = LOW_COMFORT_THRESHOLD) -> bool:
    return comfort < threshold


def leg_penalty(comfort: float, streak: int, threshold: float = LOW_COMFORT_THRESHOLD) -> int:
    """
    Health penalty for one low-comfort leg. Grows with how uncomfortable the
    leg was and with how many rough legs came right before it.
    """
    if not is_low_comfort(comfort, threshold):
        return 0
    deficit = max(1, round_half_up(((threshold - comfort) / 100.0) * FATIGUE_PENALTY_SCALE))
    return -deficit * max(1, streak)


def track_fatigue(stops: Sequence, threshold: float = LOW_COMFORT_THRESHOLD) -> FatigueReport:
    """
    Walk the itinerary in date order and project the health cost of travel.

    Stops without a travel leg and cancelled stops are not travel and are
    skipped without touching the streak.
    """
    report = FatigueReport()
    streak = 0
    comforts: List[float] = []

    for stop in chronological(stops):
        if getattr(stop, "status", StopStatus.SCHEDULED) == StopStatus.CANCELLED:
            continue
        comfort = _leg_comfort(stop)
        if comfort is None:
            continue

        comforts.append(comfort)
        if is_low_comfort(comfort, threshold):
            streak += 1
            penalty = leg_penalty(comfort, streak, threshold)
            report.low_comfort_legs += 1
        else:
            streak = 0
            penalty = 0

        report.breakdown[stop.id] = HealthBreakdown(comfort=comfort, penalty=penalty, streak=streak)
        report.total_penalty += abs(penalty)
        report.worst_streak = max(report.worst_streak, streak)

    if comforts:
        report.average_comfort = round(sum(comforts) / len(comforts), 2)
    return report


def completed_streak_before(stop, stops: Sequence, threshold: float = LOW_COMFORT_THRESHOLD) -> int:
    """Consecutive low-comfort legs among shows already played before ``stop``."""
    ordered = chronological(stops)
    ids = [s.id for s in ordered]
    if stop.id in ids:
        earlier = ordered[:ids.index(stop.id)]
    else:
        earlier = [s for s in ordered if s.scheduled_date <= stop.scheduled_date]

    streak = 0
    for prev in reversed(earlier):
        if getattr(prev, "status", None) != StopStatus.COMPLETED:
            continue  # unplayed shows haven't tired anyone yet
        comfort = _leg_comfort(prev)
        if comfort is None:
            continue
        if not is_low_comfort(comfort, threshold):
            break
        streak += 1
    return streak


def completion_penalty(stop, stops: Sequence, threshold: float = LOW_COMFORT_THRESHOLD) -> int:
    comfort = _leg_comfort(stop)
    if comfort is None or not is_low_comfort(comfort, threshold):
        return 0
    streak = completed_streak_before(stop, stops, threshold) + 1
    return leg_penalty(comfort, streak, threshold)


def apply_health(health: float, penalty: float) -> int:
    return int(clamp(round_half_up(health + penalty), HEALTH_MIN, HEALTH_MAX))
