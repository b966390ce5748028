# toursim/tour.py
from __future__ import annotations

import logging
import random
from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional, Sequence, Union

from toursim.config import LOW_COMFORT_THRESHOLD
from toursim.economics import estimate_booking, parse_show_type, perform_gig
from toursim.environment import EnvironmentSource, environment_for, project_cost
from toursim.errors import InvalidTransitionError, RequirementsNotMetError
from toursim.fatigue import chronological, completion_penalty, track_fatigue
from toursim.geo import distance_km
from toursim.models import (
    PlayerState,
    SettlementResult,
    ShowType,
    StopStatus,
    TourPlan,
    TourStop,
    TravelMode,
    Venue,
)
from toursim.requirements import check_requirements
from toursim.routing import suggest_route
from toursim.travel import build_leg, parse_travel_mode

logger = logging.getLogger(__name__)

# Environment is looked up for the evening of the show.
SHOW_TIME = time(20, 0)


def previous_stop(stops: Sequence[TourStop], on: date) -> Optional[TourStop]:
    """The last live stop on or before ``on``; that's where the band travels from."""
    before = [s for s in chronological(stops) if s.status != StopStatus.CANCELLED and s.scheduled_date <= on]
    return before[-1] if before else None


def schedule_stop(
    *,
    stop_id: str,
    venue: Venue,
    scheduled_date: date,
    player: PlayerState,
    show_type: Union[ShowType, str] = ShowType.STANDARD,
    previous_location: Optional[str] = None,
    travel_mode: Union[TravelMode, str] = TravelMode.COACH,
    environment_source: Optional[EnvironmentSource] = None,
) -> TourStop:
    """
    Book a show. The travel leg, environment snapshot and booking estimate
    are all fixed here and stored on the stop.
    """
    ok, missing = check_requirements(venue.requirements, player)
    if not ok:
        raise RequirementsNotMetError(missing)

    mode = parse_travel_mode(travel_mode)
    # the opening show has nowhere to travel from, so no leg and no fatigue
    leg = build_leg(distance_km(previous_location, venue.location), mode) if previous_location else None
    when = datetime.combine(scheduled_date, SHOW_TIME)
    env = environment_for(environment_source, venue.location, when)
    estimate = estimate_booking(venue=venue, show_type=show_type, player=player, environment=env)

    logger.info(
        "Scheduled %s at %s on %s: %.0fkm by %s, quote %d, chance %d%%",
        stop_id, venue.name, scheduled_date.isoformat(),
        leg.distance_km if leg else 0, leg.mode.value if leg else "-",
        estimate.payment, estimate.success_chance,
    )

    return TourStop(
        id=stop_id,
        venue=venue,
        location=venue.location,
        scheduled_date=scheduled_date,
        show_type=parse_show_type(show_type),
        travel_leg=leg,
        environment=env,
        quoted_payment=estimate.payment,
        success_chance=estimate.success_chance,
        projected_attendance=estimate.projected_attendance,
    )


def _require_scheduled(stop: TourStop, action: str) -> None:
    if stop.status != StopStatus.SCHEDULED:
        raise InvalidTransitionError(f"Cannot {action} stop {stop.id!r}: it is already {stop.status.value}")


def settle_stop(
    *,
    stop: TourStop,
    stops: Sequence[TourStop],
    player: PlayerState,
    rng: Optional[random.Random] = None,
    threshold: float = LOW_COMFORT_THRESHOLD,
) -> SettlementResult:
    """
    Play a scheduled stop. Travel fatigue counts only shows already played,
    never the ones still ahead.
    """
    _require_scheduled(stop, "settle")
    penalty = completion_penalty(stop, stops, threshold)
    return perform_gig(
        venue=stop.venue,
        show_type=stop.show_type,
        player=player,
        quoted_payment=stop.quoted_payment,
        success_chance=stop.success_chance,
        environment=stop.environment,
        rng=rng,
        travel_penalty=penalty,
    )


def complete_stop(stop: TourStop, settlement: SettlementResult) -> TourStop:
    _require_scheduled(stop, "complete")
    # the real crowd replaces the projection; the applied effects stay for the record
    return replace(
        stop,
        status=StopStatus.COMPLETED,
        projected_attendance=settlement.attendance,
        actual_attendance=settlement.attendance,
    )


def cancel_stop(stop: TourStop) -> TourStop:
    _require_scheduled(stop, "cancel")
    return replace(stop, status=StopStatus.CANCELLED)


def plan_tour(stops: Sequence[TourStop], threshold: float = LOW_COMFORT_THRESHOLD) -> TourPlan:
    live = [s for s in stops if s.status != StopStatus.CANCELLED]
    plan = TourPlan(route=suggest_route(live), fatigue=track_fatigue(live, threshold))

    for stop in live:
        leg = stop.travel_leg
        if leg is None:
            continue
        plan.total_travel_cost += project_cost(leg.cost, stop.environment)
        plan.total_travel_hours += leg.time_hours
        plan.total_rest_days += leg.rest_days

    plan.total_travel_cost = round(plan.total_travel_cost, 2)
    plan.total_travel_hours = round(plan.total_travel_hours, 2)
    return plan
