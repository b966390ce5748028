import random
from dataclasses import replace
from datetime import date, datetime

import pytest
from conftest import FixedRandom

from toursim.environment import WeatherCondition, WorldEnvironmentSource
from toursim.errors import InvalidInputError, InvalidTransitionError, RequirementsNotMetError
from toursim.fatigue import leg_penalty
from toursim.geo import distance_km
from toursim.ledger import apply_delta
from toursim.models import NEUTRAL_ENVIRONMENT, ShowType, StopStatus, TravelMode, Venue
from toursim.requirements import parse_requirements
from toursim.tour import cancel_stop, complete_stop, plan_tour, previous_stop, schedule_stop, settle_stop

PARIS = Venue(id="olympia", name="Olympia", location="Paris", base_payment=1200, capacity=800, prestige_level=3)
MANCHESTER = Venue(id="ritz", name="The Ritz", location="Manchester", base_payment=600, capacity=300)

RAINY_PARIS = WorldEnvironmentSource(weather=[
    WeatherCondition(id="wx-paris", city="Paris", condition="rainy", temperature=9,
                     effects={"gig_attendance": 0.85, "travel_cost": 1.2}),
])


def test_first_stop_has_no_travel(venue, player):
    stop = schedule_stop(stop_id="s1", venue=venue, scheduled_date=date(2024, 6, 1), player=player)

    assert stop.status == StopStatus.SCHEDULED
    assert stop.location == "London"
    assert stop.travel_leg is None
    assert stop.environment == NEUTRAL_ENVIRONMENT
    assert stop.quoted_payment > 0
    assert 12 <= stop.success_chance <= 97
    assert 1 <= stop.projected_attendance <= venue.capacity
    assert stop.actual_attendance is None


def test_opening_show_costs_no_health(venue, player):
    stop = schedule_stop(stop_id="s1", venue=venue, scheduled_date=date(2024, 6, 1), player=player,
                         travel_mode="coach")
    settlement = settle_stop(stop=stop, stops=[stop], player=player, rng=FixedRandom(0.0, 0.5))
    assert settlement.diagnostics["travel_penalty"] == 0
    assert settlement.health_delta == 0
    assert plan_tour([stop]).fatigue.low_comfort_legs == 0


def test_opening_show_still_checks_travel_mode(venue, player):
    with pytest.raises(InvalidInputError):
        schedule_stop(stop_id="s1", venue=venue, scheduled_date=date(2024, 6, 1), player=player,
                      travel_mode="rocket")


def test_stop_stores_leg_and_environment(player):
    stop = schedule_stop(
        stop_id="s2", venue=PARIS, scheduled_date=date(2024, 6, 3), player=player,
        show_type="acoustic", previous_location="London", travel_mode="air",
        environment_source=RAINY_PARIS,
    )
    assert stop.show_type == ShowType.ACOUSTIC
    assert stop.travel_leg.mode == TravelMode.AIR
    assert stop.travel_leg.distance_km == distance_km("London", "Paris")
    assert stop.environment.attendance_multiplier == pytest.approx(0.85)
    assert [e.id for e in stop.environment.applied] == ["wx-paris"]


def test_requirements_block_booking(venue, player):
    picky = replace(venue, requirements=parse_requirements({"min_fame": 5000, "min_guitar_skill": 90}))
    with pytest.raises(RequirementsNotMetError) as err:
        schedule_stop(stop_id="s1", venue=picky, scheduled_date=date(2024, 6, 1), player=player)
    assert len(err.value.missing) == 2
    assert "fame: 5000 (you have 2000)" in err.value.missing


def test_complete_replaces_projection_and_keeps_effects(player):
    stop = schedule_stop(
        stop_id="s1", venue=PARIS, scheduled_date=date(2024, 6, 3), player=player,
        environment_source=RAINY_PARIS,
    )
    settlement = settle_stop(stop=stop, stops=[stop], player=player, rng=random.Random(5))
    done = complete_stop(stop, settlement)

    assert done.status == StopStatus.COMPLETED
    assert done.actual_attendance == settlement.attendance
    assert done.projected_attendance == settlement.attendance
    assert done.environment.applied == stop.environment.applied
    assert done.quoted_payment == stop.quoted_payment


def test_lifecycle_transitions(venue, player):
    stop = schedule_stop(stop_id="s1", venue=venue, scheduled_date=date(2024, 6, 1), player=player)
    settlement = settle_stop(stop=stop, stops=[stop], player=player, rng=FixedRandom(0.0, 0.5))
    done = complete_stop(stop, settlement)

    with pytest.raises(InvalidTransitionError):
        complete_stop(done, settlement)
    with pytest.raises(InvalidTransitionError):
        cancel_stop(done)
    with pytest.raises(InvalidTransitionError):
        settle_stop(stop=done, stops=[done], player=player)

    cancelled = cancel_stop(stop)
    assert cancelled.status == StopStatus.CANCELLED
    with pytest.raises(InvalidTransitionError):
        settle_stop(stop=cancelled, stops=[cancelled], player=player)
    with pytest.raises(InvalidTransitionError):
        cancel_stop(cancelled)


def test_settlement_counts_rough_legs_already_played(venue, player):
    first = schedule_stop(
        stop_id="s1", venue=venue, scheduled_date=date(2024, 6, 1), player=player,
        previous_location="Glasgow", travel_mode=TravelMode.COACH,
    )
    second = schedule_stop(
        stop_id="s2", venue=MANCHESTER, scheduled_date=date(2024, 6, 2), player=player,
        previous_location="London", travel_mode=TravelMode.COACH,
    )
    assert first.travel_leg.comfort < 50
    assert second.travel_leg.comfort < 50

    # nothing played yet: the second leg stands alone
    alone = settle_stop(stop=second, stops=[first, second], player=player, rng=FixedRandom(0.0, 0.5))
    assert alone.diagnostics["travel_penalty"] == leg_penalty(second.travel_leg.comfort, 1)

    played = complete_stop(first, settle_stop(stop=first, stops=[first], player=player, rng=FixedRandom(0.0, 0.5)))
    streaked = settle_stop(stop=second, stops=[played, second], player=player, rng=FixedRandom(0.0, 0.5))
    assert streaked.diagnostics["travel_penalty"] == leg_penalty(second.travel_leg.comfort, 2)
    assert streaked.health_delta == leg_penalty(second.travel_leg.comfort, 2)


def test_health_stays_in_range_over_a_long_tour(venue, player):
    state = replace(player, health=20)
    stops = []
    rng = random.Random(1)
    locations = ["London", "Glasgow", "Dublin", "Manchester", "London", "Glasgow"]
    for day, location in enumerate(locations, start=1):
        prev = previous_stop(stops, date(2024, 6, day))
        stop = schedule_stop(
            stop_id=f"s{day}", venue=replace(venue, location=location),
            scheduled_date=date(2024, 6, day), player=state,
            previous_location=prev.location if prev else None,
        )
        stops.append(stop)
        settlement = settle_stop(stop=stop, stops=stops, player=state, rng=rng)
        stops[-1] = complete_stop(stop, settlement)
        state = apply_delta(state, settlement.delta)
        assert 0 <= state.health <= 100

    assert state.health == 0


def test_previous_stop_skips_cancelled(venue, player):
    a = schedule_stop(stop_id="a", venue=venue, scheduled_date=date(2024, 6, 1), player=player)
    b = cancel_stop(schedule_stop(stop_id="b", venue=PARIS, scheduled_date=date(2024, 6, 2), player=player))
    c = schedule_stop(stop_id="c", venue=MANCHESTER, scheduled_date=date(2024, 6, 5), player=player)

    assert previous_stop([a, b, c], date(2024, 6, 3)) is a
    assert previous_stop([a, b, c], date(2024, 6, 5)) is c
    assert previous_stop([a, b, c], date(2024, 5, 31)) is None


def test_plan_tour_totals(venue, player):
    a = schedule_stop(stop_id="a", venue=venue, scheduled_date=date(2024, 6, 1), player=player)
    b = schedule_stop(
        stop_id="b", venue=PARIS, scheduled_date=date(2024, 6, 3), player=player,
        previous_location="London", travel_mode="coach", environment_source=RAINY_PARIS,
    )
    gone = cancel_stop(schedule_stop(
        stop_id="gone", venue=MANCHESTER, scheduled_date=date(2024, 6, 2), player=player,
        previous_location="London",
    ))

    plan = plan_tour([a, gone, b])
    assert [s.id for s in plan.route.order] == ["a", "b"]
    assert plan.route.total_distance == distance_km("London", "Paris")
    assert plan.total_travel_cost == pytest.approx(round(b.travel_leg.cost * 1.2, 2))
    assert plan.total_travel_hours == pytest.approx(b.travel_leg.time_hours)
    assert plan.total_rest_days == 0
    assert set(plan.fatigue.breakdown) == {"b"}


def test_environment_is_looked_up_for_show_night(venue, player):
    seen = []

    class Recorder:
        def active_effects(self, location, when):
            seen.append(when)
            return []

    schedule_stop(stop_id="s1", venue=venue, scheduled_date=date(2024, 6, 1), player=player,
                  environment_source=Recorder())
    assert seen == [datetime(2024, 6, 1, 20, 0)]
