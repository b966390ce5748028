import itertools
import random
from dataclasses import asdict, replace

import pytest
from conftest import FixedRandom

from toursim.economics import (
    SHOW_TYPE_MODIFIERS,
    actual_payment,
    calculate_gig_payment,
    calculate_success_chance,
    estimate_booking,
    grow_attributes,
    perform_gig,
)
from toursim.environment import WorldEnvironmentSource, compose, environment_for
from toursim.errors import InvalidInputError
from toursim.models import EnvironmentModifier, PlayerState, ShowType, Venue


def _venue():
    return Venue(id="v", name="Hall", location="London", base_payment=1000, capacity=500)


def _play(venue, player, *draws, show_type=ShowType.STANDARD, quoted=1000, chance=50, **kwargs):
    return perform_gig(
        venue=venue, show_type=show_type, player=player,
        quoted_payment=quoted, success_chance=chance,
        rng=FixedRandom(*draws), **kwargs,
    )


def test_base_payment():
    bare = PlayerState()
    assert calculate_gig_payment(venue=_venue(), show_type="standard", fame=bare.fame) == 1000
    assert calculate_gig_payment(venue=_venue(), show_type="acoustic", fame=bare.fame) == 750


def test_payment_bonuses():
    venue = _venue()
    assert calculate_gig_payment(venue=venue, show_type="standard", fame=10_000) == 1500
    # popularity bonus is capped
    assert calculate_gig_payment(venue=venue, show_type="standard", fame=10**9) == 6000
    assert calculate_gig_payment(venue=venue, show_type="standard", fame=0, skills={"performance": 50}) == 1500
    assert calculate_gig_payment(venue=venue, show_type="standard", fame=0, attributes={"charisma": 1000}) == 1400


def test_acoustic_pays_less_but_is_safer(venue, player):
    kwargs = dict(fame=player.fame, skills=player.skills, attributes=player.attributes)
    assert (calculate_gig_payment(venue=venue, show_type=ShowType.ACOUSTIC, **kwargs)
            < calculate_gig_payment(venue=venue, show_type=ShowType.STANDARD, **kwargs))

    assert SHOW_TYPE_MODIFIERS[ShowType.ACOUSTIC].success_offset > SHOW_TYPE_MODIFIERS[ShowType.STANDARD].success_offset
    assert calculate_success_chance(show_type="standard", fame=0) == 20
    assert calculate_success_chance(show_type="acoustic", fame=0) == 28


def test_success_chance_stays_in_bounds():
    skill_levels = [0, 50, 100, 250]
    fames = [0, 1000, 10**7]
    attribute_levels = [0, 3, 500, 1000]
    for show_type, skill, fame, attr in itertools.product(ShowType, skill_levels, fames, attribute_levels):
        skills = {k: skill for k in ("performance", "vocals", "guitar", "songwriting")}
        attributes = {"charisma": attr, "looks": attr}
        chance = calculate_success_chance(show_type=show_type, fame=fame, skills=skills, attributes=attributes)
        assert 12 <= chance <= 97

    maxed = {k: 100 for k in ("performance", "vocals", "guitar")}
    assert calculate_success_chance(
        show_type="standard", fame=10**7, skills=maxed, attributes={"charisma": 1000, "looks": 1000}) == 97


def test_tiny_attributes_barely_move_success():
    assert calculate_success_chance(show_type="standard", fame=0, attributes={"charisma": 4}) == 20


def test_successful_show(venue, player):
    result = _play(venue, player, 0.0, 0.5)
    assert result.is_success
    assert result.attendance == 425
    assert result.payment == 1000
    assert result.fan_gain_delta > 0
    assert result.diagnostics["attendance_swing"] == 0


def test_failed_show(venue, player):
    result = _play(venue, player, 0.99, 0.5)
    assert not result.is_success
    assert result.attendance == 225
    assert result.payment == 500

    acoustic = _play(venue, player, 0.99, 0.5, show_type=ShowType.ACOUSTIC)
    assert acoustic.attendance == 157
    assert acoustic.payment == 475


def test_acoustic_draws_a_smaller_crowd(venue, player):
    standard = _play(venue, player, 0.0, 0.5)
    acoustic = _play(venue, player, 0.0, 0.5, show_type=ShowType.ACOUSTIC)
    assert acoustic.attendance == 297
    assert acoustic.attendance < standard.attendance
    assert acoustic.payment == 950


@pytest.mark.parametrize("quoted", [0, 1, 5, 15, 333, 1000, 98765])
def test_payment_never_below_floor(quoted):
    floor = int(quoted * 0.3 + 0.5)
    for show_type, success in itertools.product(ShowType, (True, False)):
        assert actual_payment(quoted, success, show_type) >= floor


def test_payment_floor_over_random_outcomes(venue, player):
    for seed in range(50):
        result = perform_gig(
            venue=venue, show_type=ShowType.ACOUSTIC, player=player,
            quoted_payment=777, success_chance=30, rng=random.Random(seed))
        assert result.payment >= 233


def test_attendance_is_capped_and_floored(venue, player):
    packed = _play(venue, player, 0.0, 1.0, environment=EnvironmentModifier(attendance_multiplier=3.0))
    assert packed.attendance == venue.capacity

    empty = _play(venue, player, 0.0, 0.0, environment=EnvironmentModifier(attendance_multiplier=0.0))
    assert empty.attendance == 1


def test_gloomy_band_gains_no_fans_but_still_learns(venue, player):
    result = _play(venue, player, 0.99, 0.0, environment=EnvironmentModifier(morale_modifier=0.0))
    assert result.fan_gain_delta == 0
    assert result.experience_gain_delta >= 1


def test_attribute_growth_stops_at_cap():
    deltas = grow_attributes({"charisma": 1000, "looks": 995}, fan_gain=1000, experience_gain=10)
    assert deltas == {"charisma": 0, "looks": 5, "musicality": 0}


def test_settled_attributes_stay_in_range(venue):
    maxed = PlayerState(attributes={"charisma": 1000, "looks": 1000, "musicality": 1000})
    result = _play(venue, maxed, 0.0, 1.0)
    assert all(v == 0 for v in result.attribute_deltas.values())


def test_travel_penalty_reduces_health_without_going_negative(venue, player):
    tired = replace(player, health=5)
    assert _play(venue, tired, 0.0, 0.5, travel_penalty=-12).health_delta == -5
    assert _play(venue, player, 0.0, 0.5).health_delta == 0
    assert _play(venue, player, 0.0, 0.5, travel_penalty=-8).health_delta == -8


def test_neutral_environment_changes_nothing(venue, player):
    omitted = perform_gig(
        venue=venue, show_type="standard", player=player,
        quoted_payment=1200, success_chance=60, rng=random.Random(11))
    neutral = perform_gig(
        venue=venue, show_type="standard", player=player,
        quoted_payment=1200, success_chance=60, rng=random.Random(11),
        environment=compose([]))
    empty_world = environment_for(WorldEnvironmentSource(), venue.location, "2024-06-01T20:00:00")
    world = perform_gig(
        venue=venue, show_type="standard", player=player,
        quoted_payment=1200, success_chance=60, rng=random.Random(11),
        environment=empty_world)
    assert asdict(omitted) == asdict(neutral) == asdict(world)


def test_same_seed_same_show(venue, player):
    runs = [
        perform_gig(venue=venue, show_type="acoustic", player=player,
                    quoted_payment=900, success_chance=55, rng=random.Random(3))
        for _ in range(2)
    ]
    assert asdict(runs[0]) == asdict(runs[1])


def test_delta_mirrors_settlement(venue, player):
    result = _play(venue, player, 0.0, 0.5, travel_penalty=-3)
    delta = result.delta
    assert delta.cash_delta == result.payment
    assert delta.fame_delta == result.fan_gain_delta
    assert delta.experience_delta == result.experience_gain_delta
    assert delta.health_delta == -3
    assert delta.attribute_deltas == result.attribute_deltas


@pytest.mark.parametrize("kwargs", [
    dict(quoted_payment=-1),
    dict(success_chance=120),
    dict(success_chance=float("nan")),
    dict(show_type="metal"),
    dict(travel_penalty=None),
])
def test_bad_gig_inputs_are_rejected(venue, player, kwargs):
    args = dict(venue=venue, show_type="standard", player=player, quoted_payment=100, success_chance=50)
    args.update(kwargs)
    with pytest.raises(InvalidInputError):
        perform_gig(**args)


@pytest.mark.parametrize("changes", [dict(capacity=0), dict(base_payment=-5), dict(prestige_level=-1)])
def test_bad_venue_is_rejected(venue, player, changes):
    with pytest.raises(InvalidInputError):
        perform_gig(venue=replace(venue, **changes), show_type="standard", player=player,
                    quoted_payment=100, success_chance=50)


def test_booking_estimate(venue, player):
    standard = estimate_booking(venue=venue, show_type="standard", player=player)
    acoustic = estimate_booking(venue=venue, show_type="acoustic", player=player)
    assert 1 <= acoustic.projected_attendance < standard.projected_attendance <= venue.capacity
    assert acoustic.success_chance > standard.success_chance
    assert acoustic.payment < standard.payment

    rainy = estimate_booking(
        venue=venue, show_type="standard", player=player,
        environment=EnvironmentModifier(attendance_multiplier=0.5))
    assert rainy.projected_attendance < standard.projected_attendance
    assert rainy.payment == standard.payment
