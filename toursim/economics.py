# toursim/economics.py
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, Union

from toursim.attributes import (
    attribute_score_to_multiplier,
    calculate_experience_reward,
    calculate_fan_gain,
    focus_attribute_score,
    scaled_multiplier,
)
from toursim.config import (
    ATTENDANCE_VARIANCE,
    ATTRIBUTE_MAX,
    ATTRIBUTE_MIN,
    BASE_EXPERIENCE,
    CHARISMA_GROWTH_PER_FAN,
    CHARISMA_PAYMENT_BONUS,
    EXPERIENCE_PER_ATTENDEE,
    FAILURE_ATTENDANCE_FACTOR,
    FAILURE_EXPERIENCE_FACTOR,
    FAILURE_PAYOUT,
    FAN_CONVERSION_RATE,
    LOOKS_GROWTH_PER_FAN,
    LOOKS_PAYMENT_BONUS,
    MUSICALITY_GROWTH_PER_XP,
    MUSICALITY_PAYMENT_BONUS,
    PAYMENT_FLOOR_SHARE,
    POPULARITY_PAYMENT_CAP,
    POPULARITY_PAYMENT_RATE,
    POPULARITY_SUCCESS_CAP,
    POPULARITY_SUCCESS_RATE,
    PRESTIGE_FAN_BONUS,
    SKILL_PAYMENT_RATE,
    SKILL_SUCCESS_WEIGHT,
    SUCCESS_ATTENDANCE_FACTOR,
    SUCCESS_ATTRIBUTE_BONUS,
    SUCCESS_CHANCE_MAX,
    SUCCESS_CHANCE_MIN,
    SUCCESS_PAYOUT,
)
from toursim.errors import InvalidInputError
from toursim.fatigue import apply_health
from toursim.models import (
    NEUTRAL_ENVIRONMENT,
    BookingEstimate,
    EnvironmentModifier,
    PlayerState,
    SettlementResult,
    ShowType,
    Venue,
)
from toursim.numeric import clamp, is_finite_number, round_half_up


@dataclass(frozen=True)
class ShowTypeModifiers:
    payment: float         # booking-time quote
    success_offset: float  # flat success-chance points before skills
    attendance: float
    fan_gain: float
    experience: float
    payout: float          # settlement-time share of the quote


# Acoustic sets pay less and draw smaller rooms, but are harder to wreck.
SHOW_TYPE_MODIFIERS: Dict[ShowType, ShowTypeModifiers] = {
    ShowType.STANDARD: ShowTypeModifiers(
        payment=1.0, success_offset=20, attendance=1.0, fan_gain=1.0, experience=1.0, payout=1.0),
    ShowType.ACOUSTIC: ShowTypeModifiers(
        payment=0.75, success_offset=28, attendance=0.7, fan_gain=0.85, experience=0.9, payout=0.95),
}

SUCCESS_SKILL_WEIGHTS: Dict[ShowType, List[Tuple[str, float]]] = {
    ShowType.STANDARD: [("performance", 0.40), ("vocals", 0.30), ("guitar", 0.30)],
    ShowType.ACOUSTIC: [("performance", 0.40), ("vocals", 0.35), ("songwriting", 0.25)],
}


def parse_show_type(value: Union[ShowType, str]) -> ShowType:
    if isinstance(value, ShowType):
        return value
    if isinstance(value, str):
        try:
            return ShowType(value.strip().lower())
        except ValueError:
            pass
    raise InvalidInputError(f"Unknown show type: {value!r}")


def show_modifiers(show_type: Union[ShowType, str]) -> ShowTypeModifiers:
    return SHOW_TYPE_MODIFIERS[parse_show_type(show_type)]


def check_venue(venue: Venue) -> Venue:
    if not is_finite_number(venue.base_payment) or venue.base_payment < 0:
        raise InvalidInputError(f"Venue {venue.id!r}: base_payment must be >= 0")
    if not isinstance(venue.capacity, int) or isinstance(venue.capacity, bool) or venue.capacity < 1:
        raise InvalidInputError(f"Venue {venue.id!r}: capacity must be a positive int")
    if not is_finite_number(venue.prestige_level) or venue.prestige_level < 0:
        raise InvalidInputError(f"Venue {venue.id!r}: prestige_level must be >= 0")
    return venue


def _skill(skills: Optional[Mapping[str, float]], key: str) -> float:
    value = (skills or {}).get(key, 0)
    return clamp(float(value), 0.0, 100.0) if is_finite_number(value) else 0.0


def payment_attribute_multiplier(attributes: Optional[Mapping[str, float]]) -> float:
    attributes = attributes or {}
    return (
        attribute_score_to_multiplier(attributes.get("charisma"), CHARISMA_PAYMENT_BONUS)
        * attribute_score_to_multiplier(attributes.get("looks"), LOOKS_PAYMENT_BONUS)
        * attribute_score_to_multiplier(attributes.get("musicality"), MUSICALITY_PAYMENT_BONUS)
    )


def popularity_payment_bonus(fame: float) -> float:
    return min(POPULARITY_PAYMENT_CAP, max(0.0, fame) * POPULARITY_PAYMENT_RATE)


def calculate_gig_payment(
    *,
    venue: Venue,
    show_type: Union[ShowType, str],
    fame: float,
    skills: Optional[Mapping[str, float]] = None,
    attributes: Optional[Mapping[str, float]] = None,
) -> int:
    check_venue(venue)
    show = show_modifiers(show_type)

    popularity_bonus = popularity_payment_bonus(fame)
    skill_bonus = _skill(skills, "performance") * SKILL_PAYMENT_RATE
    raw = (venue.base_payment + popularity_bonus + skill_bonus) * show.payment

    return int(raw * payment_attribute_multiplier(attributes))


def calculate_success_chance(
    *,
    show_type: Union[ShowType, str],
    fame: float,
    skills: Optional[Mapping[str, float]] = None,
    attributes: Optional[Mapping[str, float]] = None,
) -> int:
    """
    Percent chance the show lands. Always between SUCCESS_CHANCE_MIN and
    SUCCESS_CHANCE_MAX: nobody is guaranteed a good or a bad night.
    """
    st = parse_show_type(show_type)
    show = SHOW_TYPE_MODIFIERS[st]

    blend = sum(_skill(skills, key) * weight for key, weight in SUCCESS_SKILL_WEIGHTS[st])
    popularity = min(POPULARITY_SUCCESS_CAP, max(0.0, fame) * POPULARITY_SUCCESS_RATE)
    raw = show.success_offset + blend * SKILL_SUCCESS_WEIGHT + popularity

    attr_mult = scaled_multiplier(focus_attribute_score(attributes, "performance"), SUCCESS_ATTRIBUTE_BONUS)

    return int(clamp(round_half_up(raw * attr_mult), SUCCESS_CHANCE_MIN, SUCCESS_CHANCE_MAX))


def _clamp_attendance(raw: float, capacity: int) -> int:
    return max(1, min(capacity, int(raw)))


def estimate_booking(
    *,
    venue: Venue,
    show_type: Union[ShowType, str],
    player: PlayerState,
    environment: Optional[EnvironmentModifier] = None,
) -> BookingEstimate:
    """Booking-time preview: what the player is told before they commit."""
    env = environment or NEUTRAL_ENVIRONMENT
    show = show_modifiers(show_type)

    payment = calculate_gig_payment(
        venue=venue, show_type=show_type, fame=player.fame,
        skills=player.skills, attributes=player.attributes)
    chance = calculate_success_chance(
        show_type=show_type, fame=player.fame,
        skills=player.skills, attributes=player.attributes)

    p = chance / 100.0
    expected_factor = p * SUCCESS_ATTENDANCE_FACTOR + (1 - p) * FAILURE_ATTENDANCE_FACTOR
    projected = _clamp_attendance(
        venue.capacity * expected_factor * show.attendance * env.attendance_multiplier, venue.capacity)

    return BookingEstimate(payment=payment, success_chance=chance, projected_attendance=projected)


def actual_payment(quoted_payment: float, is_success: bool, show_type: Union[ShowType, str]) -> int:
    """Failed shows pay less, but never below the guaranteed floor share of the quote."""
    show = show_modifiers(show_type)
    payout = SUCCESS_PAYOUT if is_success else FAILURE_PAYOUT
    floor = round_half_up(quoted_payment * PAYMENT_FLOOR_SHARE)
    return max(floor, int(quoted_payment * payout * show.payout))


def grow_attributes(attributes: Optional[Mapping[str, float]], fan_gain: int, experience_gain: int) -> Dict[str, int]:
    """Small stat nudges from a show, stopping at ATTRIBUTE_MAX."""
    attributes = attributes or {}
    growth = {
        "charisma": fan_gain * CHARISMA_GROWTH_PER_FAN,
        "looks": fan_gain * LOOKS_GROWTH_PER_FAN,
        "musicality": experience_gain * MUSICALITY_GROWTH_PER_XP,
    }

    deltas: Dict[str, int] = {}
    for key, amount in growth.items():
        current = attributes.get(key, 0)
        current = clamp(float(current), ATTRIBUTE_MIN, ATTRIBUTE_MAX) if is_finite_number(current) else 0.0
        headroom = int(ATTRIBUTE_MAX - current)
        deltas[key] = max(0, min(round_half_up(amount), headroom))
    return deltas


def perform_gig(
    *,
    venue: Venue,
    show_type: Union[ShowType, str],
    player: PlayerState,
    quoted_payment: float,
    success_chance: float,
    environment: Optional[EnvironmentModifier] = None,
    rng: Optional[random.Random] = None,
    travel_penalty: float = 0,
) -> SettlementResult:
    """
    Play the show and settle it.

    Two draws from ``rng``: the success roll, then the attendance swing.
    Nothing here touches the player; the result carries deltas for the
    profile store to apply.
    """
    check_venue(venue)
    if not is_finite_number(quoted_payment) or quoted_payment < 0:
        raise InvalidInputError(f"quoted_payment must be >= 0, got {quoted_payment!r}")
    if not is_finite_number(success_chance) or not 0 <= success_chance <= 100:
        raise InvalidInputError(f"success_chance must be in [0, 100], got {success_chance!r}")
    if not is_finite_number(travel_penalty):
        raise InvalidInputError(f"travel_penalty must be a number, got {travel_penalty!r}")

    rng = rng or random.Random()
    env = environment or NEUTRAL_ENVIRONMENT
    show = show_modifiers(show_type)

    success_roll = rng.random()
    is_success = success_roll * 100 < success_chance

    swing = (rng.random() * 2 - 1) * ATTENDANCE_VARIANCE
    outcome_factor = SUCCESS_ATTENDANCE_FACTOR if is_success else FAILURE_ATTENDANCE_FACTOR
    attendance = _clamp_attendance(
        venue.capacity * outcome_factor * (1 + swing) * show.attendance * env.attendance_multiplier,
        venue.capacity,
    )

    prestige_mult = 1 + venue.prestige_level * PRESTIGE_FAN_BONUS
    base_fans = attendance * FAN_CONVERSION_RATE * prestige_mult * show.fan_gain * env.morale_modifier
    fan_gain = max(0, calculate_fan_gain(base_fans, _skill(player.skills, "performance"), player.attributes))

    payment = actual_payment(quoted_payment, is_success, show_type)

    base_xp = (BASE_EXPERIENCE + attendance * EXPERIENCE_PER_ATTENDEE) * show.experience
    if not is_success:
        base_xp *= FAILURE_EXPERIENCE_FACTOR
    experience_gain = max(1, calculate_experience_reward(base_xp, player.attributes, "performance"))

    health_after = apply_health(player.health, travel_penalty)

    diagnostics = {
        "success_roll": success_roll,
        "attendance_swing": swing,
        "outcome_factor": outcome_factor,
        "attendance_multiplier": env.attendance_multiplier,
        "morale_modifier": env.morale_modifier,
        "prestige_mult": prestige_mult,
        "base_fans": base_fans,
        "base_xp": base_xp,
        "travel_penalty": float(travel_penalty),
    }

    return SettlementResult(
        is_success=is_success,
        attendance=attendance,
        payment=payment,
        fan_gain_delta=fan_gain,
        experience_gain_delta=experience_gain,
        attribute_deltas=grow_attributes(player.attributes, fan_gain, experience_gain),
        health_delta=health_after - player.health,
        diagnostics=diagnostics,
    )
