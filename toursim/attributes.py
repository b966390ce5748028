# toursim/attributes.py
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple

from toursim.config import (
    ATTRIBUTE_MAX,
    ATTRIBUTE_MIN,
    ATTRIBUTE_MULTIPLIER_FLOOR,
    LEGACY_ATTRIBUTE_SCALE_MAX,
)
from toursim.numeric import clamp, is_finite_number, round_half_up

ATTRIBUTE_KEYS = ("looks", "charisma", "musicality", "mental_focus", "physical_endurance")

# How much each attribute counts towards an activity's "focus" score.
FOCUS_WEIGHTS: Dict[str, List[Tuple[str, float]]] = {
    "general": [("musicality", 0.40), ("charisma", 0.35), ("looks", 0.25)],
    "instrumental": [("musicality", 0.75), ("charisma", 0.25)],
    "performance": [("charisma", 0.60), ("looks", 0.40)],
    "songwriting": [("musicality", 0.70), ("charisma", 0.30)],
    "vocals": [("charisma", 0.55), ("musicality", 0.45)],
}

FOCUS_REWARD_BONUS = {"performance": 0.45, "instrumental": 0.40}
DEFAULT_FOCUS_REWARD_BONUS = 0.35


def clamp_attribute_score(value: Optional[float]) -> int:
    """
    Normalise a stored attribute to the 0..1000 scale.
    Old profiles kept attributes on a 1..3 scale; those are stretched so 1 -> 0 and 3 -> 1000.
    """
    if not is_finite_number(value):
        return 0
    if 0 <= value <= LEGACY_ATTRIBUTE_SCALE_MAX:
        return int(clamp(round_half_up(((value - 1) / 2) * ATTRIBUTE_MAX), ATTRIBUTE_MIN, ATTRIBUTE_MAX))
    return int(clamp(round_half_up(value), ATTRIBUTE_MIN, ATTRIBUTE_MAX))


def attribute_score_to_multiplier(
    value: Optional[float],
    max_bonus: float = 0.5,
    base_multiplier: float = 1.0,
) -> float:
    """
    Saturating multiplier: 0 -> base, 1000 -> base + max_bonus, never beyond.
    A missing score is neutral.
    """
    if not is_finite_number(value):
        return base_multiplier

    ceiling = base_multiplier + max_bonus
    if 0 < value <= LEGACY_ATTRIBUTE_SCALE_MAX:
        # legacy profiles stored the multiplier itself
        return clamp(value, ATTRIBUTE_MULTIPLIER_FLOOR, ceiling)

    return scaled_multiplier(clamp_attribute_score(value), max_bonus, base_multiplier)


def scaled_multiplier(score: float, max_bonus: float = 0.5, base_multiplier: float = 1.0) -> float:
    """Like attribute_score_to_multiplier, for scores already on the 0..1000 scale."""
    normalized = clamp(score, ATTRIBUTE_MIN, ATTRIBUTE_MAX)
    multiplier = base_multiplier + (normalized / ATTRIBUTE_MAX) * max_bonus
    return clamp(multiplier, ATTRIBUTE_MULTIPLIER_FLOOR, base_multiplier + max_bonus)


def focus_attribute_score(attributes: Optional[Mapping[str, float]], focus: str = "general") -> int:
    if not attributes:
        return 0
    weights = FOCUS_WEIGHTS.get(focus) or FOCUS_WEIGHTS["general"]

    weighted_total = 0.0
    total_weight = 0.0
    for key, weight in weights:
        weighted_total += clamp_attribute_score(attributes.get(key, 0)) * weight
        total_weight += weight
    if total_weight <= 0:
        return 0
    return round_half_up(weighted_total / total_weight)


def calculate_experience_reward(
    base_experience: float,
    attributes: Optional[Mapping[str, float]] = None,
    focus: str = "general",
) -> int:
    if not is_finite_number(base_experience) or base_experience <= 0:
        return 0
    attributes = attributes or {}
    focus_bonus = FOCUS_REWARD_BONUS.get(focus, DEFAULT_FOCUS_REWARD_BONUS)
    focus_mult = scaled_multiplier(focus_attribute_score(attributes, focus), focus_bonus)
    mental_mult = attribute_score_to_multiplier(attributes.get("mental_focus"), 0.3)
    return max(0, round_half_up(base_experience * focus_mult * mental_mult))


def calculate_fan_gain(
    base_gain: float,
    performance_skill: float,
    attributes: Optional[Mapping[str, float]] = None,
) -> int:
    attributes = attributes or {}
    skill_mult = 1 + (performance_skill / 200.0)  # 100 skill -> +50%
    charisma_mult = attribute_score_to_multiplier(attributes.get("charisma"), 0.5)
    looks_mult = attribute_score_to_multiplier(attributes.get("looks"), 0.3)
    return int(base_gain * skill_mult * charisma_mult * looks_mult)
