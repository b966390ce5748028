# toursim/requirements.py
from __future__ import annotations

from typing import Iterable, List, Mapping, Tuple

from toursim.attributes import ATTRIBUTE_KEYS
from toursim.errors import InvalidInputError
from toursim.models import PlayerState, Requirement, RequirementKind
from toursim.numeric import is_finite_number

# Legacy venue rows spell fame as "popularity".
_FAME_KEYS = {"min_fame", "min_popularity"}


def parse_requirements(raw: Mapping[str, float]) -> Tuple[Requirement, ...]:
    """
    Turn a legacy ``{"min_popularity": 100, "min_guitar_skill": 40}`` bag
    into typed requirements. Unknown keys are rejected, not ignored.
    """
    out: List[Requirement] = []
    for key, value in (raw or {}).items():
        if not is_finite_number(value):
            raise InvalidInputError(f"Requirement {key!r} needs a number, got {value!r}")
        k = key.strip().lower()
        if k in _FAME_KEYS:
            out.append(Requirement(RequirementKind.MIN_FAME, float(value)))
        elif k == "min_cash":
            out.append(Requirement(RequirementKind.MIN_CASH, float(value)))
        elif k.startswith("min_") and k.endswith("_skill") and len(k) > len("min__skill"):
            out.append(Requirement(RequirementKind.MIN_SKILL, float(value), key=k[4:-6]))
        elif k.startswith("min_") and k[4:] in ATTRIBUTE_KEYS:
            out.append(Requirement(RequirementKind.MIN_ATTRIBUTE, float(value), key=k[4:]))
        else:
            raise InvalidInputError(f"Unknown requirement: {key!r}")
    return tuple(out)


def _player_value(req: Requirement, player: PlayerState) -> float:
    if req.kind == RequirementKind.MIN_FAME:
        return player.fame
    if req.kind == RequirementKind.MIN_CASH:
        return player.cash
    if req.kind == RequirementKind.MIN_SKILL:
        return player.skills.get(req.key, 0)
    return player.attributes.get(req.key, 0)


def describe_requirement(req: Requirement) -> str:
    label = req.kind.value[len("min_"):]
    return f"{req.key} {label}" if req.key else label


def check_requirements(requirements: Iterable[Requirement], player: PlayerState) -> Tuple[bool, List[str]]:
    missing: List[str] = []
    for req in requirements:
        have = _player_value(req, player) or 0
        if have < req.value:
            missing.append(f"{describe_requirement(req)}: {req.value:g} (you have {have:g})")
    return not missing, missing
