# toursim/numeric.py
from __future__ import annotations

import math


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


def round_half_up(x: float) -> int:
    # round() is banker's rounding; game numbers round .5 away from zero-ish
    return int(math.floor(x + 0.5))


def is_finite_number(x) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool) and math.isfinite(x)
