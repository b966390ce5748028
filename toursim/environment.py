# toursim/environment.py
"""
Weather and world-event modifiers.

Effects multiply together on three axes (attendance, cost, morale). The
environment is a nice-to-have for booking: when its source is slow or
broken we fall back to neutral modifiers instead of blocking anything.
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Union

from toursim.config import ENVIRONMENT_TIMEOUT_SECONDS
from toursim.errors import InvalidInputError
from toursim.models import NEUTRAL_ENVIRONMENT, EffectSource, EffectSummary, EnvironmentModifier
from toursim.numeric import is_finite_number, round_half_up

logger = logging.getLogger(__name__)

WORKER_THREAD_NAME = "toursim-environment"

# World events come with loosely named effect keys; these all mean the same axis.
ATTENDANCE_EFFECT_KEYS = {"attendance", "gig_attendance", "audience", "crowd"}
COST_EFFECT_KEYS = {"travel_cost", "logistics_cost", "cost_multiplier", "expenses"}
MORALE_EFFECT_KEYS = {"mood_modifier", "morale", "band_morale", "energy"}

_AXES = (
    ("attendance_multiplier", "attendance"),
    ("cost_multiplier", "cost"),
    ("morale_modifier", "morale"),
)


class EnvironmentSource(Protocol):
    def active_effects(self, location: str, when: datetime) -> Iterable[EffectSummary]:
        ...


def _axis_value(effect: EffectSummary, attr: str) -> float:
    value = getattr(effect, attr)
    if value is None:
        return 1.0
    if not is_finite_number(value) or value < 0:
        raise InvalidInputError(f"Effect {effect.id!r} has a bad {attr}: {value!r}")
    return float(value)


def compose(effects: Iterable[EffectSummary]) -> EnvironmentModifier:
    """Multiply every effect together; an axis an effect doesn't mention counts as 1."""
    attendance = cost = morale = 1.0
    applied: List[EffectSummary] = []

    for effect in effects:
        attendance *= _axis_value(effect, "attendance_multiplier")
        cost *= _axis_value(effect, "cost_multiplier")
        morale *= _axis_value(effect, "morale_modifier")
        if any(getattr(effect, attr) is not None for attr, _ in _AXES):
            applied.append(effect)

    return EnvironmentModifier(
        attendance_multiplier=attendance,
        cost_multiplier=cost,
        morale_modifier=morale,
        applied=tuple(applied),
    )


def describe_effect(effect: EffectSummary) -> str:
    """e.g. ``Heatwave (attendance -10%)``"""
    parts = []
    for attr, label in _AXES:
        value = getattr(effect, attr)
        if value is None or value == 1:
            continue
        parts.append(f"{label} {round_half_up((value - 1) * 100):+d}%")
    return f"{effect.name} ({', '.join(parts)})" if parts else effect.name


def project_attendance(base_attendance: float, modifier: EnvironmentModifier) -> int:
    return int(base_attendance * modifier.attendance_multiplier)


def project_cost(base_cost: float, modifier: EnvironmentModifier) -> float:
    return round(base_cost * modifier.cost_multiplier, 2)


def parse_when(value: Union[str, datetime]) -> datetime:
    """ISO date/time -> naive UTC datetime (so every comparison is apples to apples)."""
    if isinstance(value, datetime):
        when = value
    else:
        if not isinstance(value, str) or not value.strip():
            raise InvalidInputError(f"Expected an ISO date-time, got {value!r}")
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            when = datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidInputError(f"Expected an ISO date-time, got {value!r}") from e
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc).replace(tzinfo=None)
    return when


def environment_for(
    source: Optional[EnvironmentSource],
    location: str,
    iso_datetime: Union[str, datetime],
    *,
    timeout: float = ENVIRONMENT_TIMEOUT_SECONDS,
) -> EnvironmentModifier:
    """
    Composite modifier for a place and time.

    A bad date is the caller's bug and raises. Anything going wrong on the
    source side (exception, bad data, no answer within ``timeout``) gives
    the neutral modifier.
    """
    when = parse_when(iso_datetime)
    if source is None:
        return NEUTRAL_ENVIRONMENT

    outcome: Dict[str, object] = {}

    def lookup():
        try:
            outcome["env"] = compose(list(source.active_effects(location, when)))
        except Exception as e:  # reported from the calling thread
            outcome["error"] = e

    # daemon: a source that never answers must not hold up interpreter exit
    worker = threading.Thread(target=lookup, name=WORKER_THREAD_NAME, daemon=True)
    worker.start()
    worker.join(timeout)

    if worker.is_alive():
        logger.warning("Environment source timed out after %.1fs for %r; using neutral modifiers", timeout, location)
        return NEUTRAL_ENVIRONMENT
    if "error" in outcome:
        logger.warning("Environment source failed for %r; using neutral modifiers", location,
                       exc_info=outcome["error"])
        return NEUTRAL_ENVIRONMENT
    return outcome["env"]


def location_matches(needle: Optional[str], haystack: Optional[str]) -> bool:
    n = (needle or "").strip().lower()
    h = (haystack or "").strip().lower()
    if not n or not h:
        return False
    return n == h or n in h or h in n


@dataclass(frozen=True)
class WeatherCondition:
    id: str
    city: str
    country: str = ""
    condition: str = "sunny"
    temperature: float = 20.0
    # gig_attendance / travel_cost / mood_modifier
    effects: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class WorldEvent:
    id: str
    title: str
    description: str = ""
    type: str = "festival"
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    affected_cities: Sequence[str] = ()
    global_effects: Dict[str, float] = field(default_factory=dict)
    is_active: bool = False


class WorldEnvironmentSource:
    """
    In-memory weather + world-event feed. Stands in for the live world
    service; the web app fills one from ``load_world``.
    """

    def __init__(self, weather: Iterable[WeatherCondition] = (), events: Iterable[WorldEvent] = ()):
        self.weather = list(weather)
        self.events = list(events)

    def _weather_for(self, location: str) -> Optional[WeatherCondition]:
        for w in self.weather:
            if (location_matches(w.city, location)
                    or location_matches(location, w.city)
                    or location_matches(w.country, location)):
                return w
        return None

    @staticmethod
    def _event_running(event: WorldEvent, when: datetime) -> bool:
        if event.is_active:
            return True
        if event.start is None or event.end is None:
            return False
        return parse_when(event.start) <= when <= parse_when(event.end)

    @staticmethod
    def _event_affects(event: WorldEvent, location: str) -> bool:
        return any(
            city.strip().lower() == "all" or location_matches(city, location)
            for city in event.affected_cities
        )

    @staticmethod
    def _event_axes(event: WorldEvent) -> Dict[str, float]:
        axes = {"attendance": 1.0, "cost": 1.0, "morale": 1.0}
        for key, value in event.global_effects.items():
            if not is_finite_number(value):
                continue
            k = key.lower()
            if k in ATTENDANCE_EFFECT_KEYS:
                axes["attendance"] *= value
            if k in COST_EFFECT_KEYS:
                axes["cost"] *= value
            if k in MORALE_EFFECT_KEYS:
                axes["morale"] *= value
        return axes

    def active_effects(self, location: str, when: datetime) -> List[EffectSummary]:
        effects: List[EffectSummary] = []

        w = self._weather_for(location)
        if w is not None:
            effects.append(EffectSummary(
                id=w.id,
                name=f"{w.city} Weather",
                source=EffectSource.WEATHER,
                attendance_multiplier=w.effects.get("gig_attendance"),
                cost_multiplier=w.effects.get("travel_cost"),
                morale_modifier=w.effects.get("mood_modifier"),
                description=f"{w.condition} • {w.temperature:g}°C",
            ))

        for event in self.events:
            if not (self._event_affects(event, location) and self._event_running(event, when)):
                continue
            axes = self._event_axes(event)
            if all(v == 1 for v in axes.values()):
                continue
            effects.append(EffectSummary(
                id=event.id,
                name=event.title,
                source=EffectSource.WORLD_EVENT,
                attendance_multiplier=axes["attendance"] if axes["attendance"] != 1 else None,
                cost_multiplier=axes["cost"] if axes["cost"] != 1 else None,
                morale_modifier=axes["morale"] if axes["morale"] != 1 else None,
                description=event.description or None,
            ))

        return effects


def _optional_when(value) -> Optional[datetime]:
    return parse_when(value) if value is not None else None


def load_world(path: str) -> WorldEnvironmentSource:
    """
    Read a weather + events feed from JSON:
    ``{"weather": [{"id", "city", ...}], "events": [{"id", "title", ...}]}``
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    try:
        weather = [
            WeatherCondition(
                id=str(w["id"]),
                city=str(w["city"]),
                country=str(w.get("country", "")),
                condition=str(w.get("condition", "sunny")),
                temperature=float(w.get("temperature", 20.0)),
                effects={k: float(v) for k, v in w.get("effects", {}).items()},
            )
            for w in raw.get("weather", [])
        ]
        events = [
            WorldEvent(
                id=str(e["id"]),
                title=str(e["title"]),
                description=str(e.get("description", "")),
                type=str(e.get("type", "festival")),
                start=_optional_when(e.get("start")),
                end=_optional_when(e.get("end")),
                affected_cities=tuple(e.get("affected_cities", ())),
                global_effects={k: float(v) for k, v in e.get("global_effects", {}).items()},
                is_active=bool(e.get("is_active", False)),
            )
            for e in raw.get("events", [])
        ]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InvalidInputError(f"Bad world feed {path}: {e!r}") from e

    logger.info("Loaded world feed %s: %d weather, %d events", path, len(weather), len(events))
    return WorldEnvironmentSource(weather=weather, events=events)
