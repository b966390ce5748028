# toursim/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple


class TravelMode(str, Enum):
    COACH = "coach"
    TAXI = "taxi"
    AIR = "air"
    FERRY = "ferry"


class ShowType(str, Enum):
    STANDARD = "standard"
    ACOUSTIC = "acoustic"


class StopStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EffectSource(str, Enum):
    WEATHER = "weather"
    WORLD_EVENT = "world_event"


class RequirementKind(str, Enum):
    MIN_FAME = "min_fame"
    MIN_SKILL = "min_skill"
    MIN_ATTRIBUTE = "min_attribute"
    MIN_CASH = "min_cash"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


@dataclass(frozen=True)
class TravelModeConfig:
    """Static reference data for one way of getting between shows."""
    mode: TravelMode
    cost_per_km: float
    speed_kmh: float
    base_comfort: float
    min_distance_km: float = 0.0
    max_distance_km: Optional[float] = None


@dataclass(frozen=True)
class TravelEstimate:
    cost: float
    time_hours: float
    comfort: int


@dataclass(frozen=True)
class TravelLeg:
    """
    Travel into a stop. Stored with the stop so historical legs never need
    recomputing (and never change if the tuning constants do).
    """
    distance_km: float
    mode: TravelMode
    cost: float
    time_hours: float
    comfort: int
    rest_days: int


@dataclass(frozen=True)
class TravelOption:
    mode: TravelMode
    distance_km: float
    cost: float
    time_hours: float
    comfort: int
    available: bool
    unavailable_reason: str = ""


@dataclass(frozen=True)
class EffectSummary:
    """One weather/world-event effect as it was applied (kept for display)."""
    id: str
    name: str
    source: EffectSource
    attendance_multiplier: Optional[float] = None
    cost_multiplier: Optional[float] = None
    morale_modifier: Optional[float] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class EnvironmentModifier:
    attendance_multiplier: float = 1.0
    cost_multiplier: float = 1.0
    morale_modifier: float = 1.0
    applied: Tuple[EffectSummary, ...] = ()


NEUTRAL_ENVIRONMENT = EnvironmentModifier()


@dataclass(frozen=True)
class Requirement:
    """
    A typed booking requirement. ``key`` names the skill or attribute for
    MIN_SKILL / MIN_ATTRIBUTE and is None otherwise.
    """
    kind: RequirementKind
    value: float
    key: Optional[str] = None


@dataclass(frozen=True)
class Venue:
    id: str
    name: str
    location: str
    base_payment: int
    capacity: int
    prestige_level: int = 0
    requirements: Tuple[Requirement, ...] = ()


@dataclass(frozen=True)
class StopRef:
    """The minimum a stop needs for routing: where and when."""
    id: str
    scheduled_date: date
    location: Optional[str]


@dataclass(frozen=True)
class TourStop:
    id: str
    venue: Venue
    location: str
    scheduled_date: date
    show_type: ShowType = ShowType.STANDARD
    travel_leg: Optional[TravelLeg] = None
    environment: EnvironmentModifier = NEUTRAL_ENVIRONMENT
    status: StopStatus = StopStatus.SCHEDULED

    # Booking-time preview; projected_attendance is replaced once played
    quoted_payment: int = 0
    success_chance: int = 0
    projected_attendance: int = 0
    actual_attendance: Optional[int] = None


@dataclass(frozen=True)
class HealthBreakdown:
    comfort: float
    penalty: int
    streak: int


@dataclass
class FatigueReport:
    breakdown: Dict[str, HealthBreakdown] = field(default_factory=dict)
    total_penalty: int = 0
    worst_streak: int = 0
    low_comfort_legs: int = 0
    average_comfort: float = 0.0


@dataclass
class RouteSuggestion:
    order: List = field(default_factory=list)
    total_distance: float = 0.0


@dataclass
class TourPlan:
    route: RouteSuggestion
    fatigue: FatigueReport
    total_travel_cost: float = 0.0
    total_travel_hours: float = 0.0
    total_rest_days: int = 0


@dataclass(frozen=True)
class PlayerState:
    """
    Read-only snapshot from the profile store. The engine never writes it;
    it hands back a PlayerDelta instead. ``version`` is whatever the store
    uses for optimistic concurrency.
    """
    cash: int = 0
    fame: int = 0
    health: int = 100
    experience: int = 0
    attributes: Dict[str, float] = field(default_factory=dict)
    skills: Dict[str, float] = field(default_factory=dict)
    version: int = 0


@dataclass(frozen=True)
class PlayerDelta:
    cash_delta: int = 0
    fame_delta: int = 0
    health_delta: int = 0
    experience_delta: int = 0
    attribute_deltas: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class BookingEstimate:
    payment: int
    success_chance: int
    projected_attendance: int


@dataclass
class SettlementResult:
    """What happened at one show, expressed as deltas."""
    is_success: bool
    attendance: int
    payment: int
    fan_gain_delta: int
    experience_gain_delta: int
    attribute_deltas: Dict[str, int] = field(default_factory=dict)
    health_delta: int = 0

    # Useful for balancing; never applied to the player.
    diagnostics: Dict[str, float] = field(default_factory=dict)

    @property
    def delta(self) -> PlayerDelta:
        return PlayerDelta(
            cash_delta=self.payment,
            fame_delta=self.fan_gain_delta,
            health_delta=self.health_delta,
            experience_delta=self.experience_gain_delta,
            attribute_deltas=dict(self.attribute_deltas),
        )
