# toursim/schemas.py
from __future__ import annotations

from datetime import date
from typing import Dict, Optional

from pydantic import BaseModel, Field

from toursim.models import PlayerState, Venue
from toursim.requirements import parse_requirements


class DistanceRequest(BaseModel):
    a: Optional[str] = None
    b: Optional[str] = None


class TravelRequest(BaseModel):
    distance_km: float
    mode: str = "coach"


class VenueIn(BaseModel):
    id: str
    name: str
    location: str
    base_payment: int
    capacity: int
    prestige_level: int = 0
    # legacy bag, e.g. {"min_popularity": 100}
    requirements: Dict[str, float] = Field(default_factory=dict)

    def to_venue(self) -> Venue:
        return Venue(
            id=self.id,
            name=self.name,
            location=self.location,
            base_payment=self.base_payment,
            capacity=self.capacity,
            prestige_level=self.prestige_level,
            requirements=parse_requirements(self.requirements),
        )


class PlayerIn(BaseModel):
    cash: int = 0
    fame: int = 0
    health: int = 100
    experience: int = 0
    attributes: Dict[str, float] = Field(default_factory=dict)
    skills: Dict[str, float] = Field(default_factory=dict)

    def to_state(self) -> PlayerState:
        return PlayerState(
            cash=self.cash,
            fame=self.fame,
            health=self.health,
            experience=self.experience,
            attributes=dict(self.attributes),
            skills=dict(self.skills),
        )


class GigEstimateRequest(BaseModel):
    venue: VenueIn
    player: PlayerIn = Field(default_factory=PlayerIn)
    show_type: str = "standard"
    when: Optional[str] = None  # ISO date-time; environment is neutral without it


class TourCreateRequest(BaseModel):
    player_id: str
    player: PlayerIn = Field(default_factory=PlayerIn)


class StopCreateRequest(BaseModel):
    venue: VenueIn
    scheduled_date: date
    show_type: str = "standard"
    travel_mode: str = "coach"


class CompleteRequest(BaseModel):
    seed: Optional[int] = None
    expected_version: Optional[int] = None
