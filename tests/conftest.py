from dataclasses import dataclass
from datetime import date
from typing import Optional

import pytest

from toursim.models import PlayerState, StopStatus, TravelLeg, TravelMode, Venue


@dataclass(frozen=True)
class FakeStop:
    """Just enough of a tour stop for fatigue/routing checks."""
    id: str
    scheduled_date: date
    location: Optional[str] = None
    travel_leg: Optional[TravelLeg] = None
    status: StopStatus = StopStatus.SCHEDULED


class FixedRandom:
    """Stands in for random.Random: hands out the given draws in order."""

    def __init__(self, *draws):
        self.draws = list(draws)

    def random(self):
        return self.draws.pop(0)


def leg(comfort, mode=TravelMode.COACH):
    return TravelLeg(distance_km=100.0, mode=mode, cost=8.0, time_hours=1.5, comfort=comfort, rest_days=0)


def stop_with_comfort(stop_id, day, comfort, status=StopStatus.SCHEDULED):
    return FakeStop(
        id=stop_id,
        scheduled_date=date(2024, 6, day),
        travel_leg=None if comfort is None else leg(comfort),
        status=status,
    )


@pytest.fixture
def venue():
    return Venue(
        id="roundhouse",
        name="The Roundhouse",
        location="London",
        base_payment=1000,
        capacity=500,
        prestige_level=2,
    )


@pytest.fixture
def player():
    return PlayerState(
        cash=200,
        fame=2000,
        health=100,
        attributes={"charisma": 400, "looks": 300, "musicality": 500},
        skills={"performance": 60, "vocals": 50, "guitar": 40, "songwriting": 30},
    )
