# toursim/webapp.py
from __future__ import annotations

import logging
import os
import random
import threading
import uuid
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from toursim.config import WORLD_FILE_ENV
from toursim.economics import estimate_booking
from toursim.environment import WorldEnvironmentSource, environment_for, load_world
from toursim.errors import (
    DoubleSettlementError,
    InvalidInputError,
    InvalidTransitionError,
    RequirementsNotMetError,
    StaleStateError,
)
from toursim.geo import distance_km
from toursim.ledger import SettlementLedger
from toursim.logging_config import setup_logging
from toursim.models import NEUTRAL_ENVIRONMENT, TourStop
from toursim.schemas import (
    CompleteRequest,
    DistanceRequest,
    GigEstimateRequest,
    StopCreateRequest,
    TourCreateRequest,
    TravelRequest,
)
from toursim.tour import cancel_stop, complete_stop, plan_tour, previous_stop, schedule_stop, settle_stop
from toursim.travel import build_leg, travel_options

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="toursim")


@dataclass
class TourSession:
    player_id: str
    stops: List[TourStop] = field(default_factory=list)
    # stop ids and the stop list change together under this lock
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    stop_count: int = 0


def world_from_env(path: Optional[str] = None) -> WorldEnvironmentSource:
    """The weather/events feed named by $TOURSIM_WORLD_FILE, or an empty one."""
    path = path or os.environ.get(WORLD_FILE_ENV)
    if not path:
        return WorldEnvironmentSource()
    try:
        return load_world(path)
    except FileNotFoundError:
        logger.warning("World feed %s not found; environment stays neutral", path)
        return WorldEnvironmentSource()


# In-memory tours and player ledger (POC). Later: the real persistence layer.
TOURS: Dict[str, TourSession] = {}
LEDGER = SettlementLedger()
ENVIRONMENT = world_from_env()


@app.exception_handler(InvalidInputError)
def invalid_input(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(RequirementsNotMetError)
def requirements_not_met(request: Request, exc: RequirementsNotMetError):
    return JSONResponse(status_code=409, content={"detail": str(exc), "missing": exc.missing})


@app.exception_handler(InvalidTransitionError)
@app.exception_handler(DoubleSettlementError)
@app.exception_handler(StaleStateError)
def conflict(request: Request, exc: Exception):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def _get_tour(tid: str) -> TourSession:
    session = TOURS.get(tid)
    if not session:
        raise HTTPException(status_code=404, detail=f"Unknown tour {tid}")
    return session


def _get_stop(session: TourSession, stop_id: str) -> Tuple[int, TourStop]:
    for i, stop in enumerate(session.stops):
        if stop.id == stop_id:
            return i, stop
    raise HTTPException(status_code=404, detail=f"Unknown stop {stop_id}")


@app.post("/distance")
def distance(body: DistanceRequest):
    return {"distance_km": distance_km(body.a, body.b)}


@app.post("/travel/estimate")
def travel_estimate(body: TravelRequest):
    return asdict(build_leg(body.distance_km, body.mode))


@app.post("/travel/options")
def travel_option_list(body: TravelRequest):
    return {"options": [asdict(o) for o in travel_options(body.distance_km)]}


@app.post("/gigs/estimate")
def gig_estimate(body: GigEstimateRequest):
    venue = body.venue.to_venue()
    env = environment_for(ENVIRONMENT, venue.location, body.when) if body.when else NEUTRAL_ENVIRONMENT
    estimate = estimate_booking(
        venue=venue, show_type=body.show_type, player=body.player.to_state(), environment=env)
    return {**asdict(estimate), "environment": asdict(env)}


@app.post("/tours")
def create_tour(body: TourCreateRequest):
    tid = str(uuid.uuid4())
    TOURS[tid] = TourSession(player_id=body.player_id)
    LEDGER.register(body.player_id, body.player.to_state())
    return {"tour_id": tid}


@app.get("/tours/{tid}")
def tour_view(tid: str):
    session = _get_tour(tid)
    plan = plan_tour(session.stops)
    return {
        "player_id": session.player_id,
        "player": asdict(LEDGER.get(session.player_id)),
        "stops": [asdict(s) for s in session.stops],
        "plan": {
            "suggested_order": [s.id for s in plan.route.order],
            "suggested_distance": plan.route.total_distance,
            "fatigue": asdict(plan.fatigue),
            "total_travel_cost": plan.total_travel_cost,
            "total_travel_hours": plan.total_travel_hours,
            "total_rest_days": plan.total_rest_days,
        },
    }


@app.post("/tours/{tid}/stops")
def add_stop(tid: str, body: StopCreateRequest):
    session = _get_tour(tid)
    venue = body.venue.to_venue()
    player = LEDGER.get(session.player_id)

    with session.lock:
        prev = previous_stop(session.stops, body.scheduled_date)
        stop = schedule_stop(
            stop_id=f"stop-{session.stop_count + 1}",
            venue=venue,
            scheduled_date=body.scheduled_date,
            player=player,
            show_type=body.show_type,
            previous_location=prev.location if prev else None,
            travel_mode=body.travel_mode,
            environment_source=ENVIRONMENT,
        )
        session.stops.append(stop)
        # only a booked stop uses up an id
        session.stop_count += 1
    return asdict(stop)


@app.post("/tours/{tid}/stops/{stop_id}/complete")
def complete(tid: str, stop_id: str, body: CompleteRequest):
    session = _get_tour(tid)

    # Per-request stream; a seed makes the outcome reproducible.
    rng = random.Random(body.seed) if body.seed is not None else random.Random()

    with session.lock:
        idx, stop = _get_stop(session, stop_id)
        settlement = settle_stop(stop=stop, stops=session.stops, player=LEDGER.get(session.player_id), rng=rng)
        player = LEDGER.settle(
            session.player_id, f"{tid}:{stop_id}", settlement.delta, expected_version=body.expected_version)
        session.stops[idx] = complete_stop(stop, settlement)

    return {
        "settlement": asdict(settlement),
        "delta": asdict(settlement.delta),
        "player": asdict(player),
        "stop": asdict(session.stops[idx]),
    }


@app.post("/tours/{tid}/stops/{stop_id}/cancel")
def cancel(tid: str, stop_id: str):
    session = _get_tour(tid)
    with session.lock:
        idx, stop = _get_stop(session, stop_id)
        session.stops[idx] = cancel_stop(stop)
    return asdict(session.stops[idx])
