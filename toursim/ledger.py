# toursim/ledger.py
"""
Applying settlement deltas to player state.

The engine only ever produces deltas. This is the one place that turns
them into new state, so it is also the one place that worries about two
tabs settling at once: a version check on every write, a lock per player,
and a record of which events have already paid out.
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import replace
from typing import Dict, Optional, Set

from toursim.config import ATTRIBUTE_MAX, ATTRIBUTE_MIN
from toursim.errors import DoubleSettlementError, StaleStateError
from toursim.fatigue import apply_health
from toursim.models import PlayerDelta, PlayerState
from toursim.numeric import clamp

logger = logging.getLogger(__name__)


def apply_delta(state: PlayerState, delta: PlayerDelta, expected_version: Optional[int] = None) -> PlayerState:
    """Return the state after ``delta``; refuses if someone else wrote first."""
    if expected_version is not None and state.version != expected_version:
        raise StaleStateError(f"Expected player version {expected_version}, found {state.version}")

    attributes = dict(state.attributes)
    for key, change in delta.attribute_deltas.items():
        attributes[key] = clamp(attributes.get(key, 0) + change, ATTRIBUTE_MIN, ATTRIBUTE_MAX)

    return replace(
        state,
        cash=state.cash + delta.cash_delta,
        fame=max(0, state.fame + delta.fame_delta),
        health=apply_health(state.health, delta.health_delta),
        experience=max(0, state.experience + delta.experience_delta),
        attributes=attributes,
        version=state.version + 1,
    )


class SettlementLedger:
    """
    In-memory single writer per player. Swap the dicts for a table with a
    unique (player_id, event_id) key to get the same guarantees in storage.
    """

    def __init__(self):
        self._players: Dict[str, PlayerState] = {}
        self._settled: Dict[str, Set[str]] = defaultdict(set)
        self._locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._guard = threading.Lock()

    def _lock_for(self, player_id: str) -> threading.Lock:
        with self._guard:
            return self._locks[player_id]

    def register(self, player_id: str, state: PlayerState) -> None:
        with self._lock_for(player_id):
            self._players[player_id] = state

    def get(self, player_id: str) -> PlayerState:
        with self._lock_for(player_id):
            return self._players[player_id]

    def is_settled(self, player_id: str, event_id: str) -> bool:
        with self._lock_for(player_id):
            return event_id in self._settled[player_id]

    def settle(
        self,
        player_id: str,
        event_id: str,
        delta: PlayerDelta,
        expected_version: Optional[int] = None,
    ) -> PlayerState:
        with self._lock_for(player_id):
            if event_id in self._settled[player_id]:
                raise DoubleSettlementError(f"Event {event_id!r} already settled for player {player_id!r}")
            new_state = apply_delta(self._players[player_id], delta, expected_version)
            self._players[player_id] = new_state
            self._settled[player_id].add(event_id)

        logger.info(
            "Settled %s for %s: cash %+d, fame %+d, health %+d (v%d)",
            event_id, player_id, delta.cash_delta, delta.fame_delta, delta.health_delta, new_state.version,
        )
        return new_state
