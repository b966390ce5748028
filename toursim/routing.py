# toursim/routing.py
from __future__ import annotations

from typing import List, Sequence

from toursim.config import DISTANCE_DECIMALS
from toursim.geo import distance_km
from toursim.models import RouteSuggestion


def _earliest_index(stops: Sequence) -> int:
    best = 0
    for i, stop in enumerate(stops):
        if stop.scheduled_date < stops[best].scheduled_date:
            best = i
    return best


def suggest_route(stops: Sequence) -> RouteSuggestion:
    """
    Nearest-neighbour visiting order, starting from the earliest show.

    Advisory only: the stops (and their dates) are returned untouched, just
    in a suggested order. Ties go to whichever stop was listed first.
    """
    stops = list(stops)
    if len(stops) <= 1:
        return RouteSuggestion(order=stops, total_distance=0.0)

    seed = _earliest_index(stops)
    order: List = [stops[seed]]
    remaining = [i for i in range(len(stops)) if i != seed]
    total = 0.0

    while remaining:
        last = order[-1]
        best_pos = 0
        best_dist = distance_km(last.location, stops[remaining[0]].location)
        for pos in range(1, len(remaining)):
            d = distance_km(last.location, stops[remaining[pos]].location)
            if d < best_dist:
                best_pos, best_dist = pos, d
        order.append(stops[remaining.pop(best_pos)])
        total += best_dist

    return RouteSuggestion(order=order, total_distance=round(total, DISTANCE_DECIMALS))
