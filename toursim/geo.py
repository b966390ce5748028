# toursim/geo.py
"""
Synthetic geography for tour planning.

This is not a geocoder. Known labels come from a small table; anything else
is hashed onto the globe so that the same label always lands on the same
spot. Determinism matters here, accuracy does not.
"""
from __future__ import annotations

import math
from typing import Dict, Optional

from toursim.config import DISTANCE_DECIMALS, EARTH_RADIUS_KM
from toursim.models import Coordinate

KNOWN_LOCATIONS: Dict[str, Coordinate] = {
    "london": Coordinate(51.5074, -0.1278),
    "manchester": Coordinate(53.4808, -2.2426),
    "glasgow": Coordinate(55.8642, -4.2518),
    "dublin": Coordinate(53.3498, -6.2603),
    "paris": Coordinate(48.8566, 2.3522),
    "berlin": Coordinate(52.5200, 13.4050),
    "amsterdam": Coordinate(52.3676, 4.9041),
    "new york": Coordinate(40.7128, -74.0060),
    "los angeles": Coordinate(34.0522, -118.2437),
    "nashville": Coordinate(36.1627, -86.7816),
    "tokyo": Coordinate(35.6762, 139.6503),
    "sydney": Coordinate(-33.8688, 151.2093),
}

# Roughly the middle of the European venues, where most tours start.
DEFAULT_COORDINATE = Coordinate(50.0, 5.0)

_HASH_MASK = 0xFFFFFFFF
_LAT_STEPS = 18001   # hundredths of a degree in [-90, 90]
_LNG_STEPS = 36001   # hundredths of a degree in [-180, 180]


def normalize_label(label: Optional[str]) -> str:
    return (label or "").strip().lower()


def label_hash(normalized: str) -> int:
    """Fixed 32-bit polynomial string hash (stable across processes, unlike hash())."""
    h = 0
    for ch in normalized:
        h = (h * 31 + ord(ch)) & _HASH_MASK
    return h


def project_hash(h: int) -> Coordinate:
    lat = (h % _LAT_STEPS) / 100.0 - 90.0
    lng = ((h // _LAT_STEPS) % _LNG_STEPS) / 100.0 - 180.0
    return Coordinate(lat=lat, lng=lng)


def coordinate_of(label: Optional[str]) -> Coordinate:
    key = normalize_label(label)
    if not key:
        return DEFAULT_COORDINATE
    known = KNOWN_LOCATIONS.get(key)
    if known is not None:
        return known
    return project_hash(label_hash(key))


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def distance_km(a: Optional[str], b: Optional[str]) -> float:
    """
    Great-circle distance between two location labels, in km (2 dp).
    A missing label means there is no leg to travel (e.g. the first stop).
    """
    if not normalize_label(a) or not normalize_label(b):
        return 0.0
    return round(haversine_km(coordinate_of(a), coordinate_of(b)), DISTANCE_DECIMALS)
