"""Distance estimation between an outlet and a delivery point."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

EARTH_RADIUS_KM = 6371.0

# Address keyword heuristic used when no coordinates are available.
# Stand-in for a real geocoding service.
FAR_KEYWORDS = ("noida", "gurgaon", "far")
NEAR_KEYWORDS = ("moti", "kalka", "near")
FAR_DISTANCE_KM = 8.4
NEAR_DISTANCE_KM = 1.8
MIN_HEURISTIC_KM = 1.0


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def estimate_from_address(address: str) -> float:
    """Deterministic pseudo-distance derived from free-text address."""
    text = address.lower()
    if any(keyword in text for keyword in FAR_KEYWORDS):
        return FAR_DISTANCE_KM
    if any(keyword in text for keyword in NEAR_KEYWORDS):
        return NEAR_DISTANCE_KM
    return max(MIN_HEURISTIC_KM, (len(address) % 12) + 0.5)


def estimate_distance(
    address: Optional[str],
    outlet: Optional[Coordinates] = None,
    customer: Optional[Coordinates] = None,
) -> Optional[float]:
    """Distance in km from the outlet to the customer.

    Uses haversine when both parties have coordinates, else the address
    heuristic. Returns None when there is nothing to estimate from.
    """
    if outlet is not None and customer is not None:
        return round(haversine_km(outlet.lat, outlet.lng, customer.lat, customer.lng), 3)
    if address and address.strip():
        return estimate_from_address(address)
    return None


def outlet_coordinates(outlet) -> Optional[Coordinates]:
    if outlet is None or outlet.latitude is None or outlet.longitude is None:
        return None
    return Coordinates(lat=outlet.latitude, lng=outlet.longitude)


def find_nearest_outlet(location: Coordinates, outlets: Iterable) -> Optional[Tuple[object, float]]:
    """Outlet closest to ``location`` and its distance.

    Outlets without coordinates are skipped; ties keep the first in list order.
    """
    nearest = None
    best = None
    for outlet in outlets:
        coords = outlet_coordinates(outlet)
        if coords is None:
            continue
        distance = haversine_km(location.lat, location.lng, coords.lat, coords.lng)
        if best is None or distance < best:
            nearest, best = outlet, distance
    if nearest is None:
        return None
    return nearest, best
