"""Distance and geofence helpers for shops with coordinates."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from .models import DEFAULT_GEOFENCE_RADIUS, Shop

EARTH_RADIUS_M = 6371e3


@dataclass
class ShopDistance:
    shop: Shop
    distance: float  # meters


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters (haversine)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def _radius(shop: Shop, default_radius: int) -> int:
    return shop.geofence_radius or default_radius


def is_within_geofence(
    lat: float,
    lon: float,
    shop: Shop,
    default_radius: int = DEFAULT_GEOFENCE_RADIUS,
) -> bool:
    if not shop.has_location:
        return False
    distance = calculate_distance(lat, lon, shop.latitude, shop.longitude)
    return distance <= _radius(shop, default_radius)


def shops_in_range(
    lat: float,
    lon: float,
    shops: Iterable[Shop],
    default_radius: int = DEFAULT_GEOFENCE_RADIUS,
) -> list[ShopDistance]:
    """Shops that asked for nearby alerts and are inside their geofence, nearest first."""
    result: list[ShopDistance] = []
    for shop in shops:
        if not (shop.has_location and shop.notify_on_nearby):
            continue
        distance = calculate_distance(lat, lon, shop.latitude, shop.longitude)
        if distance <= _radius(shop, default_radius):
            result.append(ShopDistance(shop=shop, distance=distance))
    result.sort(key=lambda sd: sd.distance)
    return result
