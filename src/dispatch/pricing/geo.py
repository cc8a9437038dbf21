"""Great-circle geometry over latitude/longitude pairs."""

import math

from dispatch.errors import InvalidCoordinates

EARTH_RADIUS_KM = 6371.0

# Average road speed used for drive-time estimates
AVERAGE_SPEED_KMH = 40.0


def _coordinates(point) -> tuple[float, float]:
    if hasattr(point, "latitude") and hasattr(point, "longitude"):
        return point.latitude, point.longitude
    latitude, longitude = point
    return latitude, longitude


def validate_coordinates(latitude, longitude) -> tuple[float, float]:
    """Return the pair as floats, or raise InvalidCoordinates."""
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        raise InvalidCoordinates(latitude, longitude) from None

    if math.isnan(lat) or math.isnan(lon):
        raise InvalidCoordinates(latitude, longitude)
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
        raise InvalidCoordinates(latitude, longitude)

    return lat, lon


def distance_km(origin, destination) -> float:
    """Haversine distance in kilometres.

    Accepts objects exposing ``latitude``/``longitude`` or plain
    ``(latitude, longitude)`` pairs. The result is not rounded.
    """
    lat1, lon1 = validate_coordinates(*_coordinates(origin))
    lat2, lon2 = validate_coordinates(*_coordinates(destination))

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def estimate_driving_minutes(distance: float) -> int:
    """Rough drive time at the average road speed, in whole minutes."""
    return round(distance / AVERAGE_SPEED_KMH * 60)
