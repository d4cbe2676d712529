"""Great-circle distance and ETA helpers."""
import math

EARTH_RADIUS_KM = 6371.0
MIN_ETA_MINUTES = 1
MAX_ETA_MINUTES = 30


def clamp(value, lower, upper):
    return max(lower, min(upper, value))


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance between two points in kilometers."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def estimate_minutes(
    from_lat: float,
    from_lng: float,
    to_lat: float,
    to_lng: float,
    avg_speed_kmh: float = 30.0,
) -> int:
    """
    Minutes needed to cover the distance at ``avg_speed_kmh``, rounded up and
    clamped to [1, 30].
    """
    if avg_speed_kmh <= 0:
        raise ValueError("avg_speed_kmh must be positive")
    hours = distance_km(from_lat, from_lng, to_lat, to_lng) / avg_speed_kmh
    minutes = math.ceil(hours * 60)
    return clamp(minutes, MIN_ETA_MINUTES, MAX_ETA_MINUTES)
