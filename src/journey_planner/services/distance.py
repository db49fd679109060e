"""Great-circle distances between stops."""

import math

from journey_planner.models.gtfs import Stop

# Earth's radius in kilometres for haversine calculation
EARTH_RADIUS_KM = 6371.0

MIN_WALK_MINUTES = 5
WALK_MINUTES_PER_KM = 12.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points.

    Args:
        lat1, lon1: First point coordinates in degrees.
        lat2, lon2: Second point coordinates in degrees.

    Returns:
        Distance in kilometres, rounded to 2 decimal places.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return round(EARTH_RADIUS_KM * c, 2)


def stop_distance_km(a: Stop, b: Stop) -> float:
    """Distance between two stops; 0.0 if either has no coordinates."""
    if not (a.has_location and b.has_location):
        return 0.0
    return haversine_km(a.stop_lat, a.stop_lon, b.stop_lat, b.stop_lon)


def walking_minutes(
    distance_km: float,
    minutes_per_km: float = WALK_MINUTES_PER_KM,
    minimum: int = MIN_WALK_MINUTES,
) -> int:
    """Estimated minutes to walk a distance, never below the minimum."""
    return max(minimum, math.ceil(distance_km * minutes_per_km))
