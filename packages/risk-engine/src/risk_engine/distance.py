import math

from risk_engine.models import GeoPoint

EARTH_RADIUS_METERS = 6_371_000
METERS_PER_DEGREE_LAT = math.pi * EARTH_RADIUS_METERS / 180


def haversine_distance_meters(start: GeoPoint, end: GeoPoint) -> float:
    start_lat = math.radians(start.lat)
    end_lat = math.radians(end.lat)
    delta_lat = math.radians(end.lat - start.lat)
    delta_lng = math.radians(end.lng - start.lng)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(start_lat) * math.cos(end_lat) * math.sin(delta_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def project_to_plane(point: GeoPoint, origin: GeoPoint) -> tuple[float, float]:
    """Equirectangular projection of ``point`` in meters around ``origin``.

    Longitude is scaled by ``cos(origin.lat)``; the error grows with the
    distance from ``origin``, so only use it at city scale.
    """
    x = (point.lng - origin.lng) * METERS_PER_DEGREE_LAT * math.cos(math.radians(origin.lat))
    y = (point.lat - origin.lat) * METERS_PER_DEGREE_LAT
    return x, y
