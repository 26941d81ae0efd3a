from risk_engine.distance import haversine_distance_meters, project_to_plane
from risk_engine.errors import InvalidArgumentError
from risk_engine.models import GeoPoint


def is_point_inside_radius(center: GeoPoint, point: GeoPoint, radius_meters: float) -> bool:
    if radius_meters < 0:
        raise InvalidArgumentError("radius_meters must be >= 0")
    return haversine_distance_meters(center, point) <= radius_meters


def segment_intersects_circle(
    start: GeoPoint,
    end: GeoPoint,
    center: GeoPoint,
    radius_meters: float,
) -> bool:
    """Return True when any point of the segment lies within the circle.

    The segment is projected onto a local plane centred on the circle, which
    holds for zone radii up to a few kilometres. Intercontinental segments and
    segments crossing the antimeridian are not supported.
    """
    if radius_meters < 0:
        raise InvalidArgumentError("radius_meters must be >= 0")

    x1, y1 = project_to_plane(start, center)
    x2, y2 = project_to_plane(end, center)
    dx = x2 - x1
    dy = y2 - y1
    length_sq = dx * dx + dy * dy

    if length_sq == 0:
        closest_x, closest_y = x1, y1
    else:
        # center sits at the origin of the projected plane
        t = ((0.0 - x1) * dx + (0.0 - y1) * dy) / length_sq
        t = max(0.0, min(1.0, t))
        closest_x = x1 + t * dx
        closest_y = y1 + t * dy

    return closest_x * closest_x + closest_y * closest_y <= radius_meters * radius_meters
