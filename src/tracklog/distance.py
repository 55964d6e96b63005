"""Great-circle distance on a spherical earth."""

from __future__ import annotations
import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tracklog.models import Segment, TrackPoint

# Earth's mean radius in meters
EARTH_RADIUS_M = 6_371_000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points using Haversine formula.

    Args:
        lat1, lon1: First point coordinates in degrees
        lat2, lon2: Second point coordinates in degrees

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    # Rounding can push a fractionally above 1 for antipodal points
    c = 2 * math.asin(math.sqrt(min(a, 1.0)))

    return EARTH_RADIUS_M * c


def point_distance(a: TrackPoint, b: TrackPoint) -> float:
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


def cumulative_distances(segments: list[Segment]) -> list[list[float]]:
    """Cumulative distance (meters) at every point, per segment.

    Each segment continues from where the previous one ended; the gap
    between segments adds nothing.
    """
    result = []
    offset = 0.0
    for seg in segments:
        dists = [offset]
        for i in range(1, len(seg.points)):
            dists.append(dists[-1] + point_distance(seg.points[i - 1], seg.points[i]))
        offset = dists[-1]
        result.append(dists)
    return result
