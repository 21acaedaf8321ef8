# pawfence/Services/geofence_core/geometry.py
"""
Geometry Kernel
===============
Point-in-polygon containment for boundary polygons with holes.

Algorithm:
- Even-odd ray casting, longitude as x and latitude as y, ray toward +x.
- A point is contained when the crossing count is odd for the outer ring and
  even for every hole.
- Coordinates are treated as planar degrees (no projection, no great-circle
  edges).

Edge policy:
    Edges are half-open. An edge is crossed when `(yi > y) != (yj > y)` and
    the point lies strictly west of the crossing. For an axis-aligned
    rectangle, points on the west and south edges are inside and points on
    the east and north edges are outside. A point on a hole's west or south
    edge lies inside the hole, hence is not contained.

Degenerate polygons:
    Rings with fewer than 3 distinct vertices, non-finite or out-of-range
    vertices, zero area or self-intersections make `contains` return False.
    `check_polygon` raises MalformedBoundary with the reason instead.

Every function here is pure and safe to call from any number of threads.
"""

import math
from functools import lru_cache
from typing import Optional, Tuple

from shapely.errors import GEOSException
from shapely.geometry import LinearRing

from pawfence.Core.errors import MalformedBoundary
from pawfence.Services.geofence_core.types import BoundaryPolygon, Coordinate, Ring


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """True when both values are finite and inside WGS84 degree ranges."""
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return False
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def ring_area(ring: Ring) -> float:
    """Signed shoelace area in square degrees (counter-clockwise is positive)."""
    total = 0.0
    n = len(ring)
    for i in range(n):
        yi, xi = ring[i]
        yj, xj = ring[(i + 1) % n]
        total += xi * yj - xj * yi
    return total / 2.0


@lru_cache(maxsize=4096)
def _ring_is_simple(ring: Ring) -> bool:
    # Shapely expects (x, y) = (longitude, latitude).
    try:
        return LinearRing([(c.longitude, c.latitude) for c in ring]).is_simple
    except (ValueError, GEOSException):
        return False


def ring_problem(ring: Ring) -> Optional[str]:
    """Describe why `ring` cannot be used for containment, or None if it can."""
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring = ring[:-1]

    for vertex in ring:
        if not is_valid_coordinate(vertex.latitude, vertex.longitude):
            return f"vertex {tuple(vertex)} is not a valid coordinate"

    if len(set(ring)) < 3:
        return "fewer than 3 distinct vertices"
    if ring_area(ring) == 0.0:
        return "zero area"
    if not _ring_is_simple(ring):
        return "self-intersecting ring"
    return None


@lru_cache(maxsize=1024)
def _polygon_problem(rings: Tuple[Ring, ...]) -> Optional[str]:
    if not rings:
        return "outer ring is missing"
    for index, ring in enumerate(rings):
        problem = ring_problem(ring)
        if problem:
            label = "outer ring" if index == 0 else f"hole {index}"
            return f"{label}: {problem}"
    return None


def check_polygon(polygon: BoundaryPolygon) -> None:
    """Raise MalformedBoundary when `polygon` fails minimal shape validation."""
    problem = _polygon_problem(polygon.rings)
    if problem:
        raise MalformedBoundary(polygon.boundary_id, problem)


def is_well_formed(polygon: BoundaryPolygon) -> bool:
    return _polygon_problem(polygon.rings) is None


def point_in_ring(point: Coordinate, ring: Ring) -> bool:
    """Even-odd crossing test of `point` against one implicitly closed ring."""
    y, x = point.latitude, point.longitude
    inside = False
    n = len(ring)
    j = n - 1
    for i in range(n):
        yi, xi = ring[i]
        yj, xj = ring[j]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def contains(point: Coordinate, polygon: BoundaryPolygon) -> bool:
    """
    True when `point` is inside the outer ring of `polygon` and outside all
    of its holes. Degenerate polygons and non-finite points give False.
    """
    if not (math.isfinite(point.latitude) and math.isfinite(point.longitude)):
        return False
    if not is_well_formed(polygon):
        return False

    outer, holes = polygon.rings[0], polygon.rings[1:]
    if not point_in_ring(point, outer):
        return False
    return not any(point_in_ring(point, hole) for hole in holes)
