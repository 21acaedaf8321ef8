"""Tests for the point-in-polygon kernel."""

import math
import random

import pytest
from shapely.geometry import Point, Polygon

from pawfence.Core.errors import MalformedBoundary
from pawfence.Services.geofence_core import (
    BoundaryPolygon,
    Coordinate,
    check_polygon,
    contains,
    is_valid_coordinate,
    is_well_formed,
    point_in_ring,
)

from conftest import SQUARE_GEOJSON, square_polygon


def polygon_from_latlng(rings, boundary_id="p"):
    return BoundaryPolygon(
        boundary_id=boundary_id,
        owner_entity_id="d1",
        rings=tuple(tuple(Coordinate(lat, lng) for lat, lng in ring) for ring in rings),
    )


def random_convex_ring(rng):
    """Vertices on a circle at sorted angles, counter-clockwise."""
    center_lat = rng.uniform(-60, 60)
    center_lng = rng.uniform(-150, 150)
    radius = rng.uniform(0.01, 5.0)
    count = rng.randint(3, 12)
    angles = sorted(rng.uniform(0, 2 * math.pi) for _ in range(count))
    return [
        (center_lat + radius * math.sin(a), center_lng + radius * math.cos(a))
        for a in angles
    ], (center_lat, center_lng, radius)


def triangle_area(a, b, c):
    # (lat, lng) tuples, lng as x
    return abs((b[1] - a[1]) * (c[0] - a[0]) - (c[1] - a[1]) * (b[0] - a[0])) / 2.0


def reference_inside(point, ring):
    """
    Fan-area reference for convex rings: the point is inside iff the
    triangles it forms with every edge add up to the ring's area.
    Returns None when the point is too close to an edge to decide.
    """
    n = len(ring)
    total = 0.0
    min_distance = float("inf")
    for i in range(n):
        a, b = ring[i], ring[(i + 1) % n]
        area = triangle_area(point, a, b)
        total += area
        edge = math.hypot(b[1] - a[1], b[0] - a[0])
        min_distance = min(min_distance, 2 * area / edge)

    # Fan from vertex 0 on coordinate differences keeps rounding small.
    polygon_area = sum(triangle_area(ring[0], ring[i], ring[i + 1]) for i in range(1, n - 1))
    if min_distance < 1e-7:
        return None
    return abs(total - polygon_area) <= 1e-9 * max(polygon_area, 1e-12) + 1e-12


class TestRandomConvexPolygons:
    def test_agrees_with_area_reference_on_10000_points(self):
        rng = random.Random(20251011)
        checked = 0
        inside_count = 0

        while checked < 10000:
            ring, (lat0, lng0, radius) = random_convex_ring(rng)
            polygon = polygon_from_latlng([ring])
            if not is_well_formed(polygon):
                continue

            for _ in range(250):
                point = (
                    lat0 + rng.uniform(-1.5, 1.5) * radius,
                    lng0 + rng.uniform(-1.5, 1.5) * radius,
                )
                expected = reference_inside(point, ring)
                if expected is None:
                    continue
                actual = contains(Coordinate(*point), polygon)
                assert actual == expected, (ring, point)
                checked += 1
                inside_count += actual

        # Both branches were exercised.
        assert 0 < inside_count < checked

    def test_agrees_with_shapely_away_from_edges(self):
        rng = random.Random(7)
        for _ in range(50):
            ring, (lat0, lng0, radius) = random_convex_ring(rng)
            polygon = polygon_from_latlng([ring])
            if not is_well_formed(polygon):
                continue
            shapely_polygon = Polygon([(lng, lat) for lat, lng in ring])

            for _ in range(100):
                lat = lat0 + rng.uniform(-1.5, 1.5) * radius
                lng = lng0 + rng.uniform(-1.5, 1.5) * radius
                if shapely_polygon.exterior.distance(Point(lng, lat)) < 1e-7:
                    continue
                assert contains(Coordinate(lat, lng), polygon) == shapely_polygon.contains(Point(lng, lat))


class TestHoles:
    def setup_method(self):
        outer = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]
        hole = [(4.0, 4.0), (6.0, 4.0), (6.0, 6.0), (4.0, 6.0)]
        self.polygon = polygon_from_latlng([outer, hole])

    def test_point_in_hole_is_not_contained(self):
        assert not contains(Coordinate(5.0, 5.0), self.polygon)

    def test_point_between_outer_and_hole_is_contained(self):
        assert contains(Coordinate(2.0, 2.0), self.polygon)
        assert contains(Coordinate(8.0, 5.0), self.polygon)

    def test_point_outside_outer_is_not_contained(self):
        assert not contains(Coordinate(11.0, 5.0), self.polygon)

    def test_point_on_hole_west_edge_is_not_contained(self):
        # West edge of the hole belongs to the hole.
        assert not contains(Coordinate(5.0, 4.0), self.polygon)

    def test_point_on_hole_east_edge_is_contained(self):
        assert contains(Coordinate(5.0, 6.0), self.polygon)


class TestEdgePolicy:
    """Square lat 39.9..40.1, lng -74.1..-73.9."""

    def setup_method(self):
        self.square = square_polygon()

    @pytest.mark.parametrize("lat, lng", [
        (40.0, -74.1),    # west edge
        (39.9, -74.0),    # south edge
        (39.9, -74.1),    # south-west corner
        (40.0, -74.0),    # center
    ])
    def test_inside(self, lat, lng):
        assert contains(Coordinate(lat, lng), self.square)

    @pytest.mark.parametrize("lat, lng", [
        (40.0, -73.9),    # east edge
        (40.1, -74.0),    # north edge
        (40.1, -73.9),    # north-east corner
        (40.1, -74.1),    # north-west corner
        (39.9, -73.9),    # south-east corner
        (40.2, -74.0),
        (40.0, -73.8),
    ])
    def test_outside(self, lat, lng):
        assert not contains(Coordinate(lat, lng), self.square)

    def test_ring_orientation_does_not_matter(self):
        reversed_square = polygon_from_latlng([[
            (39.9, -73.9), (40.1, -73.9), (40.1, -74.1), (39.9, -74.1),
        ]])
        for lat, lng in [(40.0, -74.0), (40.0, -74.1), (40.2, -74.0)]:
            point = Coordinate(lat, lng)
            assert contains(point, reversed_square) == contains(point, self.square)


class TestClosingVertex:
    def test_closed_and_open_rings_are_equivalent(self):
        closed = {
            "type": "Polygon",
            "coordinates": [SQUARE_GEOJSON["coordinates"][0] + [SQUARE_GEOJSON["coordinates"][0][0]]],
        }
        open_polygon = BoundaryPolygon.from_geojson("b", "d1", SQUARE_GEOJSON)
        closed_polygon = BoundaryPolygon.from_geojson("b", "d1", closed)

        assert open_polygon.rings == closed_polygon.rings
        assert len(closed_polygon.rings[0]) == 4

    def test_to_geojson_closes_rings(self):
        geojson = square_polygon().to_geojson()
        ring = geojson["coordinates"][0]
        assert ring[0] == ring[-1]
        assert len(ring) == 5

    def test_point_in_ring_wraps_around(self):
        ring = square_polygon().rings[0]
        assert point_in_ring(Coordinate(40.0, -74.0), ring)


class TestDegenerateBoundaries:
    @pytest.mark.parametrize("rings, reason", [
        ([[(0.0, 0.0), (1.0, 1.0)]], "fewer than 3 distinct vertices"),
        ([[(0.0, 0.0), (1.0, 1.0), (0.0, 0.0)]], "fewer than 3 distinct vertices"),
        ([[(0.0, 0.0), (1.0, 1.0), (2.0, 2.0)]], "zero area"),
        ([[(0.0, 0.0), (2.0, 2.0), (0.0, 2.0), (3.0, 0.0)]], "self-intersecting"),
        ([[(0.0, 0.0), (95.0, 0.0), (0.0, 1.0)]], "not a valid coordinate"),
        ([[(0.0, 0.0), (float("nan"), 0.0), (0.0, 1.0)]], "not a valid coordinate"),
        ([], "outer ring is missing"),
    ])
    def test_malformed_polygons_are_never_containing(self, rings, reason):
        polygon = polygon_from_latlng(rings)

        assert not is_well_formed(polygon)
        assert not contains(Coordinate(0.5, 0.5), polygon)
        with pytest.raises(MalformedBoundary) as exc_info:
            check_polygon(polygon)
        assert reason in exc_info.value.reason
        assert exc_info.value.boundary_id == "p"

    def test_degenerate_hole_is_reported(self):
        outer = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]
        polygon = polygon_from_latlng([outer, [(1.0, 1.0), (2.0, 2.0)]])

        with pytest.raises(MalformedBoundary) as exc_info:
            check_polygon(polygon)
        assert exc_info.value.reason.startswith("hole 1:")

    def test_non_finite_point_is_not_contained(self):
        assert not contains(Coordinate(float("nan"), -74.0), square_polygon())
        assert not contains(Coordinate(40.0, float("inf")), square_polygon())


class TestGeoJSONParsing:
    @pytest.mark.parametrize("geometry", [
        None,
        "Polygon",
        {"type": "Point", "coordinates": [0, 0]},
        {"type": "Polygon"},
        {"type": "Polygon", "coordinates": []},
        {"type": "Polygon", "coordinates": "abc"},
        {"type": "Polygon", "coordinates": [[[0, 0], [1]]]},
        {"type": "Polygon", "coordinates": [[[0, 0], ["a", 1], [1, 1]]]},
        {"type": "Polygon", "coordinates": [[[0, 0], [True, 1], [1, 1]]]},
    ])
    def test_unreadable_geometry_raises(self, geometry):
        with pytest.raises(MalformedBoundary):
            BoundaryPolygon.from_geojson("b", "d1", geometry)

    def test_positions_are_lng_lat(self):
        polygon = square_polygon()
        assert polygon.rings[0][0] == Coordinate(latitude=39.9, longitude=-74.1)

    def test_altitude_is_ignored(self):
        geometry = {
            "type": "Polygon",
            "coordinates": [[[lng, lat, 12.0] for lng, lat in SQUARE_GEOJSON["coordinates"][0]]],
        }
        assert BoundaryPolygon.from_geojson("b1", "d1", geometry).rings == square_polygon().rings


class TestCoordinates:
    @pytest.mark.parametrize("lat, lng, valid", [
        (0.0, 0.0, True),
        (90.0, 180.0, True),
        (-90.0, -180.0, True),
        (90.0001, 0.0, False),
        (0.0, -180.5, False),
        (float("nan"), 0.0, False),
        (0.0, float("inf"), False),
    ])
    def test_is_valid_coordinate(self, lat, lng, valid):
        assert is_valid_coordinate(lat, lng) is valid
