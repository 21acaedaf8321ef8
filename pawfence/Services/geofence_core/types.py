# pawfence/Services/geofence_core/types.py
"""
Value types of the geofence engine.

All types are immutable: the evaluator is a pure function over them and the
storage layer converts between them and ORM rows.

GeoJSON boundaries are validated into `BoundaryPolygon` here, once, at the
storage boundary. The geometry kernel never sees loosely-typed nested lists.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from numbers import Real
from typing import Any, Dict, Mapping, NamedTuple, Optional, Sequence, Tuple

from pawfence.Core.errors import MalformedBoundary


class Coordinate(NamedTuple):
    """WGS84 position in degrees, treated as planar for containment."""

    latitude: float
    longitude: float


Ring = Tuple[Coordinate, ...]


class ContainmentStatus(str, Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"
    UNKNOWN = "unknown"


class TransitionKind(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"


@dataclass(frozen=True)
class LocationSample:
    """
    One GPS ping of a collar.

    `observed_at` is the collar's own timestamp (used for display order),
    `received_at` is when the pipeline accepted it. Samples are evaluated in
    arrival order.
    """

    entity_id: str
    coordinate: Coordinate
    observed_at: datetime
    received_at: datetime
    id: Optional[int] = None


@dataclass(frozen=True)
class BoundaryPolygon:
    """
    Safe zone of a single dog.

    rings[0] is the outer ring and rings[1:] are holes. Rings are implicitly
    closed and never store a duplicated closing vertex.
    """

    boundary_id: str
    owner_entity_id: str
    rings: Tuple[Ring, ...]
    name: Optional[str] = None

    @classmethod
    def from_geojson(
        cls,
        boundary_id: str,
        owner_entity_id: str,
        geometry: Mapping[str, Any],
        name: Optional[str] = None,
    ) -> "BoundaryPolygon":
        """
        Build a polygon from a GeoJSON Polygon object.

        Positions are `[longitude, latitude]` pairs (extra elements such as
        altitude are ignored). Raises MalformedBoundary when the structure
        cannot be read at all; shape problems such as too few vertices are
        left to `geometry.check_polygon`.
        """
        if not isinstance(geometry, Mapping):
            raise MalformedBoundary(boundary_id, "geometry is not an object")
        if geometry.get("type") != "Polygon":
            raise MalformedBoundary(
                boundary_id, f"unsupported geometry type {geometry.get('type')!r}"
            )

        raw_rings = geometry.get("coordinates")
        if not isinstance(raw_rings, Sequence) or isinstance(raw_rings, (str, bytes)):
            raise MalformedBoundary(boundary_id, "coordinates must be a list of rings")
        if len(raw_rings) == 0:
            raise MalformedBoundary(boundary_id, "outer ring is missing")

        rings = tuple(_parse_ring(boundary_id, index, raw) for index, raw in enumerate(raw_rings))
        return cls(
            boundary_id=boundary_id,
            owner_entity_id=owner_entity_id,
            rings=rings,
            name=name,
        )

    def to_geojson(self) -> Dict[str, Any]:
        """GeoJSON Polygon with explicitly closed rings."""
        coordinates = []
        for ring in self.rings:
            positions = [[c.longitude, c.latitude] for c in ring]
            if positions:
                positions.append(list(positions[0]))
            coordinates.append(positions)
        return {"type": "Polygon", "coordinates": coordinates}


def _parse_ring(boundary_id: str, index: int, raw: Any) -> Ring:
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise MalformedBoundary(boundary_id, f"ring {index} is not a list of positions")

    vertices = []
    for position in raw:
        if (
            not isinstance(position, Sequence)
            or isinstance(position, (str, bytes))
            or len(position) < 2
        ):
            raise MalformedBoundary(boundary_id, f"ring {index} has an invalid position {position!r}")
        lng, lat = position[0], position[1]
        # bool is a Real subclass; reject it explicitly.
        if isinstance(lng, bool) or isinstance(lat, bool) or not isinstance(lng, Real) or not isinstance(lat, Real):
            raise MalformedBoundary(boundary_id, f"ring {index} has a non-numeric position {position!r}")
        vertices.append(Coordinate(latitude=float(lat), longitude=float(lng)))

    if len(vertices) > 1 and vertices[0] == vertices[-1]:
        vertices.pop()
    return tuple(vertices)


@dataclass(frozen=True)
class EntityContainmentState:
    """Last known status of one dog relative to one boundary."""

    entity_id: str
    boundary_id: str
    last_status: ContainmentStatus = ContainmentStatus.UNKNOWN
    last_evaluated_at: Optional[datetime] = None


ContainmentStateMap = Dict[str, EntityContainmentState]


@dataclass(frozen=True)
class NotificationEvent:
    """
    Alert produced by the evaluator.

    boundary_id is None when the alert concerns the dog's boundaries as a
    whole (for example leaving several boundaries on the same sample).
    """

    entity_id: str
    boundary_id: Optional[str]
    message: str
    triggered_at: datetime
    kind: TransitionKind = TransitionKind.EXIT
    seen: bool = False
    id: Optional[str] = None


@dataclass(frozen=True)
class Transition:
    """Per-boundary status change detected while evaluating one sample."""

    boundary_id: str
    kind: TransitionKind
    previous: ContainmentStatus
    current: ContainmentStatus


@dataclass(frozen=True)
class NotificationPolicy:
    """
    Decides which aggregate transitions turn into notifications.

    Exit notifications are on by default, entry notifications are off.
    """

    notify_on_exit: bool = True
    notify_on_entry: bool = False
    exit_message: str = "Your dog has left the designated boundary area."
    entry_message: str = "Your dog is back inside a designated boundary area."


@dataclass(frozen=True)
class EvaluationResult:
    state: ContainmentStateMap
    events: Tuple[NotificationEvent, ...] = ()
    transitions: Tuple[Transition, ...] = ()
    skipped: Tuple[str, ...] = ()
    evaluated: bool = True
    inside: Tuple[str, ...] = ()
