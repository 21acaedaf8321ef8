# pawfence/Services/geofence_core/__init__.py
"""
Geofence Core Module
====================
Geofence evaluation engine, independent of HTTP and of the database.

Components:
- types: Immutable value types (Coordinate, BoundaryPolygon, states, events)
- geometry: Point-in-polygon kernel with hole support
- boundary_set: Per-dog boundary snapshot
- evaluator: Transition detection and notification decision
- locks: Per-dog mutual exclusion for read-evaluate-write
- storage: Persistence contract implemented by the repositories
"""

from .types import (
    BoundaryPolygon,
    ContainmentStateMap,
    ContainmentStatus,
    Coordinate,
    EntityContainmentState,
    EvaluationResult,
    LocationSample,
    NotificationEvent,
    NotificationPolicy,
    Transition,
    TransitionKind,
)
from .geometry import (
    check_polygon,
    contains,
    is_valid_coordinate,
    is_well_formed,
    point_in_ring,
)
from .boundary_set import BoundarySet
from .evaluator import GeofenceEvaluator, classify_transition
from .locks import EntityLockRegistry, entity_locks
from .storage import GeofenceStorage

__all__ = [
    # Types
    'BoundaryPolygon',
    'ContainmentStateMap',
    'ContainmentStatus',
    'Coordinate',
    'EntityContainmentState',
    'EvaluationResult',
    'LocationSample',
    'NotificationEvent',
    'NotificationPolicy',
    'Transition',
    'TransitionKind',

    # Geometry
    'check_polygon',
    'contains',
    'is_valid_coordinate',
    'is_well_formed',
    'point_in_ring',

    # Engine
    'BoundarySet',
    'GeofenceEvaluator',
    'classify_transition',
    'EntityLockRegistry',
    'entity_locks',
    'GeofenceStorage',
]
