# pawfence/Repositories/memory_storage.py
"""
In-process implementation of the GeofenceStorage contract.

Keeps dogs, boundaries, locations, containment state and notifications in
dictionaries guarded by a lock. Writes are staged per storage handle and
applied atomically on commit(), mirroring a database session, so several
handles (one per request) can share the same `InMemoryStore`.

Used by the engine test-suite and by tools that replay recorded tracks
without a database.
"""

import itertools
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from pawfence.Services.geofence_core.types import (
    BoundaryPolygon,
    ContainmentStateMap,
    Coordinate,
    EntityContainmentState,
    LocationSample,
    NotificationEvent,
)


class InMemoryStore:
    """Shared committed data."""

    def __init__(self):
        self.lock = threading.RLock()
        self.dogs: Dict[str, dict] = {}
        self.boundaries: Dict[str, BoundaryPolygon] = {}
        self.states: Dict[str, ContainmentStateMap] = {}
        self.locations: List[LocationSample] = []
        self.notifications: List[NotificationEvent] = []
        self._ids = itertools.count(1)

    def next_location_id(self) -> int:
        with self.lock:
            return next(self._ids)

    # Setup helpers, the boundary-management side of the system.
    def add_dog(self, dog_id: str, **attributes) -> None:
        with self.lock:
            self.dogs[dog_id] = dict(attributes, id=dog_id)

    def add_boundary(self, polygon: BoundaryPolygon) -> None:
        with self.lock:
            self.boundaries[polygon.boundary_id] = polygon

    def remove_boundary(self, boundary_id: str) -> None:
        with self.lock:
            self.boundaries.pop(boundary_id, None)
            for state in self.states.values():
                state.pop(boundary_id, None)

    # Read helpers for callers and tests.
    def locations_for(self, dog_id: str) -> List[LocationSample]:
        with self.lock:
            return [s for s in self.locations if s.entity_id == dog_id]

    def notifications_for(self, dog_id: str) -> List[NotificationEvent]:
        with self.lock:
            return [n for n in self.notifications if n.entity_id == dog_id]

    def state_for(self, dog_id: str) -> ContainmentStateMap:
        with self.lock:
            return dict(self.states.get(dog_id, {}))


class InMemoryGeofenceStorage:
    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store or InMemoryStore()
        self._pending: List[Callable[[], None]] = []
        self._pending_locations: List[LocationSample] = []

    def entity_exists(self, entity_id: str) -> bool:
        with self.store.lock:
            return entity_id in self.store.dogs

    def load_boundaries(self, entity_id: str) -> Sequence[BoundaryPolygon]:
        with self.store.lock:
            return [
                p for p in self.store.boundaries.values()
                if p.owner_entity_id == entity_id
            ]

    def load_containment_state(self, entity_id: str) -> ContainmentStateMap:
        return self.store.state_for(entity_id)

    def find_location(
        self, entity_id: str, observed_at: datetime, coordinate: Coordinate
    ) -> Optional[LocationSample]:
        with self.store.lock:
            for sample in self.store.locations + self._pending_locations:
                if (
                    sample.entity_id == entity_id
                    and sample.observed_at == observed_at
                    and sample.coordinate == coordinate
                ):
                    return sample
        return None

    def save_containment_state(
        self, entity_id: str, state: Mapping[str, EntityContainmentState]
    ) -> None:
        snapshot = dict(state)

        def apply():
            # Rows of boundaries deleted meanwhile are not resurrected.
            self.store.states[entity_id] = {
                bid: row for bid, row in snapshot.items() if bid in self.store.boundaries
            }

        self._pending.append(apply)

    def append_location(self, sample: LocationSample) -> LocationSample:
        stored = replace(sample, id=self.store.next_location_id())
        self._pending_locations.append(stored)
        self._pending.append(lambda: self.store.locations.append(stored))
        return stored

    def append_notification(self, event: NotificationEvent) -> NotificationEvent:
        stored = replace(event, id=str(uuid.uuid4()))

        def apply():
            row = stored
            if row.boundary_id is not None and row.boundary_id not in self.store.boundaries:
                row = replace(row, boundary_id=None)
            self.store.notifications.append(row)

        self._pending.append(apply)
        return stored

    def commit(self) -> None:
        with self.store.lock:
            for apply in self._pending:
                apply()
        self._pending = []
        self._pending_locations = []

    def rollback(self) -> None:
        self._pending = []
        self._pending_locations = []
