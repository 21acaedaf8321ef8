# pawfence/Services/geofence_core/storage.py
"""
Persistence contract used by the ingestion pipeline.

Implementations:
- pawfence.Repositories.geofence_storage.SqlAlchemyGeofenceStorage
- pawfence.Repositories.memory_storage.InMemoryGeofenceStorage

Writes are staged until `commit()`; `rollback()` discards them. Any failure
of the backing store is raised as StorageFailure. An unknown dog or a deleted
boundary must never raise: they yield empty results instead, and state rows
or notification references of a boundary deleted after the snapshot was
loaded are dropped when writing.
"""

from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from pawfence.Services.geofence_core.types import (
    BoundaryPolygon,
    ContainmentStateMap,
    Coordinate,
    EntityContainmentState,
    LocationSample,
    NotificationEvent,
)


class GeofenceStorage(Protocol):
    def entity_exists(self, entity_id: str) -> bool:
        ...

    def load_boundaries(self, entity_id: str) -> Sequence[BoundaryPolygon]:
        ...

    def load_containment_state(self, entity_id: str) -> ContainmentStateMap:
        ...

    def save_containment_state(
        self, entity_id: str, state: Mapping[str, EntityContainmentState]
    ) -> None:
        ...

    def find_location(
        self, entity_id: str, observed_at: datetime, coordinate: Coordinate
    ) -> Optional[LocationSample]:
        """Sample already stored with the same collar timestamp and position, if any."""
        ...

    def append_location(self, sample: LocationSample) -> LocationSample:
        """Stage `sample` for insertion and return it with its id."""
        ...

    def append_notification(self, event: NotificationEvent) -> NotificationEvent:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...
