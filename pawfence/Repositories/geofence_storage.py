# pawfence/Repositories/geofence_storage.py
"""
SQLAlchemy implementation of the GeofenceStorage contract.

Converts between ORM rows and the engine's value types:
- boundary GeoJSON is parsed into BoundaryPolygon here, at the storage
  boundary; rows whose geometry cannot be read are returned as polygons
  without rings so the evaluator skips them (and keeps their state row)
- datetimes are normalized to aware UTC
- state rows of boundaries deleted after the snapshot was loaded are not
  written, and notifications referencing them are stored without a boundary

Writes are added to the session and only reach the database on commit().
Every SQLAlchemyError is rolled back and re-raised as StorageFailure.
"""

from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pawfence.Core import log_ws
from pawfence.Core.errors import MalformedBoundary, StorageFailure
from pawfence.Core.timeutils import as_utc
from pawfence.Models.containment_state import ContainmentState
from pawfence.Models.location import Location
from pawfence.Models.notification import Notification
from pawfence.Repositories import boundary as boundary_repo
from pawfence.Repositories import containment_state as state_repo
from pawfence.Repositories import dog as dog_repo
from pawfence.Repositories import location as location_repo
from pawfence.Services.geofence_core.types import (
    BoundaryPolygon,
    ContainmentStateMap,
    ContainmentStatus,
    Coordinate,
    EntityContainmentState,
    LocationSample,
    NotificationEvent,
)


def location_to_sample(row: Location) -> LocationSample:
    return LocationSample(
        entity_id=row.dog_id,
        coordinate=Coordinate(latitude=row.latitude, longitude=row.longitude),
        observed_at=as_utc(row.observed_at),
        received_at=as_utc(row.received_at),
        id=row.id,
    )


class SqlAlchemyGeofenceStorage:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self._safe_rollback()
            log_ws.log_from_thread(f"[STORAGE] {operation} failed: {exc}", msg_type="error")
            raise StorageFailure(f"Storage unavailable during {operation}") from exc

    def _safe_rollback(self):
        try:
            self.db.rollback()
        except SQLAlchemyError as exc:
            print(f"[STORAGE] Rollback failed: {exc}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def entity_exists(self, entity_id: str) -> bool:
        with self._guard("dog lookup"):
            return dog_repo.dog_exists(self.db, entity_id)

    def load_boundaries(self, entity_id: str) -> List[BoundaryPolygon]:
        with self._guard("boundary load"):
            rows = boundary_repo.get_boundaries_by_dog(self.db, entity_id)

        polygons = []
        for row in rows:
            try:
                polygon = BoundaryPolygon.from_geojson(
                    boundary_id=row.id,
                    owner_entity_id=row.dog_id,
                    geometry=row.boundary_geojson,
                    name=row.name,
                )
            except MalformedBoundary as exc:
                print(f"[STORAGE] Boundary '{row.id}' has unreadable GeoJSON: {exc.reason}")
                polygon = BoundaryPolygon(
                    boundary_id=row.id, owner_entity_id=row.dog_id, rings=(), name=row.name
                )
            polygons.append(polygon)
        return polygons

    def load_containment_state(self, entity_id: str) -> ContainmentStateMap:
        with self._guard("state load"):
            dog_repo.lock_dog(self.db, entity_id)
            rows = state_repo.get_states_by_dog(self.db, entity_id)

        state: ContainmentStateMap = {}
        for row in rows:
            try:
                status = ContainmentStatus(row.last_status)
            except ValueError:
                status = ContainmentStatus.UNKNOWN
            state[row.boundary_id] = EntityContainmentState(
                entity_id=row.dog_id,
                boundary_id=row.boundary_id,
                last_status=status,
                last_evaluated_at=as_utc(row.last_evaluated_at),
            )
        return state

    def find_location(
        self, entity_id: str, observed_at, coordinate: Coordinate
    ) -> Optional[LocationSample]:
        with self._guard("location lookup"):
            row = location_repo.get_matching_location(
                self.db, entity_id, observed_at, coordinate.latitude, coordinate.longitude
            )
        return location_to_sample(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes (staged until commit)
    # ------------------------------------------------------------------
    def save_containment_state(
        self, entity_id: str, state: Mapping[str, EntityContainmentState]
    ) -> None:
        with self._guard("state save"):
            # The snapshot may predate a boundary deletion.
            existing = boundary_repo.get_existing_boundary_ids(self.db, state.keys())
            dropped = sorted(set(state) - existing)
            if dropped:
                print(f"[STORAGE] Dog '{entity_id}': dropping state of deleted boundaries {dropped}")

            rows = [
                ContainmentState(
                    dog_id=entity_id,
                    boundary_id=item.boundary_id,
                    last_status=item.last_status.value,
                    last_evaluated_at=item.last_evaluated_at,
                )
                for item in state.values()
                if item.boundary_id in existing
            ]
            state_repo.replace_states_for_dog(self.db, entity_id, rows)

    def append_location(self, sample: LocationSample) -> LocationSample:
        row = Location(
            dog_id=sample.entity_id,
            latitude=sample.coordinate.latitude,
            longitude=sample.coordinate.longitude,
            observed_at=sample.observed_at,
            received_at=sample.received_at,
        )
        with self._guard("location insert"):
            self.db.add(row)
            self.db.flush()
        return replace(sample, id=row.id)

    def append_notification(self, event: NotificationEvent) -> NotificationEvent:
        with self._guard("notification insert"):
            boundary_id = event.boundary_id
            if boundary_id is not None and not boundary_repo.get_existing_boundary_ids(self.db, [boundary_id]):
                boundary_id = None

            row = Notification(
                dog_id=event.entity_id,
                boundary_id=boundary_id,
                message=event.message,
                kind=event.kind.value,
                triggered_at=event.triggered_at,
                seen=event.seen,
            )
            self.db.add(row)
            self.db.flush()
        return replace(event, id=row.id, boundary_id=boundary_id)

    def commit(self) -> None:
        with self._guard("commit"):
            self.db.commit()

    def rollback(self) -> None:
        self._safe_rollback()
