# pawfence/Services/geofence_core/boundary_set.py
"""
Read-only snapshot of the boundaries configured for one dog.

A snapshot is loaded once per ingestion call (or once per batch) and never
refreshed while it is in use. A boundary created after the snapshot was
taken is picked up by the next load.
"""

from typing import FrozenSet, Iterable, Iterator, Optional

from pawfence.Services.geofence_core.storage import GeofenceStorage
from pawfence.Services.geofence_core.types import BoundaryPolygon


class BoundarySet:
    def __init__(self, entity_id: str, polygons: Iterable[BoundaryPolygon] = ()):
        self.entity_id = entity_id
        # Polygons owned by another dog never enter the snapshot.
        self._polygons: FrozenSet[BoundaryPolygon] = frozenset(
            p for p in polygons if p.owner_entity_id == entity_id
        )

    @classmethod
    def load(cls, storage: GeofenceStorage, entity_id: str) -> "BoundarySet":
        return cls(entity_id, storage.load_boundaries(entity_id))

    def boundaries_for(self, entity_id: str) -> FrozenSet[BoundaryPolygon]:
        if entity_id != self.entity_id:
            return frozenset()
        return self._polygons

    def get(self, boundary_id: str) -> Optional[BoundaryPolygon]:
        for polygon in self._polygons:
            if polygon.boundary_id == boundary_id:
                return polygon
        return None

    def __iter__(self) -> Iterator[BoundaryPolygon]:
        # Stable order keeps logs and transition lists deterministic.
        return iter(sorted(self._polygons, key=lambda p: p.boundary_id))

    def __len__(self) -> int:
        return len(self._polygons)

    def __repr__(self) -> str:
        return f"<BoundarySet(entity_id={self.entity_id!r}, boundaries={len(self)})>"
