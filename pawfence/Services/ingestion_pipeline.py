# pawfence/Services/ingestion_pipeline.py
"""
Ingestion Pipeline
==================
Entry point for location samples, shared by the HTTP routes and by any
batch or replay tooling.

Per-sample flow:
1. Validate the raw payload (required fields, coordinate range). Invalid
   samples are rejected before anything is written.
2. Take the dog's lock.
3. Reject unknown dogs.
4. Store the location and commit. A location is never lost because of
   boundary logic.
5. Load the boundary snapshot and the prior containment state, evaluate,
   then save the new state and the notifications in a single commit.
6. Release the lock.

Errors:
- IngestError subclasses (MissingField, InvalidField, InvalidCoordinate,
  UnknownEntity) are raised to the caller, nothing is persisted.
- StorageFailure is raised to the caller, who may retry the whole call.
  Re-sent samples are recognised by (dog_id, observed_at, position), reuse
  the stored row and are evaluated again, which is idempotent. A different
  position reported with the same collar timestamp is stored as a new sample.
- Any exception raised by the evaluator is logged and reported in
  `IngestOutcome.evaluation_error`; the stored location is kept.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from pawfence.Core import log_ws
from pawfence.Core.errors import (
    GeofenceError,
    IngestError,
    InvalidCoordinate,
    InvalidField,
    MissingField,
    StorageFailure,
    UnknownEntity,
)
from pawfence.Core.timeutils import as_utc, utcnow
from pawfence.Schemas.location import LocationIngest
from pawfence.Services.geofence_core import (
    BoundarySet,
    Coordinate,
    EntityLockRegistry,
    EvaluationResult,
    GeofenceEvaluator,
    GeofenceStorage,
    LocationSample,
    NotificationEvent,
    entity_locks,
    is_valid_coordinate,
)


COORDINATE_FIELDS = {"lat", "latitude", "lng", "lon", "longitude"}
ENTITY_FIELDS = {"dog_id", "entity_id", "entityId"}


@dataclass(frozen=True)
class IngestOutcome:
    sample: LocationSample
    evaluation: Optional[EvaluationResult] = None
    events: Tuple[NotificationEvent, ...] = ()
    duplicate: bool = False
    evaluation_error: Optional[str] = None


@dataclass(frozen=True)
class BatchItemResult:
    index: int
    outcome: Optional[IngestOutcome] = None
    error: Optional[IngestError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _translate_validation_error(exc: ValidationError) -> IngestError:
    error = exc.errors()[0]
    loc = error.get("loc") or ("body",)
    field = str(loc[0])

    if error.get("type") == "missing" or error.get("input", ...) is None:
        return MissingField(field)
    if field in ENTITY_FIELDS and error.get("type") == "string_too_short":
        return MissingField(field)
    if field in COORDINATE_FIELDS:
        return InvalidCoordinate(f"'{field}' must be a number: {error.get('msg')}")
    return InvalidField(field, f"Field '{field}': {error.get('msg')}")


class IngestionPipeline:
    """
    Validates, stores and evaluates location samples.

    One instance is bound to one storage handle (one database session); the
    lock registry is shared process-wide so that samples of the same dog
    arriving on different requests are serialized.
    """

    def __init__(
        self,
        storage: GeofenceStorage,
        evaluator: Optional[GeofenceEvaluator] = None,
        locks: Optional[EntityLockRegistry] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.storage = storage
        self.evaluator = evaluator or GeofenceEvaluator()
        self.locks = locks or entity_locks
        self.clock = clock

    # ==========================================================
    # Validation
    # ==========================================================
    def validate(self, raw: Any, received_at: Optional[datetime] = None) -> LocationSample:
        """Turn a raw payload into a LocationSample or raise an IngestError."""
        received_at = as_utc(received_at or self.clock())

        if isinstance(raw, LocationIngest):
            payload = raw
        elif isinstance(raw, Mapping):
            try:
                payload = LocationIngest.model_validate(dict(raw))
            except ValidationError as exc:
                raise _translate_validation_error(exc) from None
        else:
            raise InvalidField("body", "Location payload must be a JSON object")

        if not is_valid_coordinate(payload.latitude, payload.longitude):
            raise InvalidCoordinate(
                f"Coordinate ({payload.latitude}, {payload.longitude}) is out of range: "
                "latitude must be within [-90, 90] and longitude within [-180, 180]"
            )

        return LocationSample(
            entity_id=payload.dog_id,
            coordinate=Coordinate(latitude=payload.latitude, longitude=payload.longitude),
            observed_at=as_utc(payload.timestamp) if payload.timestamp else received_at,
            received_at=received_at,
        )

    # ==========================================================
    # Single sample
    # ==========================================================
    def ingest(self, raw: Any) -> IngestOutcome:
        sample = self.validate(raw)
        return self._ingest_sample(sample, boundary_cache=None)

    # ==========================================================
    # Batch (offline backlog uploaded at once)
    # ==========================================================
    def ingest_many(self, raws: Iterable[Any]) -> List[BatchItemResult]:
        """
        Ingest samples in arrival order.

        Each dog's boundaries are loaded once for the whole batch. Validation
        errors are reported per item; a StorageFailure aborts the batch (the
        items before it stay committed and are recognised as duplicates when
        the batch is retried).
        """
        boundary_cache: Dict[str, BoundarySet] = {}
        results: List[BatchItemResult] = []

        for index, raw in enumerate(raws):
            try:
                sample = self.validate(raw)
                outcome = self._ingest_sample(sample, boundary_cache=boundary_cache)
            except IngestError as exc:
                results.append(BatchItemResult(index=index, error=exc))
                continue
            results.append(BatchItemResult(index=index, outcome=outcome))

        accepted = sum(1 for r in results if r.ok)
        print(f"[PIPELINE] Batch processed: {accepted} accepted, {len(results) - accepted} rejected")
        return results

    # ==========================================================
    # Internals
    # ==========================================================
    def _ingest_sample(
        self,
        sample: LocationSample,
        boundary_cache: Optional[Dict[str, BoundarySet]],
    ) -> IngestOutcome:
        entity_id = sample.entity_id

        with self.locks.hold(entity_id):
            if not self.storage.entity_exists(entity_id):
                print(f"[PIPELINE] Rejected sample for unknown dog '{entity_id}'")
                raise UnknownEntity(entity_id)

            stored = self.storage.find_location(entity_id, sample.observed_at, sample.coordinate)
            duplicate = stored is not None
            if duplicate:
                print(f"[PIPELINE] Dog '{entity_id}': duplicate sample at {sample.observed_at.isoformat()} - re-evaluating")
            else:
                stored = self.storage.append_location(sample)
                self._commit_or_raise()

            return self._evaluate(stored, duplicate, boundary_cache)

    def _evaluate(
        self,
        sample: LocationSample,
        duplicate: bool,
        boundary_cache: Optional[Dict[str, BoundarySet]],
    ) -> IngestOutcome:
        entity_id = sample.entity_id

        try:
            boundaries = boundary_cache.get(entity_id) if boundary_cache is not None else None
            if boundaries is None:
                boundaries = BoundarySet.load(self.storage, entity_id)
                if boundary_cache is not None:
                    boundary_cache[entity_id] = boundaries
            prior_state = self.storage.load_containment_state(entity_id)
        except StorageFailure:
            self.storage.rollback()
            raise

        try:
            result = self.evaluator.evaluate(sample, boundaries, prior_state)
        except GeofenceError as exc:
            return self._degraded(sample, duplicate, exc.message)
        except Exception as exc:
            return self._degraded(sample, duplicate, f"{type(exc).__name__}: {exc}")

        try:
            self.storage.save_containment_state(entity_id, result.state)
            events = tuple(self.storage.append_notification(e) for e in result.events)
            self._commit_or_raise()
        except StorageFailure:
            self.storage.rollback()
            raise

        for event in events:
            log_ws.log_from_thread(
                f"[PIPELINE] Notification for dog '{entity_id}': {event.message}",
                msg_type="warning",
            )

        return IngestOutcome(
            sample=sample,
            evaluation=result,
            events=events,
            duplicate=duplicate,
        )

    def _degraded(self, sample: LocationSample, duplicate: bool, reason: str) -> IngestOutcome:
        self.storage.rollback()
        log_ws.log_from_thread(
            f"[PIPELINE] Boundary evaluation failed for dog '{sample.entity_id}' "
            f"(location {sample.id} kept): {reason}",
            msg_type="error",
        )
        return IngestOutcome(sample=sample, duplicate=duplicate, evaluation_error=reason)

    def _commit_or_raise(self):
        try:
            self.storage.commit()
        except StorageFailure:
            self.storage.rollback()
            raise
