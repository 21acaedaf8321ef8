# pawfence/Controller/Routes/locations.py

"""
Location Ingestion REST API

Endpoints:
- POST /location/update     Ingest one collar sample and evaluate boundaries
- POST /location/batch      Ingest a backlog of samples in arrival order

Payload (aliases accepted: entity_id, latitude, longitude/lon, observed_at):
    {
        "dog_id": "d1",
        "lat": 40.0,
        "lng": -74.0,
        "timestamp": "2025-10-11T12:00:00Z"   // optional, defaults to now
    }

Errors are returned as {"detail": {"code": ..., "message": ...}}:
- 400 MissingField / InvalidField / InvalidCoordinate
- 404 UnknownEntity
- 503 StorageFailure (safe to retry: re-sent samples are deduplicated)

A failure of the boundary evaluation does NOT fail the request: the
location is stored and `evaluation_error` explains why no decision was made.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException

from pawfence.Controller.deps import get_pipeline
from pawfence.Core.config import settings
from pawfence.Core.errors import GeofenceError, IngestError, StorageFailure, UnknownEntity
from pawfence.Schemas import location as location_schema
from pawfence.Services.ingestion_pipeline import IngestionPipeline, IngestOutcome

router = APIRouter()


def error_status(exc: GeofenceError) -> int:
    if isinstance(exc, UnknownEntity):
        return 404
    if isinstance(exc, IngestError):
        return 400
    if isinstance(exc, StorageFailure):
        return 503
    return 500


def http_error(exc: GeofenceError) -> HTTPException:
    return HTTPException(status_code=error_status(exc), detail=exc.to_dict())


def outcome_to_response(outcome: IngestOutcome) -> Dict[str, Any]:
    sample = outcome.sample
    evaluation = outcome.evaluation

    response = {
        "success": True,
        "data": {
            "id": sample.id,
            "dog_id": sample.entity_id,
            "latitude": sample.coordinate.latitude,
            "longitude": sample.coordinate.longitude,
            "observed_at": sample.observed_at,
            "received_at": sample.received_at,
        },
        "duplicate": outcome.duplicate,
        "evaluated": bool(evaluation and evaluation.evaluated),
        "notifications": [
            {
                "id": event.id,
                "dog_id": event.entity_id,
                "boundary_id": event.boundary_id,
                "message": event.message,
                "kind": event.kind.value,
                "triggered_at": event.triggered_at,
                "seen": event.seen,
            }
            for event in outcome.events
        ],
        "evaluation_error": outcome.evaluation_error,
    }

    if evaluation is not None:
        response["inside_boundaries"] = list(evaluation.inside)
        response["skipped_boundaries"] = list(evaluation.skipped)
        response["transitions"] = [
            {
                "boundary_id": t.boundary_id,
                "kind": t.kind.value,
                "previous": t.previous.value,
                "current": t.current.value,
            }
            for t in evaluation.transitions
        ]

    return response


# ==========================================================
# 📌 Single sample
# ==========================================================

@router.post("/update", response_model=location_schema.IngestResponse)
def update_location(
    payload: Any = Body(..., description="Collar sample: {dog_id, lat, lng, timestamp?}"),
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    """
    Store a collar sample and evaluate it against the dog's boundaries.

    Example:
        POST /location/update
        {"dog_id": "d1", "lat": 40.2, "lng": -74.0}

    Returns:
        The stored record, the boundaries the dog is inside, the per-boundary
        transitions and any notification created by this sample.
    """
    try:
        outcome = pipeline.ingest(payload)
    except GeofenceError as exc:
        raise http_error(exc)

    return outcome_to_response(outcome)


# ==========================================================
# 📌 Batch (offline backlog)
# ==========================================================

@router.post("/batch", response_model=location_schema.BatchIngestResponse)
def update_locations_batch(
    samples: List[Any] = Body(..., description="Samples in the order they were recorded"),
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    """
    Ingest several samples in order.

    Invalid items are reported individually and do not stop the batch.
    A storage failure aborts the request with 503; samples stored before the
    failure are recognised as duplicates when the batch is sent again.

    Raises:
        413: More than MAX_BATCH_SIZE samples
    """
    if len(samples) > settings.MAX_BATCH_SIZE:
        raise HTTPException(
            status_code=413,
            detail={
                "code": "BatchTooLarge",
                "message": f"At most {settings.MAX_BATCH_SIZE} samples per batch, got {len(samples)}",
            },
        )

    try:
        results = pipeline.ingest_many(samples)
    except GeofenceError as exc:
        raise http_error(exc)

    items = []
    for item in results:
        if item.ok:
            items.append({"index": item.index, "ok": True, "result": outcome_to_response(item.outcome)})
        else:
            items.append({"index": item.index, "ok": False, "error": item.error.to_dict()})

    accepted = sum(1 for item in results if item.ok)
    return {
        "accepted": accepted,
        "rejected": len(results) - accepted,
        "items": items,
    }
