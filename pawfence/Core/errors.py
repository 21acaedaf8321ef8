# pawfence/Core/errors.py
"""
Error taxonomy shared by the geofence engine, the ingestion pipeline and the
HTTP layer.

- IngestError subclasses are user-correctable and raised before anything is
  persisted.
- MalformedBoundary is contained per boundary by the evaluator.
- StorageFailure always propagates to the caller, who may retry.

Every error carries a stable `code` that is exposed across the transport
boundary together with `message` (never a traceback).
"""

from typing import Any, Dict, Optional


class GeofenceError(Exception):
    """Base class for all PawFence domain errors."""

    code = "GeofenceError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class IngestError(GeofenceError):
    """A location sample was rejected before persistence."""

    code = "IngestError"


class MissingField(IngestError):
    code = "MissingField"

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Missing required field '{field}'")
        self.field = field


class InvalidField(IngestError):
    code = "InvalidField"

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Field '{field}' has an invalid value")
        self.field = field


class InvalidCoordinate(IngestError):
    code = "InvalidCoordinate"


class UnknownEntity(IngestError):
    code = "UnknownEntity"

    def __init__(self, entity_id: str):
        super().__init__(f"Dog '{entity_id}' does not exist")
        self.entity_id = entity_id


class MalformedBoundary(GeofenceError):
    """A boundary polygon failed minimal shape validation."""

    code = "MalformedBoundary"

    def __init__(self, boundary_id: Optional[str], reason: str):
        super().__init__(f"Boundary '{boundary_id}' is malformed: {reason}")
        self.boundary_id = boundary_id
        self.reason = reason


class StorageFailure(GeofenceError):
    """The persistence layer could not complete a read or a write."""

    code = "StorageFailure"
