# pawfence/Schemas/location.py

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from pawfence.Schemas.notification import NotificationGet


"""
Raw sample accepted by the ingestion pipeline.
Several spellings are accepted for each field so that collars and the web
dashboard can post the same payload: {dog_id, lat, lng, timestamp?}.
Range checks happen in the pipeline so they can be reported as
InvalidCoordinate rather than as a generic validation error.
"""
class LocationIngest(BaseModel):
    dog_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        validation_alias=AliasChoices("dog_id", "entity_id", "entityId"),
        description="Dog the collar belongs to",
    )
    latitude: float = Field(
        ...,
        validation_alias=AliasChoices("lat", "latitude"),
        description="Latitude in decimal degrees",
    )
    longitude: float = Field(
        ...,
        validation_alias=AliasChoices("lng", "lon", "longitude"),
        description="Longitude in decimal degrees",
    )
    timestamp: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("timestamp", "observed_at"),
        description="Collar timestamp; defaults to the time of reception",
    )


"""
Schema for retrieving stored locations.
"""
class LocationGet(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    dog_id: str
    latitude: float
    longitude: float
    observed_at: datetime
    received_at: datetime


class TransitionGet(BaseModel):
    boundary_id: str
    kind: str
    previous: str
    current: str


"""
Result of one ingestion: the stored record plus what the evaluator decided.
"""
class IngestResponse(BaseModel):
    success: bool = True
    data: LocationGet
    duplicate: bool = False
    evaluated: bool
    inside_boundaries: List[str] = []
    transitions: List[TransitionGet] = []
    skipped_boundaries: List[str] = []
    notifications: List[NotificationGet] = []
    evaluation_error: Optional[str] = None


class BatchItemResponse(BaseModel):
    index: int
    ok: bool
    result: Optional[IngestResponse] = None
    error: Optional[dict] = None


class BatchIngestResponse(BaseModel):
    accepted: int
    rejected: int
    items: List[BatchItemResponse]
