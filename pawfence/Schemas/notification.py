# pawfence/Schemas/notification.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationSend(BaseModel):
    """Manual notification posted by an external collaborator."""
    dog_id: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1)


class NotificationGet(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    dog_id: str
    boundary_id: Optional[str] = None
    message: str
    kind: Optional[str] = None
    triggered_at: datetime
    seen: bool = False


class NotificationListResponse(BaseModel):
    notifications: List[NotificationGet]
    total: int
    unseen: int


class ContainmentStateGet(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    boundary_id: str
    last_status: str
    last_evaluated_at: Optional[datetime] = None


class DogStatusResponse(BaseModel):
    dog_id: str
    safe: Optional[bool] = Field(
        None,
        description="True while inside at least one boundary, None before the first evaluation",
    )
    boundaries: List[ContainmentStateGet]
