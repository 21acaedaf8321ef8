# pawfence/Schemas/boundary.py

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BoundaryCreate(BaseModel):
    """Schema para crear un límite (GeoJSON Polygon, posiciones [lng, lat])."""
    id: Optional[str] = Field(None, min_length=1, max_length=100)
    name: Optional[str] = Field(None, max_length=200)
    user_id: Optional[str] = Field(None, max_length=100)
    boundary_geojson: Dict[str, Any]


class BoundaryGet(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    dog_id: str
    user_id: Optional[str] = None
    name: Optional[str] = None
    boundary_geojson: Dict[str, Any]
    created_at: Optional[datetime] = None


class BoundaryListResponse(BaseModel):
    boundaries: List[BoundaryGet]
    total: int
