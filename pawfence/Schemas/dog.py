# pawfence/Schemas/dog.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DogBase(BaseModel):
    """Schema base para perros."""
    name: str = Field(..., min_length=1, max_length=200)
    user_id: Optional[str] = Field(None, max_length=100)
    breed: Optional[str] = Field(None, max_length=200)
    collar_id: Optional[str] = Field(None, max_length=100)
    photo_url: Optional[str] = Field(None, max_length=500)


class DogCreate(DogBase):
    """Schema para crear perro. El id se genera si se omite."""
    id: Optional[str] = Field(None, min_length=1, max_length=100)


class DogGet(DogBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: Optional[datetime] = None
