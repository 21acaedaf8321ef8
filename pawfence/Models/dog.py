# pawfence/Models/dog.py

import uuid

from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.orm import declared_attr

from pawfence.DB.base_class import Base


class Dog(Base):
    """
    Collared animal tracked by the service.

    Locations, boundaries, containment state and notifications all reference
    a dog; a sample for an unknown dog is rejected before persistence.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "dogs"

    id = Column(String(100), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(100), nullable=True, index=True, doc="Owner account")
    name = Column(String(200), nullable=False)
    breed = Column(String(200), nullable=True)
    collar_id = Column(String(100), nullable=True, unique=True)
    photo_url = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Dog(id={self.id!r}, name={self.name!r})>"
