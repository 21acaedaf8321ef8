# pawfence/Models/boundary.py

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declared_attr

from pawfence.DB.base_class import Base


class Boundary(Base):
    """
    Safe zone of a dog, stored as a GeoJSON Polygon.

    Geometry is kept as GeoJSON (`[longitude, latitude]` positions, first ring
    exterior, following rings holes) and parsed into a strict BoundaryPolygon
    when loaded for evaluation.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "boundaries"

    id = Column(String(100), primary_key=True, default=lambda: str(uuid.uuid4()))
    dog_id = Column(
        String(100),
        ForeignKey("dogs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(100), nullable=True)
    name = Column(String(200), nullable=True)

    boundary_geojson = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Boundary(id={self.id!r}, dog_id={self.dog_id!r})>"
