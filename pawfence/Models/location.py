# pawfence/Models/location.py
from sqlalchemy import (
    BigInteger, CheckConstraint, Column, DateTime, Float, ForeignKey, Index,
    Integer, String,
)
from sqlalchemy.orm import declared_attr

from pawfence.DB.base_class import Base


class Location(Base):
    """
    GPS sample reported by a collar. Rows are append-only history.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "locations"

    # SQLite only autoincrements INTEGER primary keys.
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    dog_id = Column(
        String(100),
        ForeignKey("dogs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    observed_at = Column(
        DateTime(timezone=True),
        nullable=False,
        doc="Timestamp reported by the collar (UTC)",
    )
    received_at = Column(
        DateTime(timezone=True),
        nullable=False,
        doc="Timestamp at which the sample was accepted (UTC)",
    )

    __table_args__ = (
        Index("idx_locations_dog_observed", dog_id, observed_at.desc()),
        # A collar re-sending the same ping must not create a second row;
        # a new position with the same collar timestamp is a distinct sample.
        Index("unique_dog_sample", dog_id, observed_at, latitude, longitude, unique=True),
        CheckConstraint("latitude >= -90 AND latitude <= 90", name="check_location_latitude"),
        CheckConstraint("longitude >= -180 AND longitude <= 180", name="check_location_longitude"),
    )

    def __repr__(self) -> str:
        return (
            f"<Location(id={self.id}, dog_id={self.dog_id!r}, "
            f"lat={self.latitude:.5f}, lng={self.longitude:.5f})>"
        )
