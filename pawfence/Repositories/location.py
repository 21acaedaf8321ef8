# pawfence/Repositories/location.py

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from pawfence.Models.location import Location


# ==========================================================
# Recent history of a dog (newest first)
# ==========================================================
def get_locations_by_dog(db: Session, dog_id: str, limit: int = 100) -> List[Location]:
    return (
        db.query(Location)
        .filter(Location.dog_id == dog_id)
        .order_by(Location.observed_at.desc(), Location.id.desc())
        .limit(limit)
        .all()
    )


def get_matching_location(
    db: Session, dog_id: str, observed_at: datetime, latitude: float, longitude: float
) -> Optional[Location]:
    """
    Row stored for the same collar timestamp and position, used to detect
    re-sent samples. A different position at the same timestamp is a new sample.
    """
    return (
        db.query(Location)
        .filter(
            Location.dog_id == dog_id,
            Location.observed_at == observed_at,
            Location.latitude == latitude,
            Location.longitude == longitude,
        )
        .first()
    )


def get_last_location_by_dog(db: Session, dog_id: str) -> Optional[Location]:
    """Most recently received sample (arrival order, not collar time)."""
    return (
        db.query(Location)
        .filter(Location.dog_id == dog_id)
        .order_by(Location.id.desc())
        .first()
    )


def count_locations_by_dog(db: Session, dog_id: str) -> int:
    return db.query(Location).filter(Location.dog_id == dog_id).count()
