# pawfence/Models/notification.py

import uuid

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text, func,
)
from sqlalchemy.orm import declared_attr

from pawfence.DB.base_class import Base


class Notification(Base):
    """
    Alert for the owner of a dog.

    Created by the evaluator on a qualifying transition (or manually through
    POST /notifications/send). Only `seen` changes afterwards.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    dog_id = Column(
        String(100),
        ForeignKey("dogs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    boundary_id = Column(
        String(100),
        ForeignKey("boundaries.id", ondelete="SET NULL"),
        nullable=True,
        doc="Boundary that was left; NULL when the alert concerns all boundaries",
    )

    message = Column(Text, nullable=False)
    kind = Column(String(10), nullable=True, doc="exit, entry or NULL for manual alerts")
    triggered_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    seen = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_notifications_dog_seen", dog_id, seen),
        CheckConstraint(
            "kind IS NULL OR kind IN ('entry', 'exit')",
            name="check_notification_kind",
        ),
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id!r}, dog_id={self.dog_id!r}, seen={self.seen})>"
