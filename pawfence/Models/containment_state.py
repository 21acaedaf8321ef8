# pawfence/Models/containment_state.py

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import declared_attr

from pawfence.DB.base_class import Base


class ContainmentState(Base):
    """
    Last known status of a dog relative to one of its boundaries.

    The composite primary key guarantees a single current status per
    (dog, boundary). Rows disappear with their boundary.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "containment_states"

    dog_id = Column(
        String(100),
        ForeignKey("dogs.id", ondelete="CASCADE"),
        primary_key=True,
    )
    boundary_id = Column(
        String(100),
        ForeignKey("boundaries.id", ondelete="CASCADE"),
        primary_key=True,
    )

    last_status = Column(String(10), nullable=False, default="unknown")
    last_evaluated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "last_status IN ('inside', 'outside', 'unknown')",
            name="check_containment_status",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<ContainmentState(dog_id={self.dog_id!r}, "
            f"boundary_id={self.boundary_id!r}, status={self.last_status!r})>"
        )
