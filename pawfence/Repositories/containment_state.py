# pawfence/Repositories/containment_state.py

from typing import List

from sqlalchemy.orm import Session

from pawfence.Models.containment_state import ContainmentState


def get_states_by_dog(db: Session, dog_id: str) -> List[ContainmentState]:
    return (
        db.query(ContainmentState)
        .filter(ContainmentState.dog_id == dog_id)
        .order_by(ContainmentState.boundary_id)
        .all()
    )


def replace_states_for_dog(db: Session, dog_id: str, rows: List[ContainmentState]) -> None:
    """
    Make `rows` the complete set of state rows of `dog_id`.

    Rows for boundaries absent from `rows` are deleted; the others are
    inserted or updated. Does not commit.
    """
    keep = [row.boundary_id for row in rows]

    stale = db.query(ContainmentState).filter(ContainmentState.dog_id == dog_id)
    if keep:
        stale = stale.filter(ContainmentState.boundary_id.notin_(keep))
    stale.delete(synchronize_session=False)

    for row in rows:
        db.merge(row)
