# pawfence/Repositories/boundary.py

from typing import Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from pawfence.Models.boundary import Boundary
from pawfence.Models.containment_state import ContainmentState


def get_boundaries_by_dog(db: Session, dog_id: str) -> List[Boundary]:
    return (
        db.query(Boundary)
        .filter(Boundary.dog_id == dog_id)
        .order_by(Boundary.id)
        .all()
    )


def get_boundary_by_id(db: Session, boundary_id: str) -> Optional[Boundary]:
    """Obtiene un límite por ID."""
    return db.query(Boundary).filter(Boundary.id == boundary_id).first()


def get_existing_boundary_ids(db: Session, boundary_ids: Iterable[str]) -> Set[str]:
    """Subset of `boundary_ids` that still has a row."""
    boundary_ids = list(boundary_ids)
    if not boundary_ids:
        return set()
    rows = db.query(Boundary.id).filter(Boundary.id.in_(boundary_ids)).all()
    return {row.id for row in rows}


def create_boundary(db: Session, boundary_data: dict) -> Boundary:
    """
    Crea un nuevo límite.

    Args:
        db: Session SQLAlchemy
        boundary_data: Dict con dog_id, boundary_geojson y opcionalmente id, name, user_id
    """
    new_boundary = Boundary(**{k: v for k, v in boundary_data.items() if v is not None})
    db.add(new_boundary)
    db.commit()
    db.refresh(new_boundary)
    return new_boundary


def update_boundary(db: Session, boundary_id: str, update_data: dict) -> Optional[Boundary]:
    """Actualiza un límite existente."""
    boundary = get_boundary_by_id(db, boundary_id)

    if not boundary:
        return None

    for key, value in update_data.items():
        if hasattr(boundary, key):
            setattr(boundary, key, value)

    db.commit()
    db.refresh(boundary)
    return boundary


def delete_boundary(db: Session, boundary_id: str) -> bool:
    """
    Elimina un límite junto con las filas de estado que lo referencian.

    El borrado explícito cubre SQLite, donde ON DELETE CASCADE solo se
    aplica con PRAGMA foreign_keys activado.
    """
    boundary = get_boundary_by_id(db, boundary_id)

    if not boundary:
        return False

    db.query(ContainmentState).filter(
        ContainmentState.boundary_id == boundary_id
    ).delete(synchronize_session=False)
    db.delete(boundary)
    db.commit()
    return True


def count_boundaries(db: Session) -> int:
    return db.query(Boundary).count()
