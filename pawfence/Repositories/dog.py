# pawfence/Repositories/dog.py

from typing import List, Optional

from sqlalchemy.orm import Session

from pawfence.Models.dog import Dog
from pawfence.Schemas.dog import DogCreate


def get_dog_by_id(db: Session, dog_id: str) -> Optional[Dog]:
    return db.query(Dog).filter(Dog.id == dog_id).first()


def get_all_dogs(db: Session, user_id: Optional[str] = None) -> List[Dog]:
    """
    Lista los perros registrados.

    Args:
        db: Session SQLAlchemy
        user_id: Si se indica, solo los perros de ese dueño
    """
    query = db.query(Dog)
    if user_id:
        query = query.filter(Dog.user_id == user_id)
    return query.order_by(Dog.created_at.desc(), Dog.id).all()


def dog_exists(db: Session, dog_id: str) -> bool:
    return db.query(Dog.id).filter(Dog.id == dog_id).first() is not None


def lock_dog(db: Session, dog_id: str) -> Optional[Dog]:
    """
    SELECT ... FOR UPDATE on the dog row.

    Serializes containment updates of the same dog across processes on
    PostgreSQL; SQLite ignores the clause.
    """
    return db.query(Dog).filter(Dog.id == dog_id).with_for_update().first()


def create_dog(db: Session, dog_data: DogCreate) -> Dog:
    new_dog = Dog(**dog_data.model_dump(exclude_none=True))
    db.add(new_dog)
    db.commit()
    db.refresh(new_dog)
    return new_dog
