# pawfence/Controller/Routes/dogs.py

"""
Dog Registry and Tracking REST API

Endpoints:
- GET    /dogs/                      List dogs (optionally of one owner)
- POST   /dogs/                      Register a dog
- GET    /dogs/{dog_id}              Dog details
- GET    /dogs/{dog_id}/locations    Recent locations, newest first
- GET    /dogs/{dog_id}/status       Containment state per boundary

Usage:
    # In main.py
    from pawfence.Controller.Routes import dogs
    app.include_router(dogs.router, prefix="/dogs", tags=["dogs"])
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pawfence.Controller.deps import get_DB
from pawfence.Core.config import settings
from pawfence.Repositories import containment_state as state_repo
from pawfence.Repositories import dog as dog_repo
from pawfence.Repositories import location as location_repo
from pawfence.Schemas import dog as dog_schema
from pawfence.Schemas import location as location_schema
from pawfence.Schemas import notification as notification_schema

router = APIRouter()


def _get_dog_or_404(DB: Session, dog_id: str):
    dog = dog_repo.get_dog_by_id(DB, dog_id)
    if dog is None:
        raise HTTPException(status_code=404, detail=f"Dog '{dog_id}' not found")
    return dog


@router.get("/", response_model=List[dog_schema.DogGet])
def list_dogs(
    user_id: Optional[str] = Query(None, description="Only dogs of this owner"),
    DB: Session = Depends(get_DB),
):
    return dog_repo.get_all_dogs(DB, user_id=user_id)


@router.post("/", response_model=dog_schema.DogGet, status_code=201)
def create_dog(dog: dog_schema.DogCreate, DB: Session = Depends(get_DB)):
    """
    Register a dog. The id is generated when omitted.

    Raises:
        409: A dog with this id or collar_id already exists
    """
    if dog.id and dog_repo.dog_exists(DB, dog.id):
        raise HTTPException(status_code=409, detail=f"Dog '{dog.id}' already exists")

    try:
        created = dog_repo.create_dog(DB, dog)
    except IntegrityError:
        DB.rollback()
        raise HTTPException(
            status_code=409,
            detail=f"Collar '{dog.collar_id}' is already assigned to another dog",
        )

    print(f"[DOGS] Registered dog '{created.id}' ({created.name})")
    return created


@router.get("/{dog_id}", response_model=dog_schema.DogGet)
def get_dog(dog_id: str, DB: Session = Depends(get_DB)):
    return _get_dog_or_404(DB, dog_id)


@router.get("/{dog_id}/locations", response_model=List[location_schema.LocationGet])
def get_dog_locations(
    dog_id: str,
    limit: Optional[int] = Query(None, ge=1, le=10000, description="Maximum number of records"),
    DB: Session = Depends(get_DB),
):
    """
    Location history of a dog ordered by collar timestamp, newest first.

    Example:
        GET /dogs/d1/locations?limit=20
    """
    _get_dog_or_404(DB, dog_id)
    return location_repo.get_locations_by_dog(
        DB, dog_id, limit=limit or settings.LOCATION_HISTORY_LIMIT
    )


@router.get("/{dog_id}/status", response_model=notification_schema.DogStatusResponse)
def get_dog_status(dog_id: str, DB: Session = Depends(get_DB)):
    """
    Last known status of the dog relative to each of its boundaries.

    Returns:
        {
            "dog_id": "d1",
            "safe": true,        // inside at least one boundary
            "boundaries": [
                {"boundary_id": "b1", "last_status": "inside", "last_evaluated_at": "..."}
            ]
        }

    `safe` is null until a sample has been evaluated against a boundary.
    """
    _get_dog_or_404(DB, dog_id)
    rows = state_repo.get_states_by_dog(DB, dog_id)

    known = [row for row in rows if row.last_status != "unknown"]
    safe = any(row.last_status == "inside" for row in known) if known else None

    return {
        "dog_id": dog_id,
        "safe": safe,
        "boundaries": rows,
    }
