# pawfence/Controller/Routes/boundaries.py

"""
Boundary (Safe Zone) Management REST API

Endpoints:
- GET    /dogs/{dog_id}/boundaries       List a dog's boundaries
- POST   /dogs/{dog_id}/boundaries       Create a boundary
- DELETE /boundaries/{boundary_id}       Delete a boundary and its state rows

GeoJSON Format:
- {"type": "Polygon", "coordinates": [outer_ring, hole, ...]}
- Positions are [longitude, latitude] (NOT lat, lon)
- Rings may be open or closed; they are stored closed
- Self-intersecting rings are repaired with Shapely when possible

Containment is decided by the geofence engine on every ingested sample; a
new boundary starts with an unknown status for its dog, so the first sample
after creation only sets a baseline.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from pawfence.Controller.deps import get_DB
from pawfence.Core import log_ws
from pawfence.Core.errors import MalformedBoundary
from pawfence.Repositories import boundary as boundary_repo
from pawfence.Repositories import dog as dog_repo
from pawfence.Schemas import boundary as boundary_schema
from pawfence.Services.boundary_importer import sanitize_boundary_geometry

router = APIRouter()


@router.get("/dogs/{dog_id}/boundaries", response_model=boundary_schema.BoundaryListResponse)
def list_boundaries(dog_id: str, DB: Session = Depends(get_DB)):
    if not dog_repo.dog_exists(DB, dog_id):
        raise HTTPException(status_code=404, detail=f"Dog '{dog_id}' not found")

    boundaries = boundary_repo.get_boundaries_by_dog(DB, dog_id)
    return {
        "boundaries": boundaries,
        "total": len(boundaries),
    }


@router.post(
    "/dogs/{dog_id}/boundaries",
    response_model=boundary_schema.BoundaryGet,
    status_code=201,
)
def create_boundary(
    dog_id: str,
    boundary: boundary_schema.BoundaryCreate,
    DB: Session = Depends(get_DB),
):
    """
    Create a boundary for a dog.

    Example Request:
        POST /dogs/d1/boundaries
        {
            "name": "Backyard",
            "boundary_geojson": {
                "type": "Polygon",
                "coordinates": [[[-74.1, 39.9], [-74.1, 40.1], [-73.9, 40.1], [-73.9, 39.9]]]
            }
        }

    Raises:
        404: Dog not found
        409: Boundary id already exists
        422: Geometry is not a usable polygon
    """
    if not dog_repo.dog_exists(DB, dog_id):
        raise HTTPException(status_code=404, detail=f"Dog '{dog_id}' not found")

    if boundary.id and boundary_repo.get_boundary_by_id(DB, boundary.id):
        raise HTTPException(status_code=409, detail=f"Boundary '{boundary.id}' already exists")

    try:
        geometry = sanitize_boundary_geometry(boundary.id, dog_id, boundary.boundary_geojson)
    except MalformedBoundary as exc:
        raise HTTPException(status_code=422, detail=f"Invalid geometry: {exc.reason}")

    created = boundary_repo.create_boundary(DB, {
        "id": boundary.id,
        "dog_id": dog_id,
        "user_id": boundary.user_id,
        "name": boundary.name,
        "boundary_geojson": geometry,
    })

    log_ws.log_from_thread(f"[BOUNDARIES] Created boundary '{created.id}' for dog '{dog_id}'")
    return created


@router.delete("/boundaries/{boundary_id}")
def delete_boundary(boundary_id: str, DB: Session = Depends(get_DB)):
    """
    Delete a boundary (hard delete).

    Its containment rows are removed with it. Notifications that referenced
    it are kept.
    """
    success = boundary_repo.delete_boundary(DB, boundary_id)

    if not success:
        raise HTTPException(status_code=404, detail=f"Boundary '{boundary_id}' not found")

    log_ws.log_from_thread(f"[BOUNDARIES] Deleted boundary '{boundary_id}'")
    return {
        "id": boundary_id,
        "status": "deleted",
    }
