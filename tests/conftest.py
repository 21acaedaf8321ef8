"""Shared fixtures: SQLite engine, sessions, test client and sample geometry."""

import os

# Settings are validated at import time.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pawfence.Controller.deps import get_DB
from pawfence.DB.base import Base
from pawfence.main import app
from pawfence.Repositories.memory_storage import InMemoryStore
from pawfence.Services.geofence_core import BoundaryPolygon


# The square used across the suite, as (lat, lng) vertices.
SQUARE_LATLNG = [(39.9, -74.1), (40.1, -74.1), (40.1, -73.9), (39.9, -73.9)]

SQUARE_GEOJSON = {
    "type": "Polygon",
    "coordinates": [[[lng, lat] for lat, lng in SQUARE_LATLNG]],
}

T0 = datetime(2025, 10, 11, 12, 0, 0, tzinfo=timezone.utc)


def at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


def square_polygon(boundary_id="b1", owner="d1") -> BoundaryPolygon:
    return BoundaryPolygon.from_geojson(boundary_id, owner, SQUARE_GEOJSON)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_DB():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_DB] = override_get_DB
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def store():
    """In-memory store with dog d1 and the square boundary b1."""
    store = InMemoryStore()
    store.add_dog("d1", name="Rex")
    store.add_boundary(square_polygon())
    return store
