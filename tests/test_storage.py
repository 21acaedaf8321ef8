"""Tests for the SQLAlchemy implementation of the storage contract."""

import pytest
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pawfence.Core.errors import StorageFailure
from pawfence.DB.base import Base
from pawfence.Models.containment_state import ContainmentState
from pawfence.Models.location import Location
from pawfence.Models.notification import Notification
from pawfence.Repositories import boundary as boundary_repo
from pawfence.Repositories import dog as dog_repo
from pawfence.Repositories.geofence_storage import SqlAlchemyGeofenceStorage
from pawfence.Schemas.dog import DogCreate
from pawfence.Services.geofence_core import (
    BoundarySet,
    ContainmentStatus,
    Coordinate,
    EntityContainmentState,
    GeofenceEvaluator,
    LocationSample,
    NotificationEvent,
    TransitionKind,
)
from pawfence.Services.ingestion_pipeline import IngestionPipeline

from conftest import SQUARE_GEOJSON, at


@pytest.fixture
def seeded(db):
    dog_repo.create_dog(db, DogCreate(id="d1", name="Rex"))
    boundary_repo.create_boundary(db, {
        "id": "b1", "dog_id": "d1", "boundary_geojson": SQUARE_GEOJSON,
    })
    return db


def make_sample(lat, lng, seconds):
    return LocationSample(
        entity_id="d1",
        coordinate=Coordinate(lat, lng),
        observed_at=at(seconds),
        received_at=at(seconds + 1),
    )


class TestReads:
    def test_entity_exists(self, seeded):
        storage = SqlAlchemyGeofenceStorage(seeded)
        assert storage.entity_exists("d1")
        assert not storage.entity_exists("ghost")

    def test_load_boundaries_parses_geojson(self, seeded):
        (polygon,) = SqlAlchemyGeofenceStorage(seeded).load_boundaries("d1")

        assert polygon.boundary_id == "b1"
        assert polygon.owner_entity_id == "d1"
        assert polygon.rings[0][0] == Coordinate(39.9, -74.1)

    def test_unreadable_geojson_becomes_skipped_boundary(self, seeded):
        boundary_repo.create_boundary(seeded, {
            "id": "b0", "dog_id": "d1", "boundary_geojson": {"type": "Point", "coordinates": [0, 0]},
        })
        storage = SqlAlchemyGeofenceStorage(seeded)
        boundaries = BoundarySet.load(storage, "d1")

        result = GeofenceEvaluator().evaluate(make_sample(40.0, -74.0, 0), boundaries, {})

        assert result.skipped == ("b0",)
        assert result.inside == ("b1",)

    def test_unknown_dog_has_empty_results(self, seeded):
        storage = SqlAlchemyGeofenceStorage(seeded)
        assert storage.load_boundaries("ghost") == []
        assert storage.load_containment_state("ghost") == {}


class TestWrites:
    def test_location_round_trip(self, seeded):
        storage = SqlAlchemyGeofenceStorage(seeded)

        stored = storage.append_location(make_sample(40.0, -74.0, 0))
        storage.commit()

        assert stored.id is not None
        found = storage.find_location("d1", at(0), Coordinate(40.0, -74.0))
        assert found == stored
        assert storage.find_location("d1", at(5), Coordinate(40.0, -74.0)) is None
        assert storage.find_location("d1", at(0), Coordinate(41.0, -74.0)) is None

    def test_rollback_discards_staged_writes(self, seeded):
        storage = SqlAlchemyGeofenceStorage(seeded)

        storage.append_location(make_sample(40.0, -74.0, 0))
        storage.rollback()

        assert seeded.query(Location).count() == 0

    def test_containment_state_replace(self, seeded):
        boundary_repo.create_boundary(seeded, {
            "id": "b2", "dog_id": "d1", "boundary_geojson": SQUARE_GEOJSON,
        })
        storage = SqlAlchemyGeofenceStorage(seeded)
        storage.save_containment_state("d1", {
            "b1": EntityContainmentState("d1", "b1", ContainmentStatus.INSIDE, at(1)),
            "b2": EntityContainmentState("d1", "b2", ContainmentStatus.OUTSIDE, at(1)),
        })
        storage.commit()

        storage.save_containment_state("d1", {
            "b1": EntityContainmentState("d1", "b1", ContainmentStatus.OUTSIDE, at(2)),
        })
        storage.commit()

        state = storage.load_containment_state("d1")
        assert set(state) == {"b1"}
        assert state["b1"].last_status is ContainmentStatus.OUTSIDE
        assert state["b1"].last_evaluated_at == at(2)

    def test_notification_gets_an_id(self, seeded):
        storage = SqlAlchemyGeofenceStorage(seeded)
        event = storage.append_notification(NotificationEvent(
            entity_id="d1",
            boundary_id="b1",
            message="Your dog has left the designated boundary area.",
            triggered_at=at(3),
            kind=TransitionKind.EXIT,
        ))
        storage.commit()

        assert event.id is not None

    def test_deleting_boundary_removes_its_state_rows(self, seeded):
        storage = SqlAlchemyGeofenceStorage(seeded)
        storage.save_containment_state("d1", {
            "b1": EntityContainmentState("d1", "b1", ContainmentStatus.INSIDE, at(1)),
        })
        storage.commit()

        assert boundary_repo.delete_boundary(seeded, "b1")

        assert seeded.query(ContainmentState).count() == 0
        assert storage.load_containment_state("d1") == {}


class TestFailures:
    def test_database_error_becomes_storage_failure(self, seeded):
        seeded.execute(text("DROP TABLE locations"))
        seeded.commit()
        storage = SqlAlchemyGeofenceStorage(seeded)

        with pytest.raises(StorageFailure):
            storage.find_location("d1", at(0), Coordinate(40.0, -74.0))

    def test_duplicate_row_becomes_storage_failure(self, seeded):
        storage = SqlAlchemyGeofenceStorage(seeded)
        storage.append_location(make_sample(40.0, -74.0, 0))
        storage.commit()

        with pytest.raises(StorageFailure):
            storage.append_location(make_sample(40.0, -74.0, 0))


class TestPipelineOverDatabase:
    def test_exit_scenario(self, seeded):
        pipeline = IngestionPipeline(SqlAlchemyGeofenceStorage(seeded))

        pipeline.ingest({"dog_id": "d1", "lat": 40.0, "lng": -74.0, "timestamp": at(0).isoformat()})
        outcome = pipeline.ingest({"dog_id": "d1", "lat": 40.2, "lng": -74.0, "timestamp": at(10).isoformat()})

        (event,) = outcome.events
        assert event.boundary_id == "b1"
        state = SqlAlchemyGeofenceStorage(seeded).load_containment_state("d1")
        assert state["b1"].last_status is ContainmentStatus.OUTSIDE

    def test_resent_sample_is_deduplicated(self, seeded):
        pipeline = IngestionPipeline(SqlAlchemyGeofenceStorage(seeded))
        raw = {"dog_id": "d1", "lat": 40.0, "lng": -74.0, "timestamp": at(0).isoformat()}

        first = pipeline.ingest(raw)
        again = pipeline.ingest(raw)

        assert again.duplicate
        assert again.sample.id == first.sample.id
        assert seeded.query(Location).count() == 1

    def test_same_timestamp_new_position_is_stored_and_evaluated(self, seeded):
        pipeline = IngestionPipeline(SqlAlchemyGeofenceStorage(seeded))

        pipeline.ingest({"dog_id": "d1", "lat": 40.0, "lng": -74.0, "timestamp": at(0).isoformat()})
        outcome = pipeline.ingest({"dog_id": "d1", "lat": 41.0, "lng": -74.0, "timestamp": at(0).isoformat()})

        assert not outcome.duplicate
        assert outcome.sample.coordinate == Coordinate(41.0, -74.0)
        (event,) = outcome.events
        assert event.kind is TransitionKind.EXIT
        assert seeded.query(Location).count() == 2


@pytest.fixture
def fk_session_factory():
    """SQLite engine that enforces foreign keys, as PostgreSQL does."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def fk_seeded(fk_session_factory):
    session = fk_session_factory()
    dog_repo.create_dog(session, DogCreate(id="d1", name="Rex"))
    boundary_repo.create_boundary(session, {
        "id": "b1", "dog_id": "d1", "boundary_geojson": SQUARE_GEOJSON,
    })
    try:
        yield session
    finally:
        session.close()


def delete_from_other_session(session_factory, boundary_id):
    other = session_factory()
    try:
        assert boundary_repo.delete_boundary(other, boundary_id)
    finally:
        other.close()


class TestBoundaryDeletedAfterSnapshot:
    def test_state_and_notification_writes_tolerate_deletion(self, fk_seeded, fk_session_factory):
        storage = SqlAlchemyGeofenceStorage(fk_seeded)
        storage.save_containment_state("d1", {
            "b1": EntityContainmentState("d1", "b1", ContainmentStatus.INSIDE, at(1)),
        })
        storage.commit()

        boundaries = BoundarySet.load(storage, "d1")
        prior = storage.load_containment_state("d1")
        delete_from_other_session(fk_session_factory, "b1")

        result = GeofenceEvaluator().evaluate(make_sample(40.2, -74.0, 10), boundaries, prior)
        (event,) = result.events
        assert event.boundary_id == "b1"

        storage.save_containment_state("d1", result.state)
        stored_event = storage.append_notification(event)
        storage.commit()

        assert stored_event.boundary_id is None
        assert storage.load_containment_state("d1") == {}
        assert fk_seeded.query(ContainmentState).count() == 0
        (row,) = fk_seeded.query(Notification).all()
        assert row.boundary_id is None
        assert row.kind == "exit"

    def test_batch_with_cached_snapshot_keeps_going(self, fk_seeded, fk_session_factory):
        pipeline = IngestionPipeline(SqlAlchemyGeofenceStorage(fk_seeded))

        def samples():
            yield {"dog_id": "d1", "lat": 40.0, "lng": -74.0, "timestamp": at(0).isoformat()}
            delete_from_other_session(fk_session_factory, "b1")
            yield {"dog_id": "d1", "lat": 40.2, "lng": -74.0, "timestamp": at(10).isoformat()}

        results = pipeline.ingest_many(samples())

        assert [r.ok for r in results] == [True, True]
        assert fk_seeded.query(Location).count() == 2
        assert fk_seeded.query(ContainmentState).count() == 0
