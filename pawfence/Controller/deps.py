#pawfence/Controller/deps.py

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from pawfence.Core.config import settings
from pawfence.DB.session import SessionLocal
from pawfence.Repositories.geofence_storage import SqlAlchemyGeofenceStorage
from pawfence.Services.geofence_core import GeofenceEvaluator, NotificationPolicy
from pawfence.Services.ingestion_pipeline import IngestionPipeline


def get_DB() -> Generator:
    DB = SessionLocal()
    try:
        yield DB
    finally:
        DB.close()


def policy_from_settings() -> NotificationPolicy:
    return NotificationPolicy(
        notify_on_exit=settings.NOTIFY_ON_EXIT,
        notify_on_entry=settings.NOTIFY_ON_ENTRY,
        exit_message=settings.EXIT_MESSAGE,
        entry_message=settings.ENTRY_MESSAGE,
    )


def get_pipeline(DB: Session = Depends(get_DB)) -> IngestionPipeline:
    """One pipeline per request, bound to the request's session."""
    return IngestionPipeline(
        storage=SqlAlchemyGeofenceStorage(DB),
        evaluator=GeofenceEvaluator(policy_from_settings()),
    )
