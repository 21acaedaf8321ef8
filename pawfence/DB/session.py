"""
pawfence/DB/session.py
======================================
Database Session Configuration Module
======================================

Creates the SQLAlchemy engine and the session factory used by the HTTP
dependencies, the startup importer and Alembic.

Usage Example:
-------------
    from pawfence.DB.session import SessionLocal

    with SessionLocal() as db:
        dogs = db.query(Dog).all()

Session Configuration:
---------------------
- autocommit=False: transactions are committed explicitly by the storage layer
- autoflush=False: nothing is flushed implicitly before queries
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pawfence.Core.config import settings


def _engine_options(url: str) -> dict:
    # FastAPI runs sync routes in a thread pool; SQLite connections must be
    # usable from threads other than the one that created them.
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


# ============================================================
# DATABASE ENGINE CONFIGURATION
# ============================================================
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))


# ============================================================
# SESSION FACTORY CONFIGURATION
# ============================================================
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)
