"""
pawfence/DB/base_class.py
=================================
SQLAlchemy Base Model Definition
=================================

Declarative base shared by every ORM model (SQLAlchemy 2.0 style).

Convention:
----------
Table names default to the lowercase class name. Models that need a plural
or snake_case name override `__tablename__` with `declared_attr.directive`.
"""

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models in the application.

    Every model inheriting from it is registered in `Base.metadata`, which
    Alembic and `create_all()` rely on.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()
