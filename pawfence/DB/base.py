"""
pawfence/DB/base.py
==========================
SQLAlchemy Model Registry
==========================

Imports every model so that `Base.metadata` is complete before Alembic
autogenerates migrations or `create_all()` runs.

Any new model class MUST be imported here.
"""

from pawfence.DB.base_class import Base

# ============================================================
# MODEL IMPORTS - DO NOT REMOVE
# ============================================================
from pawfence.Models.dog import Dog
from pawfence.Models.location import Location
from pawfence.Models.boundary import Boundary
from pawfence.Models.containment_state import ContainmentState
from pawfence.Models.notification import Notification

__all__ = ["Base", "Dog", "Location", "Boundary", "ContainmentState", "Notification"]
