"""SQLAlchemy ORM models for Sitebook.

Defines projects, the append-only activity log, and the production scope
(loops and loop tasks) generated from estimates.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from sitebook.database.models.activity import ActivityEntry, ImmutableRecordError
from sitebook.database.models.base import Base, TimestampMixin
from sitebook.database.models.loop import Loop, LoopTask
from sitebook.database.models.project import Project

__all__ = [
    "ActivityEntry",
    "Base",
    "ImmutableRecordError",
    "Loop",
    "LoopTask",
    "Project",
    "TimestampMixin",
]
