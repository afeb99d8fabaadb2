"""Append-only project activity log.

Every committed phase change leaves one ActivityEntry. Entries are never
updated or deleted: ORM listeners reject both before any SQL is emitted,
and the query layer exposes no update or delete functions.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Text, Uuid, event, func
from sqlalchemy.orm import Mapped, mapped_column

from sitebook.database.models.base import Base, JSONType, utcnow
from sitebook.logging import get_logger

logger = get_logger(__name__)


class ImmutableRecordError(Exception):
    """Raised when code attempts to modify or delete an append-only record."""

    def __init__(self, entity_type: str, entity_id: Any, operation: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.operation = operation
        super().__init__(f"{entity_type} {entity_id} is immutable; {operation} rejected")


class ActivityEntry(Base):
    """One audit record in a project's activity log.

    Attributes:
        id: UUID primary key.
        project_id: Project the event belongs to.
        event_type: Dotted event name, e.g. "phase.changed".
        event_data: Event payload.
        actor_name: Who caused the event.
        created_at: When the entry was appended.
    """

    __tablename__ = "activity_log"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    event_type: Mapped[str] = mapped_column(Text, nullable=False)
    event_data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    actor_name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )


# Serves the newest-first listing per project
Index(
    "ix_activity_log_project_created",
    ActivityEntry.project_id,
    ActivityEntry.created_at.desc(),
)


@event.listens_for(ActivityEntry, "before_update")
def _reject_activity_update(mapper, connection, target: ActivityEntry) -> None:
    logger.error("immutable_record_update_blocked", entity_type="ActivityEntry", entity_id=str(target.id))
    raise ImmutableRecordError("ActivityEntry", target.id, "update")


@event.listens_for(ActivityEntry, "before_delete")
def _reject_activity_delete(mapper, connection, target: ActivityEntry) -> None:
    logger.error("immutable_record_delete_blocked", entity_type="ActivityEntry", entity_id=str(target.id))
    raise ImmutableRecordError("ActivityEntry", target.id, "delete")
