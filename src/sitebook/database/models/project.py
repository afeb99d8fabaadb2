"""Project model for Sitebook.

A renovation or construction project tracked from intake to completion.
Only the fields the phase lifecycle reads and writes are columns; every
other attribute (date stamps, selections, build tier overrides) lives in
the ``intake_data`` JSON bag.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, Float, Text
from sqlalchemy.orm import Mapped, mapped_column

from sitebook.database.models.base import Base, JSONType, TimestampMixin
from sitebook.orchestrator.phase_registry import ProjectPhase


class Project(TimestampMixin, Base):
    """A construction project.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        name: Human-readable project name.
        phase: Current lifecycle phase.
        client_name: Client display name.
        client_email: Client email address.
        client_phone: Client phone number.
        address: Job site address.
        estimate_low: Low end of the estimate range.
        estimate_high: High end of the estimate range.
        contract_value: Signed contract value.
        spent: Amount spent to date.
        progress: Percent complete (0-100).
        build_tier: Selected build tier (good, better, best).
        estimate_line_items: Priced estimate line items.
        intake_data: Bag of non-column project data.
        dashboard: Dashboard state such as open blockers.
        deleted_at: Soft-delete timestamp.
    """

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    phase: Mapped[ProjectPhase] = mapped_column(
        Enum(ProjectPhase, name="project_phase"),
        default=ProjectPhase.intake,
        nullable=False,
        index=True,
    )
    client_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    estimate_low: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimate_high: Mapped[float | None] = mapped_column(Float, nullable=True)
    contract_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    spent: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    build_tier: Mapped[str | None] = mapped_column(Text, nullable=True)
    estimate_line_items: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSONType,
        nullable=True,
    )
    intake_data: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )
    dashboard: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
