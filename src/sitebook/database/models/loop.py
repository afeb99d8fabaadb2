"""Production scope models: trade loops and their tasks.

Loops are generated from the estimate when a contract is signed (or lazily
when production starts); one loop per trade, one task per line item.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Float, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitebook.database.models.base import Base, TimestampMixin


class Loop(TimestampMixin, Base):
    """A trade work group within a project."""

    __tablename__ = "loops"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    loop_type: Mapped[str] = mapped_column(Text, nullable=False, default="task_group")
    category_code: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending")
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    source: Mapped[str] = mapped_column(Text, nullable=False, default="estimate")
    budgeted_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    task_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    tasks: Mapped[list["LoopTask"]] = relationship(
        "LoopTask",
        back_populates="loop",
        lazy="selectin",
        order_by="LoopTask.display_order",
    )


class LoopTask(TimestampMixin, Base):
    """A production task derived from one estimate line item."""

    __tablename__ = "loop_tasks"

    loop_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("loops.id"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending")
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    category_code: Mapped[str] = mapped_column(Text, nullable=False)
    subcategory_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    source: Mapped[str] = mapped_column(Text, nullable=False, default="estimate")
    budgeted_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=1)
    estimate_line_item_id: Mapped[str | None] = mapped_column(Text, nullable=True)

    loop: Mapped[Loop] = relationship("Loop", back_populates="tasks")
