"""Persistence for projects, the activity log and production scope.

Routes and CLI commands talk to the query functions directly; the
transition orchestrator only sees ProjectGateway.
"""

from sitebook.database.connection import get_engine, get_session_factory
from sitebook.database.gateway import GatewayResult, ProjectGateway, project_to_snapshot
from sitebook.database.models import (
    ActivityEntry,
    Base,
    ImmutableRecordError,
    Loop,
    LoopTask,
    Project,
)

__all__ = [
    "ActivityEntry",
    "Base",
    "GatewayResult",
    "ImmutableRecordError",
    "Loop",
    "LoopTask",
    "Project",
    "ProjectGateway",
    "get_engine",
    "get_session_factory",
    "project_to_snapshot",
]
