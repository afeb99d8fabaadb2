"""Router factories, one per resource family."""

from __future__ import annotations

from sitebook.web.routes.calculators import create_calculators_router
from sitebook.web.routes.health import create_health_router
from sitebook.web.routes.projects import create_projects_router

__all__ = [
    "create_calculators_router",
    "create_health_router",
    "create_projects_router",
]
