"""Async query functions, one module per table.

None of them commit. They flush so generated keys and defaults are
readable, and leave the transaction to the caller (``session.begin()``).
Activity entries can only be created and listed.
"""

from sitebook.database.queries.activity import create_activity_entry, list_project_activity
from sitebook.database.queries.loop import create_loop, create_loop_task, list_loops
from sitebook.database.queries.project import (
    create_project,
    delete_project,
    get_project,
    list_projects,
    update_project,
)

__all__ = [
    "create_activity_entry",
    "create_loop",
    "create_loop_task",
    "create_project",
    "delete_project",
    "get_project",
    "list_loops",
    "list_project_activity",
    "list_projects",
    "update_project",
]
