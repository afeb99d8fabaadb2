"""Exception types shared across Sitebook.

Transition rejections live next to the state machine; this module holds
the errors that cross package boundaries.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any


class UnknownPhaseError(ValueError):
    """Raised when a phase value is not in the lifecycle enumeration."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Unknown project phase: {value!r}")


class TransitionBlockedError(Exception):
    """Raised when hard checks block a transition at confirmation time.

    Attributes:
        blockers: Blocker messages in gate order.
        warnings: Warning messages collected alongside the blockers.
    """

    def __init__(self, blockers: list[str], warnings: list[str] | None = None):
        self.blockers = list(blockers)
        self.warnings = list(warnings or [])
        super().__init__(", ".join(self.blockers))


class PersistenceError(Exception):
    """The single error type at the persistence boundary.

    Attributes:
        message: Human-readable description.
        details: Optional structured context from the storage layer.
    """

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(message)


def normalize_error(error: Any) -> str:
    """Convert an error of any shape into a display string.

    Priority: plain string, then a ``message``, then ``details``, then a
    JSON rendering of the whole value.

    Args:
        error: String, exception, mapping, or arbitrary object.

    Returns:
        A non-empty message string.
    """
    if error is None:
        return "Unknown error"
    if isinstance(error, str):
        return error or "Unknown error"

    if isinstance(error, Mapping):
        message = error.get("message")
        details = error.get("details")
    else:
        message = getattr(error, "message", None)
        details = getattr(error, "details", None)
        if message is None and isinstance(error, Exception) and error.args:
            message = str(error)

    if message:
        return str(message)
    if details:
        return details if isinstance(details, str) else json.dumps(details, default=str)
    try:
        return json.dumps(error, default=str)
    except (TypeError, ValueError):
        return repr(error)
