"""REST API: projects, phase transitions, activity and calculators."""

from __future__ import annotations

from sitebook.web.app import create_app

__all__ = ["create_app"]
