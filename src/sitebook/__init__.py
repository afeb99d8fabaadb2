"""Sitebook - Renovation project lifecycle tracking and framing calculators.

This package provides the gated phase-transition workflow that moves a
construction project from intake to completion, the persistence layer
behind it, and the imperial-measurement framing calculators used on site.
"""

__version__ = "0.1.0"
