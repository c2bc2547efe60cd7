"""
Dashboard module - Terminal UI for the signal session.

Panels are separate Rich components; Dashboard wires them to the
session's event bus.
"""

from dashboard.display import Dashboard

__all__ = ["Dashboard"]
