"""Errors raised by name optimization runs."""


class PlanningError(Exception):
    """Raised when a run's configuration is invalid; no filesystem mutation has occurred."""
