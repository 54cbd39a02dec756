"""Error taxonomy surfaced by the coordination engine."""
from __future__ import annotations


class CoordinationError(Exception):
    """Base class for failures reported back to the caller as a single error value."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(CoordinationError):
    """The request is missing a task, a user or any specialization."""

    status_code = 400


class AgentSelectionError(CoordinationError):
    """No active agent matches the requested specializations."""

    status_code = 404


class CoordinatorMissingError(CoordinationError):
    """Hierarchical coordination needs exactly one ``coordination`` agent."""

    status_code = 422


class UpstreamCompletionError(CoordinationError):
    """A completion call failed or returned something unusable."""

    status_code = 502


class PersistenceError(CoordinationError):
    """The registry or the session store could not be read or written."""

    status_code = 500
