"""
errors.py – failure taxonomy shared by the REST client, the relay and both views.
"""


class SyncError(Exception):
    """Base class; `message` is what ends up on screen."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


class NotFound(SyncError):
    """Entity absent. Terminal on the display path, never retried."""


class ValidationError(SyncError):
    """Input rejected (client-side or by the API)."""


class TransientError(SyncError):
    """Network or server failure. The user re-triggers the action."""


class StaleEventError(SyncError):
    """Duplicate, late or unusable broadcast. Reconciled silently."""
