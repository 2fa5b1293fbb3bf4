"""
Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; the application-level handlers
in ``proptrack.main`` render them as ``{"success": false, "message", "error"}``
plus any error-specific ``details``.
"""
from typing import Any, Dict, Optional


class PropTrackError(Exception):
    """Base class for errors surfaced directly to API callers"""
    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error
        self.details: Dict[str, Any] = {}


class InvalidInputError(PropTrackError):
    """Missing or malformed input, rejected before any write"""
    status_code = 400


class SchedulingConflictError(InvalidInputError):
    """A viewing overlaps another active viewing for the same property"""

    def __init__(self, message: str, conflicts: int = 0):
        super().__init__(message, error="scheduling conflict")
        self.conflicts = conflicts
        self.details = {"conflicts": conflicts}


class AuthenticationError(PropTrackError):
    status_code = 401


class PermissionDeniedError(PropTrackError):
    status_code = 403


class NotFoundError(PropTrackError):
    status_code = 404

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource
