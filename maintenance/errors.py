"""
Exceptions raised by the maintenance core.

Every error carries a stable ``code`` and the HTTP ``status_code`` the web
layer answers with. ``ConflictingAssignment`` is a warning, not an error:
the explicit team always wins.
"""


class MaintenanceError(Exception):
    """Base class for all maintenance core errors."""

    status_code = 500
    code = "MAINTENANCE_ERROR"
    default_message = "An unexpected maintenance error occurred."

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotFound(MaintenanceError):
    """Unknown request, equipment or team id."""

    status_code = 404
    code = "NOT_FOUND"
    default_message = "Record not found."


class InvalidStatus(MaintenanceError):
    """Target status is not one of the defined statuses."""

    status_code = 400
    code = "INVALID_STATUS"
    default_message = "Unknown status."


class InvalidTransition(MaintenanceError):
    """Attempted status change out of a terminal status."""

    status_code = 409
    code = "INVALID_TRANSITION"
    default_message = "Request is closed and cannot change status."


class InvalidSchedule(MaintenanceError):
    """Non-positive interval or unrecognized frequency unit."""

    status_code = 400
    code = "INVALID_SCHEDULE"
    default_message = "Invalid maintenance schedule."


class InvalidRequest(MaintenanceError):
    """Missing or malformed request field."""

    status_code = 400
    code = "INVALID_REQUEST"
    default_message = "Invalid maintenance request."


class VersionConflict(MaintenanceError):
    """The stored record changed since the caller last read it."""

    status_code = 409
    code = "VERSION_CONFLICT"
    default_message = "Request was modified by someone else."


class ConflictingAssignment(UserWarning):
    """Explicit team differs from the equipment's default team."""

    code = "CONFLICTING_ASSIGNMENT"
