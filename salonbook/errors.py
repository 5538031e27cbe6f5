"""Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status it should be rendered with and a public
message. The blueprint error handler turns any ``SalonError`` into the
standard ``{"status": "error", "message": ...}`` envelope.
"""
from __future__ import annotations


class SalonError(Exception):
    status_code = 400
    message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> dict[str, object]:
        return {"status": "error", "message": self.message}


class MissingIdentity(SalonError):
    status_code = 401
    message = "Missing user ID or role"


class Unauthorized(SalonError):
    # The message never says which authorization check failed.
    status_code = 403
    message = "Unauthorized access"


class CsrfError(SalonError):
    status_code = 403
    message = "Invalid CSRF token"


class MissingParameter(SalonError):
    message = "Missing required parameter"


class MissingFilterParameter(MissingParameter):
    pass


class InvalidFilter(SalonError):
    message = "Invalid filter"


class NotFound(SalonError):
    status_code = 404
    message = "Appointment not found"


class FeedbackNotFound(NotFound):
    message = "Feedback not found"


class StaffNotFound(NotFound):
    message = "Invalid staff ID or user is not a staff member"


class AlreadyFinalized(SalonError):
    status_code = 409
    message = "Cannot modify a completed or cancelled appointment"


class InvalidTransition(SalonError):
    status_code = 409
    message = "Invalid status transition"


class Conflict(SalonError):
    status_code = 409
    message = "Conflicting request"


class AlreadyCheckedIn(Conflict):
    message = "Already checked in"


class NotCheckedIn(Conflict):
    message = "No open check-in to close"


class StoreError(SalonError):
    status_code = 500
    message = "Database error"
