from __future__ import annotations


class JobTrackerError(Exception):
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(JobTrackerError):
    status_code = 400
    default_message = "Invalid request"


class ConflictError(JobTrackerError):
    status_code = 400
    default_message = "The request conflicts with the current state"


class NotFoundError(JobTrackerError):
    status_code = 404
    default_message = "Not found"


class AuthenticationError(JobTrackerError):
    status_code = 401
    default_message = "Invalid credentials"


class PermissionDenied(JobTrackerError):
    status_code = 403
    default_message = "You are not allowed to perform this action"


class TransactionFailed(JobTrackerError):
    status_code = 500
    default_message = "The operation could not be completed"
