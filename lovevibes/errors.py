"""Application error taxonomy.

Every error raised out of a service carries the HTTP status and a stable
machine-readable code. The app factory registers a single handler that
renders them as JSON, so routes never build error responses by hand.

Idempotent webhook replays are not errors; see WebhookResult.
"""


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    code = "INTERNAL_ERROR"
    retryable = False

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    default_message = "Something went wrong"

    def to_dict(self):
        return {"error": self.message, "code": self.code, "retryable": self.retryable}


class UnauthenticatedError(AppError):
    """Missing or invalid credential / signature."""

    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = "Unauthorized"


class InvalidInputError(AppError):
    """Missing required field, bad value, unknown package id."""

    status_code = 400
    code = "INVALID_INPUT"
    default_message = "Invalid request"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"

    def __init__(self, resource="Resource"):
        super().__init__(f"{resource} not found")


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflict"


class MisconfiguredError(AppError):
    """A required secret or setting is absent on this deployment."""

    status_code = 503
    code = "MISCONFIGURED"
    default_message = "Service is not configured"


class UpstreamError(AppError):
    """The database or an external API failed. Safe to retry."""

    status_code = 500
    code = "UPSTREAM_ERROR"
    retryable = True
    default_message = "Temporary failure, please retry"
