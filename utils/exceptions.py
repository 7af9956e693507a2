"""
Typed failures raised by the store, token and session layers.

api/errors.py maps each class onto the uniform error envelope. Input
validation failures use marshmallow's ValidationError directly.

`reason` is for server-side logs only; the client always receives the
class-level `message`.
"""


class ServiceError(Exception):
    status = 500
    error = "INTERNAL_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, reason: str | None = None):
        super().__init__(reason or self.message)
        self.reason = reason or self.message


class AuthenticationError(ServiceError):
    status = 401
    error = "UNAUTHORIZED"
    message = "Unauthorized"


class AuthorizationError(ServiceError):
    status = 403
    error = "FORBIDDEN"
    message = "Forbidden"


class NotFoundError(ServiceError):
    status = 404
    error = "NOT_FOUND"
    message = "Resource not found"


class ConflictError(ServiceError):
    status = 409
    error = "CONFLICT"
    message = "Conflict"


class InternalError(ServiceError):
    pass
