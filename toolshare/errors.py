"""
Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; ``error_handlers`` turns them
into the standard JSON error body. Keyword arguments passed to the
constructor are added to that body as extra keys.
"""


class ServiceError(Exception):
    status_code = 400
    error = "Bad request"

    def __init__(self, detail: str, **extra):
        super().__init__(detail)
        self.detail = detail
        self.extra = extra


class BadRequestError(ServiceError):
    pass


class AuthenticationError(ServiceError):
    status_code = 401
    error = "Unauthorized"


class ForbiddenError(ServiceError):
    status_code = 403
    error = "Forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    error = "Not found"


class ConflictError(ServiceError):
    status_code = 409
    error = "Conflict"


class ServiceUnavailableError(ServiceError):
    status_code = 503
    error = "Service unavailable"
