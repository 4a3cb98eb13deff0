"""Custom exceptions for the school API."""


class SchoolAPIException(Exception):
    """Base class for application exceptions with HTTP status code.

    Subclasses set ``status_code`` and ``error`` so the handlers in
    ``main.py`` can render them as ``{"error": ..., "message": ...}``.
    """
    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)


class NotFoundError(SchoolAPIException):
    """Raised when a requested row does not exist.

    Maps to HTTP 404 Not Found.
    """
    status_code = 404
    error = "not_found"

    def __init__(self, entity: str = "resource", entity_id: object = None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} {entity_id} not found"
        super().__init__(message)


class ConflictError(SchoolAPIException):
    """Raised on unique constraint violations such as a duplicate email.

    Maps to HTTP 409 Conflict.
    """
    status_code = 409
    error = "conflict"

    def __init__(self, detail: str = "Resource already exists"):
        self.detail = detail
        super().__init__(detail)


class AuthenticationError(SchoolAPIException):
    """Raised when the bearer token or login credentials are invalid.

    Maps to HTTP 401 Unauthorized.
    """
    status_code = 401
    error = "unauthorized"

    def __init__(self, detail: str = "Invalid or missing credentials"):
        self.detail = detail
        super().__init__(detail)


class PermissionDeniedError(SchoolAPIException):
    """Raised when an authenticated user lacks the required role.

    Maps to HTTP 403 Forbidden.
    """
    status_code = 403
    error = "forbidden"

    def __init__(self, detail: str = "You do not have access to this resource"):
        self.detail = detail
        super().__init__(detail)
