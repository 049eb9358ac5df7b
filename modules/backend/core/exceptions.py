"""
Custom Exceptions.

Application-specific exception classes. Every board failure surfaces to the
caller as one of these and is rendered into the failure envelope by the
exception handlers.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when an id does not resolve to an existing note."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class InvalidInputError(ApplicationError):
    """Raised when a value is rejected (colour, visibility, checklist, order)."""

    def __init__(self, message: str = "Invalid input", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="VAL_INVALID_INPUT")


class AuthenticationError(ApplicationError):
    """Raised when the actor cannot be identified."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")


class ForbiddenError(ApplicationError):
    """Raised when an authorization check fails."""

    def __init__(self, message: str = "Insufficient permissions", code: str = "AUTHZ_FORBIDDEN") -> None:
        super().__init__(message, code=code)


class ConflictError(ApplicationError):
    """Raised when concurrent writers collide on a unique key."""

    def __init__(self, message: str = "Resource conflict") -> None:
        super().__init__(message, code="RES_CONFLICT")


class DatabaseError(ApplicationError):
    """Raised when a database operation fails."""

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message, code="SYS_DATABASE_ERROR")
