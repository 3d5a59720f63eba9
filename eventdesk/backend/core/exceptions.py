"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.
Each class carries a stable error code; exception_handlers.py maps the
class to an HTTP status.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        code: str = "SYS_INTERNAL_ERROR",
        details: dict | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when a resource cannot be found."""

    def __init__(self, message: str = "Resource not found", details: dict | None = None) -> None:
        super().__init__(message, code="RES_NOT_FOUND", details=details)


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        super().__init__(message, code="VAL_VALIDATION_ERROR", details=details)


class AuthenticationError(ApplicationError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")


class AuthorizationError(ApplicationError):
    """Raised when authorization fails."""

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message, code="AUTHZ_FORBIDDEN")


class ConflictError(ApplicationError):
    """Raised when there is a state conflict."""

    def __init__(self, message: str = "Resource conflict") -> None:
        super().__init__(message, code="RES_CONFLICT")


class ExternalServiceError(ApplicationError):
    """Raised when an external service call fails."""

    def __init__(self, message: str = "External service error", details: dict | None = None) -> None:
        super().__init__(message, code="SYS_EXTERNAL_SERVICE_ERROR", details=details)


class ConfigurationError(ApplicationError):
    """Raised when a feature is used but its provider is not configured."""

    def __init__(self, message: str = "Service not configured") -> None:
        super().__init__(message, code="SYS_NOT_CONFIGURED")


class RateLimitError(ApplicationError):
    """Raised when rate limit is exceeded."""

    def __init__(self, message: str = "Rate limit exceeded") -> None:
        super().__init__(message, code="RATE_LIMITED")


class DatabaseError(ApplicationError):
    """Raised when a database operation fails."""

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message, code="SYS_DATABASE_ERROR")
