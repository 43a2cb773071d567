"""Custom exceptions for the reputation engine."""


class AppException(Exception):
    """Base exception for the reputation engine."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code.

        Args:
            message: Exception message
            status_code: HTTP status code
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize NotFoundError with 404 status code."""
        super().__init__(message, 404)


class GoneError(AppException):
    """Resource exists but is no longer available (e.g. inactive campaign)."""

    def __init__(self, message: str = "Resource is no longer available"):
        """Initialize GoneError with 410 status code."""
        super().__init__(message, 410)


class UnauthorizedError(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize UnauthorizedError with 401 status code."""
        super().__init__(message, 401)


class ForbiddenError(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize ForbiddenError with 403 status code."""
        super().__init__(message, 403)


class ValidationError(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation failed"):
        """Initialize ValidationError with 422 status code."""
        super().__init__(message, 422)


class ConflictError(AppException):
    """Resource conflict exception."""

    def __init__(self, message: str = "Resource conflict"):
        """Initialize ConflictError with 409 status code."""
        super().__init__(message, 409)


class ConfigurationError(AppException):
    """Missing or invalid configuration (e.g. no master key).

    Fatal: must never be caught and ignored.
    """

    def __init__(self, message: str = "Invalid configuration"):
        """Initialize ConfigurationError with 500 status code."""
        super().__init__(message, 500)


class IntegrityError(AppException):
    """Ciphertext failed authentication (tampered data or wrong key).

    Operators see the message in logs; clients only ever see a generic failure.
    """

    def __init__(self, message: str = "Ciphertext integrity check failed"):
        """Initialize IntegrityError with 500 status code."""
        super().__init__(message, 500)
