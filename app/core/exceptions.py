"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class SlotConflictException(ConflictException):
    """Requested date and time are held by another active appointment."""

    def __init__(self, message: str = "The selected time slot is no longer available"):
        """Initialize with 409 status code."""
        super().__init__(message)


class InvalidTransitionException(ConflictException):
    """Status change not permitted from the appointment's current status."""

    def __init__(self, message: str = "Status transition not allowed"):
        """Initialize with 409 status code."""
        super().__init__(message)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class StoreException(AppException):
    """Record store call failed."""

    def __init__(self, message: str = "Record store unavailable"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)
