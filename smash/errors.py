"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class PreconditionError(AppError):
    """Raised when a tournament is not in a state that allows the operation."""

    def __init__(self, message="Tournament is not ready for this operation."):
        """Initialize the error."""
        super().__init__(message, 409)


class ConcurrentUpdateError(AppError):
    """Raised when a versioned write loses against another writer."""

    def __init__(self, message="Tournament was modified by another client."):
        """Initialize the error."""
        super().__init__(message, 409)
