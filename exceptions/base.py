"""
Base exception classes for ExpressKart.
"""


class ExpressKartException(Exception):
    """
    Base exception for all ExpressKart errors.

    All custom exceptions in the service layer should inherit from this class.
    This allows catching all domain exceptions with a single handler
    (see web/app.py, which maps them onto HTTP responses).

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (entity IDs, states, etc.)
    """

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation with context."""
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class ValidationException(ExpressKartException):
    """Raised when request data fails a business validation rule."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, details={'field': field} if field else None)
        self.field = field


class ConcurrentModificationException(ExpressKartException):
    """Raised when an optimistic-lock write keeps losing to concurrent writers."""

    def __init__(self, entity: str, entity_id: int | None = None):
        super().__init__(
            f"{entity} was modified concurrently, please retry",
            details={'entity': entity, 'entity_id': entity_id}
        )
        self.entity = entity
        self.entity_id = entity_id
