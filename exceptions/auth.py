"""
Authentication and authorization exceptions.
"""

from .base import ExpressKartException


class AuthException(ExpressKartException):
    """Base exception for auth errors."""
    pass


class AuthenticationException(AuthException):
    """Raised when the bearer token is missing, malformed, expired or unknown."""

    def __init__(self, message: str = "Not authorized to access this route"):
        super().__init__(message)


class PermissionDeniedException(AuthException):
    """Raised when an authenticated principal lacks the role or ownership for an operation."""

    def __init__(self, message: str = "Not authorized to perform this action", details: dict | None = None):
        super().__init__(message, details)
