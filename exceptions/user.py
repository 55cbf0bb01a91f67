"""
User-related exceptions.
"""

from .base import ExpressKartException


class UserException(ExpressKartException):
    """Base exception for user-related errors."""
    pass


class UserNotFoundException(UserException):
    """Raised when user is not found in database."""

    def __init__(self, user_id: int):
        super().__init__(
            "User not found",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class UserInactiveException(UserException):
    """Raised when a deactivated account tries to use the API."""

    def __init__(self, user_id: int):
        super().__init__(
            "User account is deactivated",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class EmailAlreadyRegisteredException(UserException):
    """Raised when creating a user with an email that is already taken."""

    def __init__(self, email: str):
        super().__init__(
            "User already exists with this email",
            details={'email': email}
        )
        self.email = email


class AdminAlreadyExistsException(UserException):
    """Raised when a second admin would be created."""

    def __init__(self):
        super().__init__("An admin user already exists")


class WishlistItemExistsException(UserException):
    """Raised when adding a product that is already wishlisted."""

    def __init__(self, product_id: int):
        super().__init__(
            "Product already in wishlist",
            details={'product_id': product_id}
        )
        self.product_id = product_id


class AddressNotFoundException(UserException):
    """Raised when an address book index is out of range."""

    def __init__(self, index: int):
        super().__init__(
            "Address not found",
            details={'index': index}
        )
        self.index = index
