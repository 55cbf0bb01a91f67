"""
Cart-related exceptions.
"""

from .base import ExpressKartException


class CartException(ExpressKartException):
    """Base exception for cart-related errors."""
    pass


class EmptyCartException(CartException):
    """Raised when trying to checkout with empty cart."""

    def __init__(self, user_id: int):
        super().__init__(
            "Cart is empty",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class CartItemNotFoundException(CartException):
    """Raised when a product has no line in the user's cart."""

    def __init__(self, user_id: int, product_id: int):
        super().__init__(
            "Item not found in cart",
            details={'user_id': user_id, 'product_id': product_id}
        )
        self.user_id = user_id
        self.product_id = product_id
