"""
Product-related exceptions.
"""

from .base import ExpressKartException


class ProductException(ExpressKartException):
    """Base exception for product-related errors."""
    pass


class ProductNotFoundException(ProductException):
    """Raised when a product is missing or soft-deleted."""

    def __init__(self, product_id: int | None = None):
        super().__init__(
            f"Product not found with id of {product_id}" if product_id is not None else "Product not found",
            details={'product_id': product_id}
        )
        self.product_id = product_id
