"""
Review-related exceptions.
"""

from .base import ExpressKartException


class ReviewException(ExpressKartException):
    """Base exception for review-related errors."""
    pass


class ReviewNotFoundException(ReviewException):
    """Raised when a review id does not resolve."""

    def __init__(self, review_id: int):
        super().__init__(
            "Review not found",
            details={'review_id': review_id}
        )
        self.review_id = review_id


class DuplicateReviewException(ReviewException):
    """Raised when a user reviews the same product twice."""

    def __init__(self, user_id: int, product_id: int):
        super().__init__(
            "You have already reviewed this product",
            details={'user_id': user_id, 'product_id': product_id}
        )
        self.user_id = user_id
        self.product_id = product_id
