"""
Order-related exceptions.
"""

from .base import ExpressKartException


class OrderException(ExpressKartException):
    """Base exception for order-related errors."""
    pass


class OrderNotFoundException(OrderException):
    """Raised when order is not found in database."""

    def __init__(self, order_id: int):
        super().__init__(
            "Order not found",
            details={'order_id': order_id}
        )
        self.order_id = order_id


class OrderAlreadyCancelledException(OrderException):
    """Raised when trying to cancel an already cancelled order."""

    def __init__(self, order_id: int):
        super().__init__(
            "Order is already cancelled",
            details={'order_id': order_id}
        )
        self.order_id = order_id


class InvalidOrderStateException(OrderException):
    """Raised when order is in invalid state for requested operation."""

    def __init__(self, order_id: int, current_state: str, message: str | None = None):
        super().__init__(
            message or f"Cannot modify an order that is {current_state}",
            details={'order_id': order_id, 'current_state': current_state}
        )
        self.order_id = order_id
        self.current_state = current_state


class InvalidOrderStatusException(OrderException):
    """Raised when a status update names an unknown status."""

    def __init__(self, status: str):
        super().__init__(
            f"Invalid status: {status}",
            details={'status': status}
        )
        self.status = status


class OrderOwnershipException(OrderException):
    """Raised when user attempts to access/modify order they don't own."""

    def __init__(self, order_id: int, user_id: int, action: str = "access"):
        super().__init__(
            f"Not authorized to {action} this order",
            details={'order_id': order_id, 'user_id': user_id}
        )
        self.order_id = order_id
        self.user_id = user_id


class OrderNumberConflictException(OrderException):
    """Raised when no unique order number could be allocated within the retry budget."""

    def __init__(self, attempts: int):
        super().__init__(
            "Could not allocate a unique order number, please retry",
            details={'attempts': attempts}
        )
        self.attempts = attempts
