"""
Custom exceptions for ExpressKart.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
ExpressKartException (base)
├── ValidationException
├── ConcurrentModificationException
├── AuthException
│   ├── AuthenticationException
│   └── PermissionDeniedException
├── CartException
│   ├── EmptyCartException
│   └── CartItemNotFoundException
├── OrderException
│   ├── OrderNotFoundException
│   ├── OrderAlreadyCancelledException
│   ├── InvalidOrderStateException
│   ├── InvalidOrderStatusException
│   ├── OrderOwnershipException
│   └── OrderNumberConflictException
├── ProductException
│   └── ProductNotFoundException
├── VendorException
│   ├── VendorNotFoundException
│   └── VendorProfileNotFoundException
├── UserException
│   ├── UserNotFoundException
│   ├── UserInactiveException
│   ├── EmailAlreadyRegisteredException
│   ├── AdminAlreadyExistsException
│   ├── WishlistItemExistsException
│   └── AddressNotFoundException
└── ReviewException
    ├── ReviewNotFoundException
    └── DuplicateReviewException

Usage:
------
Services raise specific exceptions:
    raise OrderNotFoundException(order_id=123)

The web layer translates them into HTTP responses (utils/error_handler.py):
    @app.exception_handler(ExpressKartException)
    async def handle(request, exc):
        status_code, message = map_exception(exc)
"""

from .base import ExpressKartException, ValidationException, ConcurrentModificationException
from .auth import AuthException, AuthenticationException, PermissionDeniedException
from .cart import CartException, EmptyCartException, CartItemNotFoundException
from .order import (
    OrderException,
    OrderNotFoundException,
    OrderAlreadyCancelledException,
    InvalidOrderStateException,
    InvalidOrderStatusException,
    OrderOwnershipException,
    OrderNumberConflictException
)
from .product import ProductException, ProductNotFoundException
from .vendor import VendorException, VendorNotFoundException, VendorProfileNotFoundException
from .user import (
    UserException,
    UserNotFoundException,
    UserInactiveException,
    EmailAlreadyRegisteredException,
    AdminAlreadyExistsException,
    WishlistItemExistsException,
    AddressNotFoundException
)
from .review import ReviewException, ReviewNotFoundException, DuplicateReviewException

__all__ = [
    # Base
    'ExpressKartException',
    'ValidationException',
    'ConcurrentModificationException',

    # Auth
    'AuthException',
    'AuthenticationException',
    'PermissionDeniedException',

    # Cart
    'CartException',
    'EmptyCartException',
    'CartItemNotFoundException',

    # Order
    'OrderException',
    'OrderNotFoundException',
    'OrderAlreadyCancelledException',
    'InvalidOrderStateException',
    'InvalidOrderStatusException',
    'OrderOwnershipException',
    'OrderNumberConflictException',

    # Product
    'ProductException',
    'ProductNotFoundException',

    # Vendor
    'VendorException',
    'VendorNotFoundException',
    'VendorProfileNotFoundException',

    # User
    'UserException',
    'UserNotFoundException',
    'UserInactiveException',
    'EmailAlreadyRegisteredException',
    'AdminAlreadyExistsException',
    'WishlistItemExistsException',
    'AddressNotFoundException',

    # Review
    'ReviewException',
    'ReviewNotFoundException',
    'DuplicateReviewException',
]
