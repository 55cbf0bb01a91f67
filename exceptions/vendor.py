"""
Vendor-related exceptions.
"""

from .base import ExpressKartException


class VendorException(ExpressKartException):
    """Base exception for vendor-related errors."""
    pass


class VendorNotFoundException(VendorException):
    """Raised when a vendor id does not resolve."""

    def __init__(self, vendor_id: int):
        super().__init__(
            "Vendor not found",
            details={'vendor_id': vendor_id}
        )
        self.vendor_id = vendor_id


class VendorProfileNotFoundException(VendorException):
    """Raised when the calling user has no vendor profile."""

    def __init__(self, user_id: int):
        super().__init__(
            "Vendor profile not found",
            details={'user_id': user_id}
        )
        self.user_id = user_id
