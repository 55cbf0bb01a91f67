"""
Unit Tests: permission predicates
"""

import pytest

from enums.user_role import UserRole
from exceptions.auth import PermissionDeniedException
from utils.permission_utils import (
    Principal,
    can_cancel_order,
    can_modify_review,
    can_modify_vendor_resource,
    can_update_order_status,
    can_view_order,
    require_admin,
    require_role,
)

CUSTOMER = Principal(user_id=1, role=UserRole.USER)
VENDOR = Principal(user_id=2, role=UserRole.VENDOR)
ADMIN = Principal(user_id=3, role=UserRole.ADMIN)


class TestRoles:

    def test_require_role(self):
        require_role(VENDOR, UserRole.VENDOR, UserRole.ADMIN)
        with pytest.raises(PermissionDeniedException) as exc_info:
            require_role(CUSTOMER, UserRole.VENDOR, UserRole.ADMIN)
        assert exc_info.value.message == "User role user is not authorized to access this route"

    def test_require_admin(self):
        require_admin(ADMIN)
        with pytest.raises(PermissionDeniedException):
            require_admin(VENDOR)


class TestOrderPermissions:

    def test_view(self):
        assert can_view_order(CUSTOMER, order_user_id=1, order_vendor_id=10)
        assert can_view_order(ADMIN, order_user_id=1, order_vendor_id=10)
        assert can_view_order(VENDOR, order_user_id=1, order_vendor_id=10, caller_vendor_id=10)
        assert not can_view_order(VENDOR, order_user_id=1, order_vendor_id=10, caller_vendor_id=11)
        assert not can_view_order(VENDOR, order_user_id=1, order_vendor_id=10)

    def test_update_status(self):
        assert can_update_order_status(ADMIN, order_vendor_id=10)
        assert can_update_order_status(VENDOR, order_vendor_id=10, caller_vendor_id=10)
        assert not can_update_order_status(VENDOR, order_vendor_id=10, caller_vendor_id=11)
        assert not can_update_order_status(CUSTOMER, order_vendor_id=10)

    def test_cancel(self):
        assert can_cancel_order(CUSTOMER, order_user_id=1)
        assert can_cancel_order(ADMIN, order_user_id=1)
        assert not can_cancel_order(VENDOR, order_user_id=1)


class TestResourcePermissions:

    def test_vendor_resource(self):
        assert can_modify_vendor_resource(VENDOR, resource_vendor_id=10, caller_vendor_id=10)
        assert can_modify_vendor_resource(ADMIN, resource_vendor_id=10)
        assert not can_modify_vendor_resource(VENDOR, resource_vendor_id=10, caller_vendor_id=None)

    def test_review(self):
        assert can_modify_review(CUSTOMER, review_user_id=1)
        assert can_modify_review(ADMIN, review_user_id=1)
        assert not can_modify_review(VENDOR, review_user_id=1)
