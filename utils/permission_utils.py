"""
Centralized permission utilities for request authorization.

The HTTP layer resolves the bearer token into a Principal once per request
(web/dependencies.py). Services receive that Principal and gate each
operation with the pure predicates below, so ownership rules live in one
place instead of being repeated in every route.
"""

from dataclasses import dataclass

from enums.user_role import UserRole
from exceptions.auth import PermissionDeniedException


@dataclass(frozen=True)
class Principal:
    """Authenticated caller of a request."""
    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_vendor(self) -> bool:
        return self.role == UserRole.VENDOR


def is_admin(principal: Principal) -> bool:
    return principal.role == UserRole.ADMIN


def has_role(principal: Principal, *roles: UserRole) -> bool:
    """
    Check if the principal holds one of the given roles.

    Example:
        >>> has_role(Principal(1, UserRole.VENDOR), UserRole.VENDOR, UserRole.ADMIN)
        True
    """
    return principal.role in roles


def require_role(principal: Principal, *roles: UserRole) -> None:
    """
    Raises:
        PermissionDeniedException: if the principal holds none of the roles
    """
    if not has_role(principal, *roles):
        allowed = ", ".join(r.value for r in roles)
        raise PermissionDeniedException(
            f"User role {principal.role.value} is not authorized to access this route",
            details={'user_id': principal.user_id, 'allowed_roles': allowed}
        )


def require_admin(principal: Principal) -> None:
    require_role(principal, UserRole.ADMIN)


def is_order_owner(principal: Principal, order_user_id: int) -> bool:
    return principal.user_id == order_user_id


def is_owning_vendor(caller_vendor_id: int | None, order_vendor_id: int | None) -> bool:
    """
    True when the caller's vendor profile is the vendor the record belongs to.

    caller_vendor_id is None for callers without a vendor profile.
    """
    return caller_vendor_id is not None and caller_vendor_id == order_vendor_id


def can_view_order(principal: Principal, order_user_id: int, order_vendor_id: int,
                   caller_vendor_id: int | None = None) -> bool:
    """Owner, admin or the vendor the order is attributed to."""
    return (is_order_owner(principal, order_user_id)
            or is_admin(principal)
            or is_owning_vendor(caller_vendor_id, order_vendor_id))


def can_update_order_status(principal: Principal, order_vendor_id: int,
                            caller_vendor_id: int | None = None) -> bool:
    """Admin, or a vendor whose profile owns the order."""
    return is_admin(principal) or is_owning_vendor(caller_vendor_id, order_vendor_id)


def can_cancel_order(principal: Principal, order_user_id: int) -> bool:
    return is_order_owner(principal, order_user_id) or is_admin(principal)


def can_modify_vendor_resource(principal: Principal, resource_vendor_id: int,
                               caller_vendor_id: int | None = None) -> bool:
    """Products and other vendor-owned records: owning vendor or admin."""
    return is_admin(principal) or is_owning_vendor(caller_vendor_id, resource_vendor_id)


def can_modify_review(principal: Principal, review_user_id: int) -> bool:
    return principal.user_id == review_user_id or is_admin(principal)
