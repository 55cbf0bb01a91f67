"""
Admin console endpoints. Every route requires the admin role.
"""

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from enums.order_status import OrderStatus
from enums.product_category import ProductCategory
from enums.review_status import ReviewStatus
from enums.user_role import UserRole
from enums.vendor_status import VendorStatus
from models.order import TrackingPayload
from services.admin import AdminService
from services.order import OrderService
from services.product import ProductService
from services.review import ReviewService
from services.user import UserService
from services.vendor import VendorService
from utils.pagination import PageParams
from utils.permission_utils import Principal
from web.dependencies import get_admin_principal, get_page, get_session
from web.responses import paginated, success

router = APIRouter(prefix="/api/admin", tags=["admin"])


class _CamelBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserStatusBody(_CamelBody):
    is_active: bool


class UserRoleBody(_CamelBody):
    role: UserRole


class VendorVerifyBody(_CamelBody):
    notes: str | None = Field(default=None, max_length=500)


class VendorStatusBody(_CamelBody):
    status: VendorStatus
    reason: str | None = Field(default=None, max_length=500)


class VendorFeatureBody(_CamelBody):
    is_featured: bool


class ProductStatusBody(_CamelBody):
    is_active: bool | None = None
    is_featured: bool | None = None


class OrderStatusBody(_CamelBody):
    status: str
    notes: str | None = Field(default=None, max_length=500)
    tracking_info: TrackingPayload | None = None


class ReviewModerationBody(_CamelBody):
    status: ReviewStatus
    reason: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None


@router.get("/dashboard")
async def dashboard(admin: Principal = Depends(get_admin_principal),
                    session: AsyncSession = Depends(get_session)):
    return success(await AdminService.dashboard(admin, session))


# === Users ===

@router.get("/users")
async def list_users(role: UserRole | None = Query(default=None),
                     is_active: bool | None = Query(default=None, alias="isActive"),
                     search: str | None = Query(default=None),
                     params: PageParams = Depends(get_page),
                     admin: Principal = Depends(get_admin_principal),
                     session: AsyncSession = Depends(get_session)):
    users, total = await UserService.list_users(params, admin, session, role=role, is_active=is_active,
                                                search=search)
    return paginated(users, total, params, "Users")


@router.patch("/users/{user_id}/status")
async def set_user_status(user_id: int, body: UserStatusBody,
                          admin: Principal = Depends(get_admin_principal),
                          session: AsyncSession = Depends(get_session)):
    user = await UserService.set_active(user_id, body.is_active, admin, session)
    return success(user, f"User {'activated' if body.is_active else 'deactivated'} successfully")


@router.patch("/users/{user_id}/role")
async def set_user_role(user_id: int, body: UserRoleBody,
                        admin: Principal = Depends(get_admin_principal),
                        session: AsyncSession = Depends(get_session)):
    user = await UserService.change_role(user_id, body.role, admin, session)
    return success(user, "User role updated successfully")


# === Vendors ===

@router.get("/vendors")
async def list_vendors(status: VendorStatus | None = Query(default=None),
                       params: PageParams = Depends(get_page),
                       admin: Principal = Depends(get_admin_principal),
                       session: AsyncSession = Depends(get_session)):
    vendors, total = await AdminService.list_vendors(admin, params, session, status=status)
    return paginated(vendors, total, params, "Vendors")


@router.patch("/vendors/{vendor_id}/verify")
async def verify_vendor(vendor_id: int, body: VendorVerifyBody = Body(default_factory=VendorVerifyBody),
                        admin: Principal = Depends(get_admin_principal),
                        session: AsyncSession = Depends(get_session)):
    vendor = await VendorService.verify(vendor_id, admin, session, notes=body.notes)
    return success(vendor, "Vendor verified successfully")


@router.patch("/vendors/{vendor_id}/status")
async def set_vendor_status(vendor_id: int, body: VendorStatusBody,
                            admin: Principal = Depends(get_admin_principal),
                            session: AsyncSession = Depends(get_session)):
    vendor = await VendorService.set_status(vendor_id, body.status, admin, session, reason=body.reason)
    return success(vendor, f"Vendor status updated to {body.status.value}")


@router.patch("/vendors/{vendor_id}/featured")
async def set_vendor_featured(vendor_id: int, body: VendorFeatureBody,
                              admin: Principal = Depends(get_admin_principal),
                              session: AsyncSession = Depends(get_session)):
    vendor = await VendorService.set_featured(vendor_id, body.is_featured, admin, session)
    return success(vendor, "Vendor updated successfully")


@router.delete("/vendors/{vendor_id}")
async def delete_vendor(vendor_id: int,
                        admin: Principal = Depends(get_admin_principal),
                        session: AsyncSession = Depends(get_session)):
    await VendorService.delete(vendor_id, admin, session)
    return success(None, "Vendor deleted successfully")


# === Products ===

@router.get("/products")
async def list_products(category: ProductCategory | None = Query(default=None),
                        vendor: int | None = Query(default=None),
                        search: str | None = Query(default=None),
                        params: PageParams = Depends(get_page),
                        admin: Principal = Depends(get_admin_principal),
                        session: AsyncSession = Depends(get_session)):
    products, total = await AdminService.list_products(admin, params, session, category=category,
                                                       vendor_id=vendor, search=search)
    return paginated([p.to_response() for p in products], total, params, "Products")


@router.patch("/products/{product_id}/status")
async def set_product_status(product_id: int, body: ProductStatusBody,
                             admin: Principal = Depends(get_admin_principal),
                             session: AsyncSession = Depends(get_session)):
    product = await ProductService.set_product_status(product_id, admin, session,
                                                      is_active=body.is_active, is_featured=body.is_featured)
    return success(product.to_response(), "Product status updated successfully")


# === Orders ===

@router.get("/orders")
async def list_orders(status: OrderStatus | None = Query(default=None),
                      params: PageParams = Depends(get_page),
                      admin: Principal = Depends(get_admin_principal),
                      session: AsyncSession = Depends(get_session)):
    orders, total = await OrderService.get_all_orders(admin, params, session, status=status)
    return paginated(orders, total, params, "Orders")


@router.patch("/orders/{order_id}/status")
async def update_order_status(order_id: int, body: OrderStatusBody,
                              admin: Principal = Depends(get_admin_principal),
                              session: AsyncSession = Depends(get_session)):
    order = await OrderService.update_status(order_id, body.status, admin, session,
                                             notes=body.notes, tracking=body.tracking_info)
    return success(order, "Order status updated successfully")


# === Reviews ===

@router.get("/reviews")
async def list_reviews(status: ReviewStatus | None = Query(default=None),
                       params: PageParams = Depends(get_page),
                       admin: Principal = Depends(get_admin_principal),
                       session: AsyncSession = Depends(get_session)):
    reviews, total = await ReviewService.list_all(admin, params, session, status=status)
    return paginated(reviews, total, params, "Reviews")


@router.patch("/reviews/{review_id}/moderate")
async def moderate_review(review_id: int, body: ReviewModerationBody,
                          admin: Principal = Depends(get_admin_principal),
                          session: AsyncSession = Depends(get_session)):
    review = await ReviewService.moderate(review_id, admin, body.status, session,
                                          reason=body.reason, is_active=body.is_active)
    return success(review, "Review moderated successfully")
