import logging

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from enums.product_category import ProductCategory
from enums.vendor_status import VendorStatus
from models.vendor import VendorProfilePayload, VendorProfileUpdate
from services.product import ProductService
from services.vendor import VendorService
from utils.pagination import PageParams
from utils.permission_utils import Principal
from web.dependencies import get_admin_principal, get_current_principal, get_page, get_session
from web.responses import paginated, success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vendors", tags=["vendors"])


class VerifyBody(BaseModel):
    notes: str | None = Field(default=None, max_length=500)


class ApproveBody(BaseModel):
    approved: bool
    notes: str | None = Field(default=None, max_length=500)


class VendorStatusBody(BaseModel):
    status: VendorStatus
    reason: str | None = Field(default=None, max_length=500)


@router.get("")
async def list_vendors(status: VendorStatus | None = Query(default=VendorStatus.ACTIVE),
                       business_type: ProductCategory | None = Query(default=None, alias="businessType"),
                       min_rating: float | None = Query(default=None, alias="minRating"),
                       is_featured: bool | None = Query(default=None, alias="isFeatured"),
                       sort_by: str = Query(default="createdAt", alias="sortBy"),
                       sort_order: str = Query(default="desc", alias="sortOrder"),
                       params: PageParams = Depends(get_page),
                       session: AsyncSession = Depends(get_session)):
    vendors, total = await VendorService.list_vendors(
        params, session, status=status, business_type=business_type, min_rating=min_rating,
        is_featured=is_featured, sort_by=sort_by, sort_order=sort_order,
    )
    return paginated(vendors, total, params, "Vendors")


# === Own profile ===

@router.post("/profile")
async def create_profile(payload: VendorProfilePayload,
                         principal: Principal = Depends(get_current_principal),
                         session: AsyncSession = Depends(get_session)):
    vendor, created = await VendorService.create_profile(principal, payload, session)
    message = "Vendor profile created successfully" if created else "Vendor profile already exists"
    return success(await VendorService.with_products(vendor, session), message)


@router.get("/profile")
async def get_profile(principal: Principal = Depends(get_current_principal),
                      session: AsyncSession = Depends(get_session)):
    vendor = await VendorService.get_profile(principal, session)
    return success(await VendorService.with_products(vendor, session))


@router.put("/profile")
async def update_profile(payload: VendorProfileUpdate,
                         principal: Principal = Depends(get_current_principal),
                         session: AsyncSession = Depends(get_session)):
    vendor = await VendorService.update_profile(principal, payload, session)
    return success(await VendorService.with_products(vendor, session), "Vendor profile updated successfully")


@router.delete("/profile")
async def delete_profile(principal: Principal = Depends(get_current_principal),
                         session: AsyncSession = Depends(get_session)):
    await VendorService.delete_profile(principal, session)
    return success(None, "Vendor profile deleted successfully")


# === Public by id ===

@router.get("/{vendor_id}")
async def get_vendor(vendor_id: int, session: AsyncSession = Depends(get_session)):
    vendor = await VendorService.get(vendor_id, session)
    return success(await VendorService.with_products(vendor, session))


@router.get("/{vendor_id}/products")
async def get_vendor_products(vendor_id: int,
                              params: PageParams = Depends(get_page),
                              session: AsyncSession = Depends(get_session)):
    products, total = await ProductService.for_vendor(vendor_id, params, session)
    return paginated([p.to_response() for p in products], total, params, "Products")


# === Admin ===

@router.patch("/{vendor_id}/verify")
async def verify_vendor(vendor_id: int, body: VerifyBody = Body(default_factory=VerifyBody),
                        admin: Principal = Depends(get_admin_principal),
                        session: AsyncSession = Depends(get_session)):
    vendor = await VendorService.verify(vendor_id, admin, session, notes=body.notes)
    return success(vendor, "Vendor verified successfully")


@router.patch("/{vendor_id}/approve")
async def approve_vendor(vendor_id: int, body: ApproveBody,
                         admin: Principal = Depends(get_admin_principal),
                         session: AsyncSession = Depends(get_session)):
    vendor = await VendorService.approve(vendor_id, body.approved, admin, session, notes=body.notes)
    return success(vendor, "Vendor approved" if body.approved else "Vendor rejected")


@router.patch("/{vendor_id}/status")
async def set_vendor_status(vendor_id: int, body: VendorStatusBody,
                            admin: Principal = Depends(get_admin_principal),
                            session: AsyncSession = Depends(get_session)):
    vendor = await VendorService.set_status(vendor_id, body.status, admin, session, reason=body.reason)
    return success(vendor, f"Vendor status updated to {body.status.value}")
