import logging

from sqlalchemy.ext.asyncio import AsyncSession

from db import session_commit
from enums.product_category import ProductCategory
from enums.user_role import UserRole
from exceptions.auth import PermissionDeniedException
from exceptions.base import ValidationException
from exceptions.product import ProductNotFoundException
from models.product import ProductDTO
from repositories.product import ProductRepository, ProductFilter
from repositories.vendor import VendorRepository
from services.vendor import VendorService
from utils.pagination import PageParams
from utils.payload_normalizer import normalize_product_payload, normalize_product_update, requested_vendor_id
from utils.permission_utils import Principal, can_modify_vendor_resource, require_admin, require_role

logger = logging.getLogger(__name__)

SUGGESTION_MIN_QUERY = 2
SUGGESTION_PRODUCT_LIMIT = 5
SUGGESTION_VENDOR_LIMIT = 3
FEATURED_LIMIT = 10


def _parse_vendor_id(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationException(f"Invalid vendor id: {value}", field="vendor")


class ProductService:

    @staticmethod
    async def list_products(product_filter: ProductFilter, params: PageParams,
                            session: AsyncSession) -> tuple[list[ProductDTO], int]:
        return await ProductRepository.get_filtered(product_filter, params, session)

    @staticmethod
    async def get(product_id: int, session: AsyncSession) -> ProductDTO:
        """
        Raises:
            ProductNotFoundException: if the product is absent or soft-deleted
        """
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundException(product_id)
        return product

    @staticmethod
    async def _get_owned(product_id: int, principal: Principal, session: AsyncSession) -> ProductDTO:
        product = await ProductRepository.get_by_id(product_id, session, include_inactive=True)
        if product is None:
            raise ProductNotFoundException(product_id)
        caller_vendor_id = await VendorService.get_caller_vendor_id(principal, session)
        if not can_modify_vendor_resource(principal, product.vendor_id, caller_vendor_id):
            raise PermissionDeniedException(
                "Not authorized to modify this product",
                details={'product_id': product_id, 'user_id': principal.user_id}
            )
        return product

    @staticmethod
    async def create(principal: Principal, raw: dict, session: AsyncSession) -> ProductDTO:
        """
        Create a product for the caller's vendor profile.

        Admins may name the vendor in the payload; vendors always create for
        their own profile.

        Raises:
            PermissionDeniedException: if the caller is neither vendor nor admin
            VendorProfileNotFoundException: if the caller has no vendor profile
            ValidationException: if the payload is invalid
        """
        require_role(principal, UserRole.VENDOR, UserRole.ADMIN)
        payload = normalize_product_payload(raw)

        target_vendor = requested_vendor_id(raw)
        if principal.is_admin and target_vendor is not None:
            vendor = await VendorService.get(_parse_vendor_id(target_vendor), session)
        else:
            vendor = await VendorService.require_vendor_profile(principal, session)

        product = await ProductRepository.create(
            ProductDTO(vendor_id=vendor.id, **payload.model_dump()), session
        )
        await session_commit(session)
        logger.info(f"[Product] Created product {product.id} '{product.title}' for vendor {vendor.id}")
        return product

    @staticmethod
    async def update(product_id: int, principal: Principal, raw: dict, session: AsyncSession) -> ProductDTO:
        """
        Partial update by the owning vendor or an admin. The vendor of a
        product never changes; prices are checked against the stored values
        when only one side is sent.
        """
        product = await ProductService._get_owned(product_id, principal, session)

        target_vendor = requested_vendor_id(raw)
        if target_vendor is not None and _parse_vendor_id(target_vendor) != product.vendor_id:
            raise ValidationException("Product vendor cannot be changed", field="vendor")

        fields = normalize_product_update(raw).model_dump(exclude_none=True)
        mrp = fields.get("mrp", product.mrp)
        selling_price = fields.get("selling_price", product.selling_price)
        if selling_price > mrp:
            raise ValidationException("Selling price cannot exceed MRP", field="selling_price")
        if "title" in fields and fields["title"] != product.title:
            # Regenerated from the new title on flush
            fields["slug"] = None

        if not fields:
            return product
        updated = await ProductRepository.update_fields(product_id, fields, session)
        await session_commit(session)
        logger.info(f"[Product] Product {product_id} updated fields: {', '.join(sorted(fields))}")
        return updated

    @staticmethod
    async def delete(product_id: int, principal: Principal, session: AsyncSession) -> None:
        """Soft delete: the row stays for orders and reviews referencing it."""
        await ProductService._get_owned(product_id, principal, session)
        await ProductRepository.update_fields(product_id, {"is_active": False}, session)
        await session_commit(session)
        logger.info(f"[Product] Product {product_id} deactivated by user {principal.user_id}")

    @staticmethod
    async def search_suggestions(query: str, session: AsyncSession) -> dict:
        query = (query or "").strip()
        if len(query) < SUGGESTION_MIN_QUERY:
            raise ValidationException(
                f"Search query must be at least {SUGGESTION_MIN_QUERY} characters", field="q"
            )
        titles = await ProductRepository.title_suggestions(query, SUGGESTION_PRODUCT_LIMIT, session)
        vendors = await VendorRepository.get_active_names_matching(query, SUGGESTION_VENDOR_LIMIT, session)
        return {
            "products": titles,
            "categories": [c.value for c in ProductCategory.matching(query)],
            "vendors": [{"id": v.id, "business_name": v.business_name} for v in vendors],
        }

    @staticmethod
    async def featured(session: AsyncSession, limit: int = FEATURED_LIMIT) -> list[ProductDTO]:
        products, _ = await ProductRepository.get_filtered(
            ProductFilter(is_featured=True), PageParams(page=1, limit=limit), session
        )
        return products

    @staticmethod
    async def by_category(category: ProductCategory, params: PageParams,
                          session: AsyncSession) -> tuple[list[ProductDTO], int]:
        return await ProductRepository.get_filtered(ProductFilter(category=category), params, session)

    @staticmethod
    async def for_vendor(vendor_id: int, params: PageParams, session: AsyncSession) -> tuple[list[ProductDTO], int]:
        await VendorService.get(vendor_id, session)
        return await ProductRepository.get_filtered(ProductFilter(vendor_id=vendor_id), params, session)

    @staticmethod
    async def for_current_vendor(principal: Principal, params: PageParams,
                                 session: AsyncSession) -> tuple[list[ProductDTO], int]:
        """The caller's own catalog, inactive products included."""
        vendor = await VendorService.require_vendor_profile(principal, session)
        return await ProductRepository.get_filtered(
            ProductFilter(vendor_id=vendor.id, include_inactive=True), params, session
        )

    @staticmethod
    async def set_product_status(product_id: int, admin: Principal, session: AsyncSession,
                                 is_active: bool | None = None, is_featured: bool | None = None) -> ProductDTO:
        require_admin(admin)
        product = await ProductRepository.get_by_id(product_id, session, include_inactive=True)
        if product is None:
            raise ProductNotFoundException(product_id)
        fields = {}
        if is_active is not None:
            fields["is_active"] = is_active
        if is_featured is not None:
            fields["is_featured"] = is_featured
        if not fields:
            return product
        updated = await ProductRepository.update_fields(product_id, fields, session)
        await session_commit(session)
        logger.info(f"[Product] Product {product_id} status {fields} set by admin {admin.user_id}")
        return updated
