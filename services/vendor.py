import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import session_commit, session_rollback
from enums.product_category import ProductCategory
from enums.user_role import UserRole
from enums.vendor_status import VendorStatus
from exceptions.base import ConcurrentModificationException
from exceptions.vendor import VendorNotFoundException, VendorProfileNotFoundException
from models.base import utcnow
from models.vendor import VendorDTO, VendorProfilePayload, VendorProfileUpdate
from repositories.product import ProductRepository
from repositories.vendor import VendorRepository
from services.user import UserService
from utils.pagination import PageParams
from utils.permission_utils import Principal, require_admin, require_role
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


def _vendor_conflict(error: Exception, attempts: int) -> Exception:
    return ConcurrentModificationException("Vendor")


class VendorService:

    @staticmethod
    async def with_products(vendor: VendorDTO, session: AsyncSession) -> dict:
        """Vendor as a response dict with its derived product id list."""
        data = vendor.model_dump(mode="json")
        data["products"] = await ProductRepository.get_ids_by_vendor(vendor.id, session)
        return data

    @staticmethod
    async def get(vendor_id: int, session: AsyncSession) -> VendorDTO:
        vendor = await VendorRepository.get_by_id(vendor_id, session)
        if vendor is None:
            raise VendorNotFoundException(vendor_id)
        return vendor

    @staticmethod
    async def get_caller_vendor_id(principal: Principal, session: AsyncSession) -> int | None:
        """Vendor profile id of the caller, or None when they have no profile."""
        vendor = await VendorRepository.get_by_user_id(principal.user_id, session)
        return vendor.id if vendor is not None else None

    @staticmethod
    async def list_vendors(params: PageParams, session: AsyncSession,
                           status: VendorStatus | None = VendorStatus.ACTIVE,
                           business_type: ProductCategory | None = None,
                           min_rating: float | None = None,
                           is_featured: bool | None = None,
                           sort_by: str = "createdAt",
                           sort_order: str = "desc") -> tuple[list[VendorDTO], int]:
        return await VendorRepository.get_filtered(
            params, session, status=status, business_type=business_type,
            min_rating=min_rating, is_featured=is_featured, sort_by=sort_by, sort_order=sort_order,
        )

    # === Own profile ===

    @staticmethod
    async def get_profile(principal: Principal, session: AsyncSession) -> VendorDTO:
        vendor = await VendorRepository.get_by_user_id(principal.user_id, session)
        if vendor is None:
            raise VendorProfileNotFoundException(principal.user_id)
        return vendor

    @staticmethod
    async def create_profile(principal: Principal, payload: VendorProfilePayload,
                             session: AsyncSession) -> tuple[VendorDTO, bool]:
        """
        Create the caller's vendor profile and promote them to the vendor role.

        A user has at most one profile; when one exists it is returned as is.
        A previously deleted profile is revived with the new details and goes
        back through verification.

        Returns:
            (vendor, created)
        """
        existing = await VendorRepository.get_by_user_id(principal.user_id, session, include_deleted=True)
        if existing is not None and existing.deleted_at is None:
            return existing, False

        fields = payload.model_dump()
        fields["business_address"]["country"] = fields["business_address"].get("country") or config.DEFAULT_COUNTRY
        try:
            if existing is not None:
                fields.update(status=VendorStatus.PENDING, is_verified=False, verified_by=None,
                              verified_at=None, verification_notes=None, deleted_at=None)
                await VendorRepository.update_fields(existing.id, fields, session)
                vendor_id = existing.id
            else:
                vendor_dto = VendorDTO(user_id=principal.user_id, status=VendorStatus.PENDING, **fields)
                vendor_id = await VendorRepository.create(vendor_dto, session)
            await UserService.promote_to_vendor(principal.user_id, session)
            await session_commit(session)
        except IntegrityError:
            # Concurrent request created the profile first
            await session_rollback(session)
            existing = await VendorRepository.get_by_user_id(principal.user_id, session)
            if existing is None:
                raise
            return existing, False

        logger.info(f"[Vendor] Created vendor profile {vendor_id} for user {principal.user_id}")
        return await VendorService.get(vendor_id, session), True

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.OPTIMISTIC_LOCK_MAX_RETRIES, on_exhausted=_vendor_conflict)
    async def update_profile(principal: Principal, payload: VendorProfileUpdate, session: AsyncSession) -> VendorDTO:
        vendor = await VendorService.get_profile(principal, session)
        fields = payload.model_dump(exclude_none=True)
        if not fields:
            return vendor
        updated = await VendorRepository.update_fields(vendor.id, fields, session)
        await session_commit(session)
        logger.info(f"[Vendor] Vendor {vendor.id} updated fields: {', '.join(sorted(fields))}")
        return updated

    @staticmethod
    async def delete_profile(principal: Principal, session: AsyncSession) -> None:
        vendor = await VendorService.get_profile(principal, session)
        await VendorService._delete(vendor, session)
        logger.info(f"[Vendor] Vendor {vendor.id} deleted by owner {principal.user_id}")

    @staticmethod
    async def _delete(vendor: VendorDTO, session: AsyncSession) -> None:
        """
        Soft-delete a vendor profile. Its products are deactivated (orders and
        reviews keep referencing them) and the owner goes back to the user role.
        """
        await ProductRepository.deactivate_by_vendor(vendor.id, session)
        await VendorRepository.update_fields(vendor.id, {
            "deleted_at": utcnow(),
            "status": VendorStatus.BLOCKED,
            "is_featured": False,
        }, session)
        await UserService.demote_vendor(vendor.user_id, session)
        await session_commit(session)

    # === Admin moderation ===

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.OPTIMISTIC_LOCK_MAX_RETRIES, on_exhausted=_vendor_conflict)
    async def verify(vendor_id: int, admin: Principal, session: AsyncSession, notes: str | None = None) -> VendorDTO:
        require_admin(admin)
        await VendorService.get(vendor_id, session)
        updated = await VendorRepository.update_fields(vendor_id, {
            "is_verified": True,
            "verified_by": admin.user_id,
            "verified_at": utcnow(),
            "verification_notes": notes,
            "status": VendorStatus.ACTIVE,
        }, session)
        await session_commit(session)
        logger.info(f"[Vendor] Vendor {vendor_id} verified by admin {admin.user_id}")
        return updated

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.OPTIMISTIC_LOCK_MAX_RETRIES, on_exhausted=_vendor_conflict)
    async def approve(vendor_id: int, approved: bool, admin: Principal, session: AsyncSession,
                      notes: str | None = None) -> VendorDTO:
        """Approved -> active and verified, rejected -> suspended."""
        require_admin(admin)
        await VendorService.get(vendor_id, session)
        fields = {
            "status": VendorStatus.ACTIVE if approved else VendorStatus.SUSPENDED,
            "is_verified": approved,
            "verified_by": admin.user_id,
            "verified_at": utcnow(),
            "verification_notes": notes,
        }
        updated = await VendorRepository.update_fields(vendor_id, fields, session)
        await session_commit(session)
        logger.info(f"[Vendor] Vendor {vendor_id} {'approved' if approved else 'rejected'} by admin {admin.user_id}")
        return updated

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.OPTIMISTIC_LOCK_MAX_RETRIES, on_exhausted=_vendor_conflict)
    async def set_status(vendor_id: int, status: VendorStatus, admin: Principal, session: AsyncSession,
                         reason: str | None = None) -> VendorDTO:
        require_admin(admin)
        vendor = await VendorService.get(vendor_id, session)
        fields = {"status": status}
        if reason:
            fields["verification_notes"] = reason
        updated = await VendorRepository.update_fields(vendor_id, fields, session)
        await session_commit(session)
        logger.info(f"[Vendor] Vendor {vendor_id} status {vendor.status.value} -> {status.value} by admin {admin.user_id}")
        return updated

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.OPTIMISTIC_LOCK_MAX_RETRIES, on_exhausted=_vendor_conflict)
    async def set_featured(vendor_id: int, is_featured: bool, admin: Principal, session: AsyncSession) -> VendorDTO:
        require_admin(admin)
        await VendorService.get(vendor_id, session)
        updated = await VendorRepository.update_fields(vendor_id, {"is_featured": is_featured}, session)
        await session_commit(session)
        return updated

    @staticmethod
    async def delete(vendor_id: int, admin: Principal, session: AsyncSession) -> None:
        require_admin(admin)
        vendor = await VendorService.get(vendor_id, session)
        await VendorService._delete(vendor, session)
        logger.info(f"[Vendor] Vendor {vendor_id} deleted by admin {admin.user_id}")

    @staticmethod
    async def require_vendor_profile(principal: Principal, session: AsyncSession) -> VendorDTO:
        """Caller must be a vendor (or admin) with a profile."""
        require_role(principal, UserRole.VENDOR, UserRole.ADMIN)
        return await VendorService.get_profile(principal, session)
