import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_commit, session_rollback
from enums.review_status import ReviewStatus
from exceptions.auth import PermissionDeniedException
from exceptions.product import ProductNotFoundException
from exceptions.review import ReviewNotFoundException, DuplicateReviewException
from models.base import utcnow
from models.review import ReviewDTO, ReviewPayload, ReviewUpdatePayload
from repositories.product import ProductRepository
from repositories.review import ReviewRepository
from repositories.vendor import VendorRepository
from services.vendor import VendorService
from utils.pagination import PageParams
from utils.permission_utils import Principal, can_modify_review, require_admin

logger = logging.getLogger(__name__)


class ReviewService:

    @staticmethod
    async def recompute_ratings(product_id: int, vendor_id: int, session: AsyncSession) -> None:
        """
        Overwrite the product and vendor rating with the mean and count of
        their approved, active reviews. Full recomputation, never incremental.
        """
        product_average, product_count = await ReviewRepository.get_rating_stats(session, product_id=product_id)
        await ProductRepository.set_rating(product_id, product_average, product_count, session)
        vendor_average, vendor_count = await ReviewRepository.get_rating_stats(session, vendor_id=vendor_id)
        await VendorRepository.set_rating(vendor_id, vendor_average, vendor_count, session)
        logger.debug(f"[Review] Ratings recomputed: product {product_id} {product_average}/{product_count}, "
                     f"vendor {vendor_id} {vendor_average}/{vendor_count}")

    @staticmethod
    async def _get_modifiable(review_id: int, principal: Principal, session: AsyncSession) -> ReviewDTO:
        review = await ReviewRepository.get_by_id(review_id, session)
        if review is None:
            raise ReviewNotFoundException(review_id)
        if not can_modify_review(principal, review.user_id):
            raise PermissionDeniedException(
                "Not authorized to modify this review",
                details={'review_id': review_id, 'user_id': principal.user_id}
            )
        return review

    @staticmethod
    async def create(principal: Principal, payload: ReviewPayload, session: AsyncSession) -> ReviewDTO:
        """
        Reviews are published immediately (status approved).

        Raises:
            ProductNotFoundException: if the product does not exist
            DuplicateReviewException: if the caller already reviewed the product
        """
        product = await ProductRepository.get_by_id(payload.product_id, session)
        if product is None:
            raise ProductNotFoundException(payload.product_id)
        if await ReviewRepository.get_by_user_and_product(principal.user_id, product.id, session) is not None:
            raise DuplicateReviewException(principal.user_id, product.id)

        try:
            review = await ReviewRepository.create(ReviewDTO(
                user_id=principal.user_id,
                product_id=product.id,
                vendor_id=product.vendor_id,
                order_id=payload.order_id,
                rating=payload.rating,
                title=payload.title,
                comment=payload.comment,
                status=ReviewStatus.APPROVED,
                is_active=True,
            ), session)
        except IntegrityError:
            await session_rollback(session)
            raise DuplicateReviewException(principal.user_id, product.id)

        await ReviewService.recompute_ratings(review.product_id, review.vendor_id, session)
        await session_commit(session)
        logger.info(f"[Review] User {principal.user_id} reviewed product {product.id} ({payload.rating}/5)")
        return review

    @staticmethod
    async def update(review_id: int, principal: Principal, payload: ReviewUpdatePayload,
                     session: AsyncSession) -> ReviewDTO:
        review = await ReviewService._get_modifiable(review_id, principal, session)
        fields = payload.model_dump(exclude_none=True)
        if not fields:
            return review
        updated = await ReviewRepository.update_fields(review_id, fields, session)
        await ReviewService.recompute_ratings(review.product_id, review.vendor_id, session)
        await session_commit(session)
        return updated

    @staticmethod
    async def delete(review_id: int, principal: Principal, session: AsyncSession) -> None:
        review = await ReviewService._get_modifiable(review_id, principal, session)
        await ReviewRepository.delete(review_id, session)
        await ReviewService.recompute_ratings(review.product_id, review.vendor_id, session)
        await session_commit(session)
        logger.info(f"[Review] Review {review_id} deleted by user {principal.user_id}")

    @staticmethod
    async def list_for_product(product_id: int, params: PageParams,
                               session: AsyncSession) -> tuple[list[ReviewDTO], int]:
        """Published reviews of a product, newest first."""
        if await ProductRepository.get_by_id(product_id, session) is None:
            raise ProductNotFoundException(product_id)
        return await ReviewRepository.get_for_product(product_id, params, session)

    @staticmethod
    async def list_for_vendor(vendor_id: int, params: PageParams,
                              session: AsyncSession) -> tuple[list[ReviewDTO], int]:
        await VendorService.get(vendor_id, session)
        return await ReviewRepository.get_for_vendor(vendor_id, params, session)

    @staticmethod
    async def list_for_user(principal: Principal, params: PageParams,
                            session: AsyncSession) -> tuple[list[ReviewDTO], int]:
        return await ReviewRepository.get_for_user(principal.user_id, params, session)

    @staticmethod
    async def list_all(admin: Principal, params: PageParams, session: AsyncSession,
                       status: ReviewStatus | None = None) -> tuple[list[ReviewDTO], int]:
        require_admin(admin)
        return await ReviewRepository.get_all(params, session, status=status)

    @staticmethod
    async def moderate(review_id: int, admin: Principal, status: ReviewStatus, session: AsyncSession,
                       reason: str | None = None, is_active: bool | None = None) -> ReviewDTO:
        require_admin(admin)
        review = await ReviewRepository.get_by_id(review_id, session)
        if review is None:
            raise ReviewNotFoundException(review_id)

        fields = {
            "status": status,
            "moderated_by": admin.user_id,
            "moderated_at": utcnow(),
            "moderation_reason": reason,
        }
        if is_active is not None:
            fields["is_active"] = is_active
        updated = await ReviewRepository.update_fields(review_id, fields, session)
        await ReviewService.recompute_ratings(review.product_id, review.vendor_id, session)
        await session_commit(session)
        logger.info(f"[Review] Review {review_id} moderated to {status.value} by admin {admin.user_id}")
        return updated
