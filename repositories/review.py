from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from enums.review_status import ReviewStatus
from models.review import Review, ReviewDTO
from utils.pagination import PageParams


class ReviewRepository:
    @staticmethod
    async def get_by_id(review_id: int, session: AsyncSession) -> ReviewDTO | None:
        stmt = select(Review).where(Review.id == review_id)
        review = await session_execute(stmt, session)
        review = review.scalar()
        if review is not None:
            return ReviewDTO.model_validate(review, from_attributes=True)
        return None

    @staticmethod
    async def get_by_user_and_product(user_id: int, product_id: int, session: AsyncSession) -> ReviewDTO | None:
        stmt = select(Review).where(Review.user_id == user_id, Review.product_id == product_id)
        review = await session_execute(stmt, session)
        review = review.scalar()
        if review is not None:
            return ReviewDTO.model_validate(review, from_attributes=True)
        return None

    @staticmethod
    async def create(review_dto: ReviewDTO, session: AsyncSession) -> ReviewDTO:
        review = Review(**review_dto.model_dump(exclude_none=True, exclude={"id"}))
        session.add(review)
        await session_flush(session)
        return ReviewDTO.model_validate(review, from_attributes=True)

    @staticmethod
    async def update_fields(review_id: int, fields: dict, session: AsyncSession) -> ReviewDTO | None:
        review = await session.get(Review, review_id)
        if review is None:
            return None
        for key, value in fields.items():
            setattr(review, key, value)
        await session_flush(session)
        return ReviewDTO.model_validate(review, from_attributes=True)

    @staticmethod
    async def delete(review_id: int, session: AsyncSession) -> None:
        await session_execute(delete(Review).where(Review.id == review_id), session)
        await session_flush(session)

    @staticmethod
    async def get_rating_stats(session: AsyncSession, product_id: int | None = None,
                               vendor_id: int | None = None) -> tuple[float, int]:
        """
        Mean rating (one decimal) and count over approved, active reviews.

        Returns (0, 0) when there are none.
        """
        conditions = [Review.status == ReviewStatus.APPROVED, Review.is_active.is_(True)]
        if product_id is not None:
            conditions.append(Review.product_id == product_id)
        if vendor_id is not None:
            conditions.append(Review.vendor_id == vendor_id)
        stmt = select(func.avg(Review.rating), func.count(Review.id)).where(*conditions)
        result = await session_execute(stmt, session)
        average, count = result.one()
        if not count:
            return 0.0, 0
        return round(float(average), 1), count

    @staticmethod
    async def get_for_product(product_id: int, params: PageParams, session: AsyncSession) -> tuple[list[ReviewDTO], int]:
        conditions = [Review.product_id == product_id,
                      Review.status == ReviewStatus.APPROVED,
                      Review.is_active.is_(True)]
        return await ReviewRepository._get_page(conditions, params, session)

    @staticmethod
    async def get_for_vendor(vendor_id: int, params: PageParams, session: AsyncSession) -> tuple[list[ReviewDTO], int]:
        conditions = [Review.vendor_id == vendor_id,
                      Review.status == ReviewStatus.APPROVED,
                      Review.is_active.is_(True)]
        return await ReviewRepository._get_page(conditions, params, session)

    @staticmethod
    async def get_for_user(user_id: int, params: PageParams, session: AsyncSession) -> tuple[list[ReviewDTO], int]:
        return await ReviewRepository._get_page([Review.user_id == user_id], params, session)

    @staticmethod
    async def get_all(params: PageParams, session: AsyncSession,
                      status: ReviewStatus | None = None) -> tuple[list[ReviewDTO], int]:
        conditions = [Review.status == status] if status is not None else []
        return await ReviewRepository._get_page(conditions, params, session)

    @staticmethod
    async def _get_page(conditions: list, params: PageParams, session: AsyncSession) -> tuple[list[ReviewDTO], int]:
        reviews_stmt = (
            select(Review)
            .where(*conditions)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(params.limit)
            .offset(params.offset)
        )
        count_stmt = select(func.count(Review.id)).where(*conditions)
        reviews = await session_execute(reviews_stmt, session)
        reviews = [ReviewDTO.model_validate(r, from_attributes=True) for r in reviews.scalars().all()]
        count = await session_execute(count_stmt, session)
        return reviews, count.scalar_one()

    @staticmethod
    async def count(session: AsyncSession) -> int:
        result = await session_execute(select(func.count(Review.id)), session)
        return result.scalar_one()

    @staticmethod
    async def get_recent(limit: int, session: AsyncSession) -> list[ReviewDTO]:
        stmt = select(Review).order_by(Review.created_at.desc(), Review.id.desc()).limit(limit)
        reviews = await session_execute(stmt, session)
        return [ReviewDTO.model_validate(r, from_attributes=True) for r in reviews.scalars().all()]
