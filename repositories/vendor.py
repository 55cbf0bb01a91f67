from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from enums.product_category import ProductCategory
from enums.vendor_status import VendorStatus
from models.vendor import Vendor, VendorDTO
from utils.pagination import PageParams

# sort_by values accepted by the vendor listing
SORT_COLUMNS = {
    "createdAt": Vendor.created_at,
    "created_at": Vendor.created_at,
    "rating": Vendor.rating_average,
    "businessName": Vendor.business_name,
    "business_name": Vendor.business_name,
}


class VendorRepository:
    @staticmethod
    async def get_by_id(vendor_id: int, session: AsyncSession) -> VendorDTO | None:
        stmt = select(Vendor).where(Vendor.id == vendor_id, Vendor.deleted_at.is_(None))
        vendor = await session_execute(stmt, session)
        vendor = vendor.scalar()
        if vendor is not None:
            return VendorDTO.model_validate(vendor, from_attributes=True)
        return None

    @staticmethod
    async def get_by_user_id(user_id: int, session: AsyncSession, include_deleted: bool = False) -> VendorDTO | None:
        stmt = select(Vendor).where(Vendor.user_id == user_id)
        if not include_deleted:
            stmt = stmt.where(Vendor.deleted_at.is_(None))
        vendor = await session_execute(stmt, session)
        vendor = vendor.scalar()
        if vendor is not None:
            return VendorDTO.model_validate(vendor, from_attributes=True)
        return None

    @staticmethod
    async def get_by_ids(vendor_ids: list[int], session: AsyncSession) -> dict[int, VendorDTO]:
        if not vendor_ids:
            return {}
        stmt = select(Vendor).where(Vendor.id.in_(set(vendor_ids)))
        vendors = await session_execute(stmt, session)
        return {v.id: VendorDTO.model_validate(v, from_attributes=True) for v in vendors.scalars().all()}

    @staticmethod
    async def create(vendor_dto: VendorDTO, session: AsyncSession) -> int:
        vendor = Vendor(**vendor_dto.model_dump(exclude_none=True, exclude={"id", "version"}))
        session.add(vendor)
        await session_flush(session)
        return vendor.id

    @staticmethod
    async def update_fields(vendor_id: int, fields: dict, session: AsyncSession) -> VendorDTO | None:
        """
        Apply field changes through the ORM so the version check runs.

        Raises:
            StaleDataError: if another transaction updated the row first
        """
        vendor = await session.get(Vendor, vendor_id)
        if vendor is None:
            return None
        for key, value in fields.items():
            setattr(vendor, key, value)
        await session_flush(session)
        return VendorDTO.model_validate(vendor, from_attributes=True)

    @staticmethod
    async def get_filtered(params: PageParams, session: AsyncSession,
                           status: VendorStatus | None = VendorStatus.ACTIVE,
                           business_type: ProductCategory | None = None,
                           min_rating: float | None = None,
                           is_featured: bool | None = None,
                           sort_by: str = "createdAt",
                           sort_order: str = "desc") -> tuple[list[VendorDTO], int]:
        """
        Returns:
            Tuple of (vendors list, total count)
        """
        conditions = [Vendor.deleted_at.is_(None)]
        if status is not None:
            conditions.append(Vendor.status == status)
        if business_type is not None:
            conditions.append(Vendor.business_type == business_type)
        if min_rating is not None:
            conditions.append(Vendor.rating_average >= min_rating)
        if is_featured is not None:
            conditions.append(Vendor.is_featured == is_featured)

        sort_column = SORT_COLUMNS.get(sort_by, Vendor.created_at)
        ordering = sort_column.asc() if sort_order == "asc" else sort_column.desc()

        vendors_stmt = (
            select(Vendor)
            .where(*conditions)
            .order_by(ordering, Vendor.id.desc())
            .limit(params.limit)
            .offset(params.offset)
        )
        count_stmt = select(func.count(Vendor.id)).where(*conditions)

        vendors = await session_execute(vendors_stmt, session)
        vendors = [VendorDTO.model_validate(v, from_attributes=True) for v in vendors.scalars().all()]
        count = await session_execute(count_stmt, session)
        return vendors, count.scalar_one()

    @staticmethod
    async def get_active_names_matching(query: str, limit: int, session: AsyncSession) -> list[VendorDTO]:
        stmt = (
            select(Vendor)
            .where(Vendor.status == VendorStatus.ACTIVE, Vendor.deleted_at.is_(None),
                   func.lower(Vendor.business_name).like(f"%{query.lower()}%"))
            .order_by(Vendor.rating_average.desc(), Vendor.id)
            .limit(limit)
        )
        vendors = await session_execute(stmt, session)
        return [VendorDTO.model_validate(v, from_attributes=True) for v in vendors.scalars().all()]

    @staticmethod
    async def count_by_status(session: AsyncSession) -> dict[str, int]:
        stmt = (select(Vendor.status, func.count(Vendor.id))
                .where(Vendor.deleted_at.is_(None))
                .group_by(Vendor.status))
        rows = await session_execute(stmt, session)
        return {status.value: count for status, count in rows.all()}

    @staticmethod
    async def get_recent(limit: int, session: AsyncSession) -> list[VendorDTO]:
        stmt = (select(Vendor)
                .where(Vendor.deleted_at.is_(None))
                .order_by(Vendor.created_at.desc(), Vendor.id.desc())
                .limit(limit))
        vendors = await session_execute(stmt, session)
        return [VendorDTO.model_validate(v, from_attributes=True) for v in vendors.scalars().all()]

    @staticmethod
    async def set_rating(vendor_id: int, average: float, count: int, session: AsyncSession) -> None:
        """Aggregate refresh; not a profile write, so the version is left alone."""
        stmt = (update(Vendor)
                .where(Vendor.id == vendor_id)
                .values(rating_average=average, rating_count=count))
        await session_execute(stmt, session)
