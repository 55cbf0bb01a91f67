from dataclasses import dataclass

from sqlalchemy import select, func, or_, cast, String, update
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from enums.product_category import ProductCategory
from enums.product_sort import ProductSort
from models.product import Product, ProductDTO
from utils.pagination import PageParams

SORT_ORDERING = {
    ProductSort.NEWEST: (Product.created_at.desc(), Product.id.desc()),
    ProductSort.OLDEST: (Product.created_at.asc(), Product.id.asc()),
    ProductSort.PRICE_ASC: (Product.selling_price.asc(), Product.id.asc()),
    ProductSort.PRICE_DESC: (Product.selling_price.desc(), Product.id.desc()),
    ProductSort.RATING: (Product.rating_average.desc(), Product.id.desc()),
    ProductSort.POPULARITY: (Product.total_sold.desc(), Product.id.desc()),
}


@dataclass
class ProductFilter:
    category: ProductCategory | None = None
    min_price: float | None = None
    max_price: float | None = None
    min_rating: float | None = None
    vendor_id: int | None = None
    search: str | None = None
    is_featured: bool | None = None
    include_inactive: bool = False
    sort_by: ProductSort = ProductSort.NEWEST

    def conditions(self) -> list:
        conditions = []
        if not self.include_inactive:
            conditions.append(Product.is_active.is_(True))
        if self.category is not None:
            conditions.append(Product.category == self.category)
        if self.min_price is not None:
            conditions.append(Product.selling_price >= self.min_price)
        if self.max_price is not None:
            conditions.append(Product.selling_price <= self.max_price)
        if self.min_rating is not None:
            conditions.append(Product.rating_average >= self.min_rating)
        if self.vendor_id is not None:
            conditions.append(Product.vendor_id == self.vendor_id)
        if self.is_featured is not None:
            conditions.append(Product.is_featured == self.is_featured)
        if self.search:
            pattern = f"%{self.search.strip().lower()}%"
            conditions.append(or_(
                func.lower(Product.title).like(pattern),
                func.lower(Product.description).like(pattern),
                # tags is a JSON array; match against its serialized form
                func.lower(cast(Product.tags, String)).like(pattern),
            ))
        return conditions


class ProductRepository:
    @staticmethod
    async def get_by_id(product_id: int, session: AsyncSession, include_inactive: bool = False) -> ProductDTO | None:
        stmt = select(Product).where(Product.id == product_id)
        if not include_inactive:
            stmt = stmt.where(Product.is_active.is_(True))
        product = await session_execute(stmt, session)
        product = product.scalar()
        if product is not None:
            return ProductDTO.model_validate(product, from_attributes=True)
        return None

    @staticmethod
    async def get_by_ids(product_ids: list[int], session: AsyncSession,
                         include_inactive: bool = True) -> dict[int, ProductDTO]:
        if not product_ids:
            return {}
        stmt = select(Product).where(Product.id.in_(set(product_ids)))
        if not include_inactive:
            stmt = stmt.where(Product.is_active.is_(True))
        products = await session_execute(stmt, session)
        return {p.id: ProductDTO.model_validate(p, from_attributes=True) for p in products.scalars().all()}

    @staticmethod
    async def create(product_dto: ProductDTO, session: AsyncSession) -> ProductDTO:
        product = Product(**product_dto.model_dump(exclude_none=True, exclude={"id", "discount_percentage"}))
        session.add(product)
        await session_flush(session)
        return ProductDTO.model_validate(product, from_attributes=True)

    @staticmethod
    async def update_fields(product_id: int, fields: dict, session: AsyncSession) -> ProductDTO | None:
        """Apply field changes through the ORM so the discount is recomputed on flush."""
        product = await session.get(Product, product_id)
        if product is None:
            return None
        for key, value in fields.items():
            setattr(product, key, value)
        await session_flush(session)
        return ProductDTO.model_validate(product, from_attributes=True)

    @staticmethod
    async def get_filtered(product_filter: ProductFilter, params: PageParams,
                           session: AsyncSession) -> tuple[list[ProductDTO], int]:
        """
        Returns:
            Tuple of (products list, total count)
        """
        conditions = product_filter.conditions()
        ordering = SORT_ORDERING.get(product_filter.sort_by, SORT_ORDERING[ProductSort.NEWEST])

        products_stmt = (
            select(Product)
            .where(*conditions)
            .order_by(*ordering)
            .limit(params.limit)
            .offset(params.offset)
        )
        count_stmt = select(func.count(Product.id)).where(*conditions)

        products = await session_execute(products_stmt, session)
        products = [ProductDTO.model_validate(p, from_attributes=True) for p in products.scalars().all()]
        count = await session_execute(count_stmt, session)
        return products, count.scalar_one()

    @staticmethod
    async def get_ids_by_vendor(vendor_id: int, session: AsyncSession) -> list[int]:
        stmt = (select(Product.id)
                .where(Product.vendor_id == vendor_id, Product.is_active.is_(True))
                .order_by(Product.id))
        ids = await session_execute(stmt, session)
        return list(ids.scalars().all())

    @staticmethod
    async def count_by_vendor(vendor_id: int, session: AsyncSession) -> int:
        stmt = select(func.count(Product.id)).where(Product.vendor_id == vendor_id, Product.is_active.is_(True))
        count = await session_execute(stmt, session)
        return count.scalar_one()

    @staticmethod
    async def deactivate_by_vendor(vendor_id: int, session: AsyncSession) -> None:
        products = await session_execute(select(Product).where(Product.vendor_id == vendor_id), session)
        for product in products.scalars().all():
            product.is_active = False
        await session_flush(session)

    @staticmethod
    async def title_suggestions(query: str, limit: int, session: AsyncSession) -> list[str]:
        stmt = (
            select(Product.title)
            .where(Product.is_active.is_(True), func.lower(Product.title).like(f"%{query.lower()}%"))
            .order_by(Product.rating_average.desc(), Product.id)
            .limit(limit)
        )
        titles = await session_execute(stmt, session)
        return list(titles.scalars().all())

    @staticmethod
    async def count_by_category(session: AsyncSession) -> dict[str, int]:
        stmt = (select(Product.category, func.count(Product.id))
                .where(Product.is_active.is_(True))
                .group_by(Product.category))
        rows = await session_execute(stmt, session)
        return {category.value: count for category, count in rows.all()}

    @staticmethod
    async def get_recent(limit: int, session: AsyncSession) -> list[ProductDTO]:
        stmt = select(Product).order_by(Product.created_at.desc(), Product.id.desc()).limit(limit)
        products = await session_execute(stmt, session)
        return [ProductDTO.model_validate(p, from_attributes=True) for p in products.scalars().all()]

    @staticmethod
    async def set_rating(product_id: int, average: float, count: int, session: AsyncSession) -> None:
        stmt = (update(Product)
                .where(Product.id == product_id)
                .values(rating_average=average, rating_count=count))
        await session_execute(stmt, session)
