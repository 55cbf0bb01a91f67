import logging

from sqlalchemy import select, func, exists
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from enums.order_status import OrderStatus
from models.order import Order, OrderDTO
from models.orderItem import OrderItem, OrderItemDTO
from utils.pagination import PageParams

logger = logging.getLogger(__name__)


class OrderRepository:
    @staticmethod
    async def create(order_dto: OrderDTO, items: list[OrderItemDTO], session: AsyncSession) -> OrderDTO:
        """
        Insert an order together with its item snapshot.

        Raises:
            IntegrityError: on order_number collision (surfaced at flush)
        """
        order = Order(**order_dto.model_dump(exclude_none=True, exclude={"id", "items", "next_statuses"}))
        order.items = [OrderItem(**item.model_dump(exclude_none=True, exclude={"id", "order_id"})) for item in items]
        session.add(order)
        await session_flush(session)
        return OrderDTO.model_validate(order, from_attributes=True)

    @staticmethod
    async def get_by_id(order_id: int, session: AsyncSession) -> OrderDTO | None:
        stmt = select(Order).where(Order.id == order_id)
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        return None

    @staticmethod
    async def number_exists(order_number: str, session: AsyncSession) -> bool:
        stmt = select(exists().where(Order.order_number == order_number))
        result = await session_execute(stmt, session)
        return bool(result.scalar())

    @staticmethod
    async def update_fields(order_id: int, fields: dict, session: AsyncSession) -> OrderDTO | None:
        """Last write wins: order rows carry no version column."""
        order = await session.get(Order, order_id)
        if order is None:
            return None
        for key, value in fields.items():
            setattr(order, key, value)
        await session_flush(session)
        return OrderDTO.model_validate(order, from_attributes=True)

    @staticmethod
    async def _get_page(conditions: list, params: PageParams, session: AsyncSession) -> tuple[list[OrderDTO], int]:
        orders_stmt = (
            select(Order)
            .where(*conditions)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(params.limit)
            .offset(params.offset)
        )
        count_stmt = select(func.count(Order.id)).where(*conditions)

        orders = await session_execute(orders_stmt, session)
        orders = [OrderDTO.model_validate(o, from_attributes=True) for o in orders.scalars().all()]
        count = await session_execute(count_stmt, session)
        return orders, count.scalar_one()

    @staticmethod
    async def get_by_user_id(user_id: int, params: PageParams, session: AsyncSession,
                             status: OrderStatus | None = None) -> tuple[list[OrderDTO], int]:
        """
        Returns:
            Tuple of (orders newest first, total count)
        """
        conditions = [Order.user_id == user_id]
        if status is not None:
            conditions.append(Order.status == status)
        return await OrderRepository._get_page(conditions, params, session)

    @staticmethod
    async def get_by_vendor_id(vendor_id: int, params: PageParams, session: AsyncSession,
                               status: OrderStatus | None = None) -> tuple[list[OrderDTO], int]:
        conditions = [Order.vendor_id == vendor_id]
        if status is not None:
            conditions.append(Order.status == status)
        return await OrderRepository._get_page(conditions, params, session)

    @staticmethod
    async def get_all(params: PageParams, session: AsyncSession,
                      status: OrderStatus | None = None) -> tuple[list[OrderDTO], int]:
        conditions = [Order.status == status] if status is not None else []
        return await OrderRepository._get_page(conditions, params, session)

    @staticmethod
    async def count_by_status(session: AsyncSession) -> dict[str, int]:
        stmt = select(Order.status, func.count(Order.id)).group_by(Order.status)
        rows = await session_execute(stmt, session)
        return {status.value: count for status, count in rows.all()}

    @staticmethod
    async def get_delivered_revenue(session: AsyncSession) -> float:
        stmt = select(func.coalesce(func.sum(Order.total), 0.0)).where(Order.status == OrderStatus.DELIVERED)
        result = await session_execute(stmt, session)
        return float(result.scalar_one())

    @staticmethod
    async def get_recent(limit: int, session: AsyncSession) -> list[OrderDTO]:
        stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(o, from_attributes=True) for o in orders.scalars().all()]
