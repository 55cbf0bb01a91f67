"""
Order endpoints.

Static paths (/checkout, /my/orders, /vendor/orders) are declared before
/{order_id} so they are never captured by the id route.
"""

import logging

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from enums.order_status import OrderStatus
from models.order import CheckoutPayload, CreateOrderPayload, TrackingPayload
from services.order import OrderService
from utils.pagination import PageParams
from utils.permission_utils import Principal
from web.dependencies import get_admin_principal, get_current_principal, get_page, get_session
from web.responses import paginated, success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


class StatusUpdateBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Kept as a plain string: unknown values are rejected by the service with 400
    status: str
    notes: str | None = Field(default=None, max_length=500)
    tracking_info: TrackingPayload | None = None


class CancelBody(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


@router.post("", status_code=201)
async def create_order(payload: CreateOrderPayload,
                       principal: Principal = Depends(get_current_principal),
                       session: AsyncSession = Depends(get_session)):
    order = await OrderService.create_order(principal, payload, session)
    return success(order, "Order created successfully")


@router.post("/checkout", status_code=201)
async def checkout(payload: CheckoutPayload,
                   principal: Principal = Depends(get_current_principal),
                   session: AsyncSession = Depends(get_session)):
    orders = await OrderService.checkout(principal, payload, session)
    return success(orders, f"{len(orders)} order(s) placed successfully")


@router.get("/my/orders")
async def my_orders(status: OrderStatus | None = Query(default=None),
                    params: PageParams = Depends(get_page),
                    principal: Principal = Depends(get_current_principal),
                    session: AsyncSession = Depends(get_session)):
    orders, total = await OrderService.get_my_orders(principal, params, session, status=status)
    return paginated(orders, total, params, "Orders")


@router.get("/vendor/orders")
async def vendor_orders(status: OrderStatus | None = Query(default=None),
                        params: PageParams = Depends(get_page),
                        principal: Principal = Depends(get_current_principal),
                        session: AsyncSession = Depends(get_session)):
    orders, total = await OrderService.get_vendor_orders(principal, params, session, status=status)
    return paginated(orders, total, params, "Orders")


@router.get("")
async def all_orders(status: OrderStatus | None = Query(default=None),
                     params: PageParams = Depends(get_page),
                     admin: Principal = Depends(get_admin_principal),
                     session: AsyncSession = Depends(get_session)):
    orders, total = await OrderService.get_all_orders(admin, params, session, status=status)
    return paginated(orders, total, params, "Orders")


@router.get("/{order_id}")
async def get_order(order_id: int,
                    principal: Principal = Depends(get_current_principal),
                    session: AsyncSession = Depends(get_session)):
    return success(await OrderService.get_order(order_id, principal, session))


@router.put("/{order_id}/status")
async def update_status(order_id: int, body: StatusUpdateBody,
                        principal: Principal = Depends(get_current_principal),
                        session: AsyncSession = Depends(get_session)):
    order = await OrderService.update_status(order_id, body.status, principal, session,
                                             notes=body.notes, tracking=body.tracking_info)
    return success(order, "Order status updated successfully")


@router.put("/{order_id}/cancel")
async def cancel_order(order_id: int, body: CancelBody = Body(default_factory=CancelBody),
                       principal: Principal = Depends(get_current_principal),
                       session: AsyncSession = Depends(get_session)):
    order = await OrderService.cancel(order_id, principal, session, reason=body.reason)
    return success(order, "Order cancelled successfully")
