import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

import config
from db import session_commit
from enums.delivery_option import DeliveryOption
from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from enums.user_role import UserRole
from exceptions.base import ConcurrentModificationException, ValidationException
from exceptions.cart import EmptyCartException
from exceptions.order import (
    OrderNotFoundException,
    OrderAlreadyCancelledException,
    InvalidOrderStateException,
    InvalidOrderStatusException,
    OrderOwnershipException,
    OrderNumberConflictException,
)
from exceptions.product import ProductNotFoundException
from exceptions.user import UserNotFoundException
from exceptions.vendor import VendorNotFoundException, VendorProfileNotFoundException
from models.base import utcnow
from models.order import OrderDTO, CheckoutPayload, CreateOrderPayload, OrderLinePayload, TrackingPayload
from models.orderItem import OrderItemDTO
from models.user import UserDTO
from repositories.cart import CartRepository
from repositories.order import OrderRepository
from repositories.order_sequence import OrderSequenceRepository
from repositories.product import ProductRepository
from repositories.user import UserRepository
from repositories.vendor import VendorRepository
from utils.order_state_machine import OrderStateMachine
from utils.pagination import PageParams
from utils.permission_utils import (
    Principal,
    can_cancel_order,
    can_update_order_status,
    can_view_order,
    is_admin,
    is_order_owner,
    require_admin,
    require_role,
)
from utils.transaction_manager import TransactionManager, RETRYABLE_ERRORS

logger = logging.getLogger(__name__)

# Statuses an order can no longer be cancelled from, besides cancelled itself
UNCANCELLABLE_STATUSES = {OrderStatus.DELIVERED}


def _order_conflict(error: Exception, attempts: int) -> Exception:
    if isinstance(error, StaleDataError):
        # Checkout lost the race on the cart it was built from
        return ConcurrentModificationException("Cart")
    return OrderNumberConflictException(attempts)


def shipping_fee(delivery_option: DeliveryOption) -> float:
    if delivery_option == DeliveryOption.EXPRESS:
        return config.SHIPPING_FEE_EXPRESS
    return config.SHIPPING_FEE_STANDARD


def order_day() -> str:
    """YYMMDD of the local calendar day, so the sequence restarts at local midnight."""
    if config.ORDER_NUMBER_TIMEZONE is not None:
        return datetime.now(config.ORDER_NUMBER_TIMEZONE).strftime("%y%m%d")
    return datetime.now().astimezone().strftime("%y%m%d")


class OrderService:

    @staticmethod
    async def _allocate_order_number(session: AsyncSession) -> str:
        """
        Next order number of the day: prefix + YYMMDD + 4-digit sequence.

        The counter increment is atomic; numbers already taken by rows that
        did not come from the counter are skipped. The unique index on
        orders.order_number remains the final guard.
        """
        day = order_day()
        while True:
            sequence = await OrderSequenceRepository.next_value(day, session)
            order_number = f"{config.ORDER_NUMBER_PREFIX}{day}{sequence:04d}"
            if not await OrderRepository.number_exists(order_number, session):
                return order_number
            logger.warning(f"[Order] Order number {order_number} already taken, skipping")

    @staticmethod
    async def _place(user: UserDTO, lines: list[OrderLinePayload], details: CheckoutPayload,
                     session: AsyncSession) -> OrderDTO:
        """
        Build and insert one order without committing.

        1. Every product must resolve; a missing one fails the whole order
        2. Unit price is the supplied price or the live selling price
        3. The order is attributed to the vendor of the first product
        4. That vendor must exist
        5. Shipping follows the delivery option; tax and discount are zero

        Raises:
            ProductNotFoundException: if any product is missing
            ValidationException: if no product carries a vendor
            VendorNotFoundException: if the attributed vendor is gone
            IntegrityError: on an order number collision
        """
        products = await ProductRepository.get_by_ids([line.product_id for line in lines], session,
                                                      include_inactive=False)
        order_items = []
        subtotal = 0.0
        vendor_id = None
        for line in lines:
            product = products.get(line.product_id)
            if product is None:
                raise ProductNotFoundException(line.product_id)
            if vendor_id is None and product.vendor_id is not None:
                vendor_id = product.vendor_id

            unit_price = line.price if line.price is not None else product.selling_price
            line_total = round(unit_price * line.quantity, 2)
            subtotal += line_total
            order_items.append(OrderItemDTO(
                product_id=product.id,
                name=product.title,
                quantity=line.quantity,
                price=unit_price,
                total=line_total,
            ))

        if vendor_id is None:
            raise ValidationException("No vendor found for order items", field="items")
        vendor = await VendorRepository.get_by_id(vendor_id, session)
        if vendor is None:
            raise VendorNotFoundException(vendor_id)

        subtotal = round(subtotal, 2)
        shipping_cost = shipping_fee(details.delivery_option)
        tax = 0.0
        discount = 0.0
        total = round(subtotal + shipping_cost + tax - discount, 2)

        address = details.shipping_address
        country = address.country or config.DEFAULT_COUNTRY
        delivery_address = {
            "line1": address.street,
            "line2": None,
            "city": address.city,
            "state": address.state,
            "pincode": address.zip_code,
            "country": country,
        }
        customer_info = {
            "name": user.name,
            "email": user.email,
            "phone": address.phone or user.phone,
            "address": {
                "city": address.city,
                "state": address.state,
                "pincode": address.zip_code,
                "country": country,
            },
        }

        order_number = await OrderService._allocate_order_number(session)
        order = await OrderRepository.create(OrderDTO(
            order_number=order_number,
            user_id=user.id,
            vendor_id=vendor_id,
            status=OrderStatus.PENDING,
            subtotal=subtotal,
            tax=tax,
            shipping_cost=shipping_cost,
            discount=discount,
            total=total,
            payment_method=details.payment_method,
            payment_status=PaymentStatus.PENDING,
            customer_info=customer_info,
            delivery_address=delivery_address,
            delivery_option=details.delivery_option,
            tracking_info={},
            notes={"customer": details.notes} if details.notes else {},
        ), order_items, session)

        logger.info(f"[Order] Placed order {order.order_number} (id {order.id}) for user {user.id}, "
                    f"vendor {vendor_id}, total {total}")
        return order

    @staticmethod
    async def _get_user(principal: Principal, session: AsyncSession) -> UserDTO:
        user = await UserRepository.get_by_id(principal.user_id, session)
        if user is None:
            raise UserNotFoundException(principal.user_id)
        return user

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.ORDER_CREATE_MAX_RETRIES,
                                   retry_on=(IntegrityError, OperationalError),
                                   on_exhausted=_order_conflict)
    async def create_order(principal: Principal, payload: CreateOrderPayload, session: AsyncSession) -> OrderDTO:
        """
        Place an order from an explicit item list. The caller's cart is not
        touched; clients clear it separately.
        """
        user = await OrderService._get_user(principal, session)
        order = await OrderService._place(user, payload.items, payload, session)
        await session_commit(session)
        return order

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.ORDER_CREATE_MAX_RETRIES,
                                   retry_on=RETRYABLE_ERRORS,
                                   on_exhausted=_order_conflict)
    async def checkout(principal: Principal, payload: CheckoutPayload, session: AsyncSession) -> list[OrderDTO]:
        """
        Turn the caller's server-side cart into orders, one per vendor.

        All orders and the emptied cart are committed together.

        Raises:
            EmptyCartException: if the cart has no items
            ProductNotFoundException: if a cart line points at a missing product
        """
        user = await OrderService._get_user(principal, session)
        cart = await CartRepository.get_or_create(user.id, session)
        if not cart.items:
            raise EmptyCartException(user.id)

        products = await ProductRepository.get_by_ids([item.product_id for item in cart.items], session,
                                                      include_inactive=False)
        groups: dict[int, list[OrderLinePayload]] = {}
        for item in cart.items:
            product = products.get(item.product_id)
            if product is None:
                raise ProductNotFoundException(item.product_id)
            groups.setdefault(product.vendor_id, []).append(
                OrderLinePayload(product_id=item.product_id, quantity=item.quantity)
            )

        orders = [await OrderService._place(user, lines, payload, session) for lines in groups.values()]
        await CartRepository.clear(user.id, session)
        await session_commit(session)
        logger.info(f"[Order] Checkout for user {user.id} produced {len(orders)} order(s): "
                    f"{', '.join(o.order_number for o in orders)}")
        return orders

    @staticmethod
    async def _get(order_id: int, session: AsyncSession) -> OrderDTO:
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)
        return order

    @staticmethod
    async def update_status(order_id: int, status: str, principal: Principal, session: AsyncSession,
                            notes: str | None = None, tracking: TrackingPayload | None = None) -> OrderDTO:
        """
        Set an order's status on behalf of its vendor or an admin.

        Any known status is accepted; moves off the forward path are logged
        as overrides. Delivered marks the order paid, cancelled refunded.

        Raises:
            InvalidOrderStatusException: if the status is unknown
            OrderNotFoundException: if the order does not exist
            PermissionDeniedException: if the caller is neither vendor nor admin
            VendorProfileNotFoundException: if a vendor caller has no profile
            OrderOwnershipException: if the order belongs to another vendor
        """
        new_status = OrderStateMachine.parse_status(status)
        if new_status is None:
            raise InvalidOrderStatusException(status)
        order = await OrderService._get(order_id, session)

        require_role(principal, UserRole.VENDOR, UserRole.ADMIN)
        caller_vendor_id = None
        if not is_admin(principal):
            vendor = await VendorRepository.get_by_user_id(principal.user_id, session)
            if vendor is None:
                raise VendorProfileNotFoundException(principal.user_id)
            caller_vendor_id = vendor.id
        if not can_update_order_status(principal, order.vendor_id, caller_vendor_id):
            raise OrderOwnershipException(order_id, principal.user_id, action="update")

        OrderStateMachine.validate_and_log_transition(
            order_id, order.status, new_status, actor_id=principal.user_id, actor_role=principal.role.value
        )

        fields = {"status": new_status}
        payment_status = OrderStateMachine.payment_status_for(new_status)
        if payment_status is not None:
            fields["payment_status"] = payment_status
        if new_status == OrderStatus.DELIVERED:
            fields["delivered_at"] = utcnow()
        elif new_status == OrderStatus.CANCELLED:
            fields["cancelled_at"] = utcnow()

        if notes:
            fields["notes"] = {**(order.notes or {}), "admin" if is_admin(principal) else "vendor": notes}
        if tracking is not None:
            tracking_info = {**(order.tracking_info or {}), **tracking.model_dump(mode="json", exclude_none=True)}
            if new_status == OrderStatus.DELIVERED and not tracking_info.get("actual_delivery"):
                tracking_info["actual_delivery"] = fields["delivered_at"].isoformat()
            fields["tracking_info"] = tracking_info

        updated = await OrderRepository.update_fields(order_id, fields, session)
        await session_commit(session)
        return updated

    @staticmethod
    async def cancel(order_id: int, principal: Principal, session: AsyncSession,
                     reason: str | None = None) -> OrderDTO:
        """
        Cancel an order as its owner or an admin.

        Raises:
            OrderNotFoundException: if the order does not exist
            OrderOwnershipException: if the caller is neither owner nor admin
            OrderAlreadyCancelledException: if the order is already cancelled
            InvalidOrderStateException: if the order was delivered
        """
        order = await OrderService._get(order_id, session)
        if not can_cancel_order(principal, order.user_id):
            raise OrderOwnershipException(order_id, principal.user_id, action="cancel")
        if order.status == OrderStatus.CANCELLED:
            raise OrderAlreadyCancelledException(order_id)
        if order.status in UNCANCELLABLE_STATUSES:
            raise InvalidOrderStateException(
                order_id, order.status.value, "Cannot cancel a delivered or completed order"
            )

        OrderStateMachine.validate_and_log_transition(
            order_id, order.status, OrderStatus.CANCELLED,
            actor_id=principal.user_id, actor_role=principal.role.value
        )
        updated = await OrderRepository.update_fields(order_id, {
            "status": OrderStatus.CANCELLED,
            "payment_status": PaymentStatus.REFUNDED,
            "cancelled_at": utcnow(),
            "cancellation_reason": reason,
        }, session)
        await session_commit(session)
        logger.info(f"[Order] Order {order.order_number} cancelled by {principal.role.value} {principal.user_id}")
        return updated

    # === Queries ===

    @staticmethod
    async def get_my_orders(principal: Principal, params: PageParams, session: AsyncSession,
                            status: OrderStatus | None = None) -> tuple[list[OrderDTO], int]:
        return await OrderRepository.get_by_user_id(principal.user_id, params, session, status=status)

    @staticmethod
    async def get_vendor_orders(principal: Principal, params: PageParams, session: AsyncSession,
                                status: OrderStatus | None = None) -> tuple[list[OrderDTO], int]:
        require_role(principal, UserRole.VENDOR, UserRole.ADMIN)
        vendor = await VendorRepository.get_by_user_id(principal.user_id, session)
        if vendor is None:
            raise VendorProfileNotFoundException(principal.user_id)
        return await OrderRepository.get_by_vendor_id(vendor.id, params, session, status=status)

    @staticmethod
    async def get_all_orders(admin: Principal, params: PageParams, session: AsyncSession,
                             status: OrderStatus | None = None) -> tuple[list[dict], int]:
        """Every order with a summary of its owner, newest first."""
        require_admin(admin)
        orders, total = await OrderRepository.get_all(params, session, status=status)
        users = await UserRepository.get_by_ids([o.user_id for o in orders], session)
        result = []
        for order in orders:
            data = order.model_dump(mode="json")
            owner = users.get(order.user_id)
            data["user"] = {"id": owner.id, "name": owner.name, "email": owner.email} if owner else None
            result.append(data)
        return result, total

    @staticmethod
    async def get_order(order_id: int, principal: Principal, session: AsyncSession) -> OrderDTO:
        """
        Raises:
            OrderNotFoundException: if the order does not exist
            OrderOwnershipException: if the caller is not owner, admin or the order's vendor
        """
        order = await OrderService._get(order_id, session)
        caller_vendor_id = None
        if not is_order_owner(principal, order.user_id) and not is_admin(principal):
            vendor = await VendorRepository.get_by_user_id(principal.user_id, session)
            caller_vendor_id = vendor.id if vendor is not None else None
        if not can_view_order(principal, order.user_id, order.vendor_id, caller_vendor_id):
            raise OrderOwnershipException(order_id, principal.user_id, action="view")
        return order
