"""
Unit Tests: OrderService.create_order() and OrderService.checkout()

Covers pricing, item snapshots, vendor attribution, order numbering and
cart-driven checkout against an in-memory database.
"""

import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from unittest.mock import patch

from enums.delivery_option import DeliveryOption
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from exceptions.cart import EmptyCartException
from exceptions.product import ProductNotFoundException
from models.order import CheckoutPayload, CreateOrderPayload
from repositories.order import OrderRepository
from repositories.product import ProductRepository
from services.cart import CartService
from services.order import OrderService
from tests.factories import create_product, create_user, create_vendor
from utils.pagination import PageParams
from enums.user_role import UserRole

ADDRESS = {"street": "12 MG Road", "city": "Pune", "state": "MH", "zipCode": "411001", "phone": "9876543210"}


class LateEveningUtc(datetime):
    """Clock pinned to 2026-10-18 20:30 UTC, which is 02:00 on the 19th in India."""

    @classmethod
    def now(cls, tz=None):
        instant = datetime(2026, 10, 18, 20, 30, tzinfo=timezone.utc)
        return instant.astimezone(tz) if tz is not None else instant.replace(tzinfo=None)


def order_payload(items: list[dict], **overrides) -> CreateOrderPayload:
    data = {"items": items, "shippingAddress": ADDRESS, "paymentMethod": "cod"}
    data.update(overrides)
    return CreateOrderPayload.model_validate(data)


def checkout_payload(**overrides) -> CheckoutPayload:
    data = {"shippingAddress": ADDRESS, "paymentMethod": "upi"}
    data.update(overrides)
    return CheckoutPayload.model_validate(data)


class TestCreateOrder:

    @pytest.mark.asyncio
    async def test_express_order_totals(self, test_session, customer, vendor):
        """Two units at 125 with express delivery: 250 + 100 shipping."""
        item = await create_product(test_session, vendor, title="Ghee", mrp=150.0, selling_price=125.0)

        order = await OrderService.create_order(
            customer, order_payload([{"product": item.id, "quantity": 2}], deliveryOption="express"), test_session
        )

        assert order.subtotal == 250.0
        assert order.shipping_cost == 100.0
        assert order.tax == 0.0
        assert order.discount == 0.0
        assert order.total == 350.0
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.delivery_option == DeliveryOption.EXPRESS

    @pytest.mark.asyncio
    async def test_standard_shipping_by_default(self, test_session, customer, product):
        order = await OrderService.create_order(
            customer, order_payload([{"product": product.id, "quantity": 1}]), test_session
        )

        assert order.shipping_cost == 50.0
        assert order.total == 150.0

    @pytest.mark.asyncio
    async def test_unknown_delivery_option_is_standard(self, test_session, customer, product):
        order = await OrderService.create_order(
            customer, order_payload([{"product": product.id, "quantity": 1}], deliveryOption="same-day"),
            test_session
        )

        assert order.delivery_option == DeliveryOption.STANDARD
        assert order.shipping_cost == 50.0

    @pytest.mark.asyncio
    async def test_subtotal_is_sum_of_lines(self, test_session, customer, vendor, product):
        other = await create_product(test_session, vendor, title="Jaggery", mrp=60.0, selling_price=45.5)

        order = await OrderService.create_order(customer, order_payload([
            {"product": product.id, "quantity": 3},
            {"product": other.id, "quantity": 2},
        ]), test_session)

        assert order.subtotal == sum(item.price * item.quantity for item in order.items)
        assert order.subtotal == 391.0
        assert [item.total for item in order.items] == [300.0, 91.0]

    @pytest.mark.asyncio
    async def test_supplied_price_wins_over_live_price(self, test_session, customer, product):
        order = await OrderService.create_order(
            customer, order_payload([{"product": product.id, "quantity": 2, "price": 80}]), test_session
        )

        assert order.items[0].price == 80.0
        assert order.subtotal == 160.0

    @pytest.mark.asyncio
    async def test_items_are_immutable_snapshots(self, test_session, session_factory, customer, product):
        """Repricing a product later never changes placed orders."""
        order = await OrderService.create_order(
            customer, order_payload([{"product": product.id, "quantity": 1}]), test_session
        )

        await ProductRepository.update_fields(product.id, {"selling_price": 10.0}, test_session)
        await test_session.commit()

        async with session_factory() as fresh_session:
            reloaded = await OrderRepository.get_by_id(order.id, fresh_session)
        assert reloaded.items[0].price == 100.0
        assert reloaded.subtotal == 100.0

    @pytest.mark.asyncio
    async def test_attributed_to_first_items_vendor(self, test_session, customer, vendor, product):
        second_owner = await create_user(test_session, "Second Vendor", role=UserRole.VENDOR)
        second_vendor = await create_vendor(test_session, second_owner, business_name="Spice Hub")
        foreign = await create_product(test_session, second_vendor, title="Cardamom")

        order = await OrderService.create_order(customer, order_payload([
            {"product": product.id, "quantity": 1},
            {"product": foreign.id, "quantity": 1},
        ]), test_session)

        assert order.vendor_id == vendor.id
        assert len(order.items) == 2

    @pytest.mark.asyncio
    async def test_missing_product_creates_nothing(self, test_session, customer, product):
        with pytest.raises(ProductNotFoundException):
            await OrderService.create_order(customer, order_payload([
                {"product": product.id, "quantity": 1},
                {"product": 9999, "quantity": 1},
            ]), test_session)

        orders, total = await OrderRepository.get_by_user_id(customer.user_id, PageParams(), test_session)
        assert total == 0

    @pytest.mark.asyncio
    async def test_order_number_format(self, test_session, customer, product):
        first = await OrderService.create_order(
            customer, order_payload([{"product": product.id, "quantity": 1}]), test_session
        )
        second = await OrderService.create_order(
            customer, order_payload([{"product": product.id, "quantity": 1}]), test_session
        )

        assert re.fullmatch(r"EK\d{6}\d{4}", first.order_number)
        assert int(second.order_number[-4:]) == int(first.order_number[-4:]) + 1

    @pytest.mark.asyncio
    async def test_taken_order_number_is_skipped(self, test_session, customer, product):
        with patch("services.order.OrderRepository.number_exists", side_effect=[True, False]):
            order = await OrderService.create_order(
                customer, order_payload([{"product": product.id, "quantity": 1}]), test_session
            )

        assert order.order_number.endswith("0002")

    @pytest.mark.asyncio
    async def test_order_number_uses_local_day(self, test_session, customer, product):
        with patch("services.order.datetime", LateEveningUtc), \
                patch("config.ORDER_NUMBER_TIMEZONE", ZoneInfo("Asia/Kolkata")):
            order = await OrderService.create_order(
                customer, order_payload([{"product": product.id, "quantity": 1}]), test_session
            )

        assert order.order_number == "EK2610190001"

    @pytest.mark.asyncio
    async def test_sequence_restarts_at_local_midnight(self, test_session, customer, product):
        with patch("services.order.datetime", LateEveningUtc):
            with patch("config.ORDER_NUMBER_TIMEZONE", ZoneInfo("UTC")):
                evening = await OrderService.create_order(
                    customer, order_payload([{"product": product.id, "quantity": 1}]), test_session
                )
            with patch("config.ORDER_NUMBER_TIMEZONE", ZoneInfo("Asia/Kolkata")):
                next_day = await OrderService.create_order(
                    customer, order_payload([{"product": product.id, "quantity": 1}]), test_session
                )

        assert evening.order_number == "EK2610180001"
        assert next_day.order_number == "EK2610190001"

    @pytest.mark.asyncio
    async def test_payment_alias_and_snapshots(self, test_session, customer, product):
        order = await OrderService.create_order(
            customer, order_payload([{"product": product.id, "quantity": 1}], paymentMethod="cash_on_delivery",
                                    notes="Ring the bell"),
            test_session
        )

        assert order.payment_method == PaymentMethod.COD
        assert order.delivery_address["pincode"] == "411001"
        assert order.delivery_address["country"] == "India"
        assert order.customer_info["name"] == "Asha Customer"
        assert order.customer_info["phone"] == "9876543210"
        assert order.notes == {"customer": "Ring the bell"}


class TestCheckout:

    @pytest.mark.asyncio
    async def test_empty_cart_rejected(self, test_session, customer):
        with pytest.raises(EmptyCartException):
            await OrderService.checkout(customer, checkout_payload(), test_session)

        orders, total = await OrderRepository.get_by_user_id(customer.user_id, PageParams(), test_session)
        assert total == 0

    @pytest.mark.asyncio
    async def test_checkout_clears_cart(self, test_session, customer, product):
        await CartService.add_item(customer.user_id, product.id, test_session, quantity=2)

        orders = await OrderService.checkout(customer, checkout_payload(), test_session)

        assert len(orders) == 1
        assert orders[0].subtotal == 200.0
        assert orders[0].payment_method == PaymentMethod.UPI
        cart = await CartService.get(customer.user_id, test_session)
        assert cart.items == []

    @pytest.mark.asyncio
    async def test_one_order_per_vendor(self, test_session, customer, vendor, product):
        second_owner = await create_user(test_session, "Second Vendor", role=UserRole.VENDOR)
        second_vendor = await create_vendor(test_session, second_owner, business_name="Spice Hub")
        foreign = await create_product(test_session, second_vendor, title="Cardamom", mrp=40.0, selling_price=40.0)
        await CartService.add_item(customer.user_id, product.id, test_session)
        await CartService.add_item(customer.user_id, foreign.id, test_session, quantity=3)

        orders = await OrderService.checkout(customer, checkout_payload(deliveryOption="express"), test_session)

        by_vendor = {order.vendor_id: order for order in orders}
        assert set(by_vendor) == {vendor.id, second_vendor.id}
        assert by_vendor[vendor.id].subtotal == 100.0
        assert by_vendor[second_vendor.id].subtotal == 120.0
        assert all(order.shipping_cost == 100.0 for order in orders)
        assert len({order.order_number for order in orders}) == 2
