"""
API Tests: cart and order flows over HTTP
"""

import pytest

from enums.user_role import UserRole
from tests.factories import auth_headers, create_product, create_user, create_vendor

SHIPPING = {"street": "12 MG Road", "city": "Pune", "state": "MH", "zipCode": "411001", "phone": "9876543210"}


class TestCartApi:

    @pytest.mark.asyncio
    async def test_add_update_remove(self, client, customer, product):
        headers = auth_headers(customer)

        added = await client.post("/api/cart/add", json={"productId": product.id, "quantity": 2}, headers=headers)
        assert added.status_code == 200
        assert added.json()["data"]["item_count"] == 2
        assert added.json()["data"]["total"] == 200.0

        updated = await client.put(f"/api/cart/update/{product.id}", json={"quantity": 5}, headers=headers)
        assert updated.json()["data"]["items"][0]["quantity"] == 5

        removed = await client.delete(f"/api/cart/remove/{product.id}", headers=headers)
        assert removed.json()["data"]["items"] == []

    @pytest.mark.asyncio
    async def test_add_with_price_record(self, client, customer, product):
        response = await client.post("/api/cart/add", json={
            "productId": product.id,
            "quantity": 1,
            "price": {"mrp": 120, "sellingPrice": 100, "discountPercentage": 17},
        }, headers=auth_headers(customer))

        assert response.status_code == 200
        line = response.json()["data"]["items"][0]
        assert line["mrp"] == 120.0
        assert line["selling_price"] == 100.0
        assert line["discount_percentage"] == 17

    @pytest.mark.asyncio
    async def test_add_with_bare_price(self, client, customer, product):
        response = await client.post("/api/cart/add", json={"productId": product.id, "price": 90},
                                     headers=auth_headers(customer))

        line = response.json()["data"]["items"][0]
        assert line["selling_price"] == 90.0
        assert line["discount_percentage"] == 25

    @pytest.mark.asyncio
    async def test_update_missing_line(self, client, customer, product):
        response = await client.put(f"/api/cart/update/{product.id}", json={"quantity": 1},
                                    headers=auth_headers(customer))

        assert response.status_code == 404
        assert response.json()["message"] == "Item not found in cart"

    @pytest.mark.asyncio
    async def test_sync_reports_skipped(self, client, customer, product):
        response = await client.put("/api/cart/sync", json={"items": [
            {"product": product.id, "quantity": 3},
            {"product": 9999, "quantity": 1},
        ]}, headers=auth_headers(customer))

        assert response.status_code == 200
        assert response.json()["data"]["skipped"] == [9999]
        assert response.json()["data"]["item_count"] == 3


class TestOrderApi:

    @pytest.mark.asyncio
    async def test_create_and_fetch(self, client, customer, product):
        headers = auth_headers(customer)

        created = await client.post("/api/orders", json={
            "items": [{"product": product.id, "quantity": 2}],
            "shippingAddress": SHIPPING,
            "paymentMethod": "credit_card",
            "deliveryOption": "express",
        }, headers=headers)

        assert created.status_code == 201
        order = created.json()["data"]
        assert order["payment_method"] == "card"
        assert order["total"] == 300.0
        assert order["status"] == "pending"
        assert order["next_statuses"] == ["cancelled", "confirmed"]

        fetched = await client.get(f"/api/orders/{order['id']}", headers=headers)
        assert fetched.json()["data"]["order_number"] == order["order_number"]

        mine = await client.get("/api/orders/my/orders", headers=headers)
        assert mine.json()["pagination"]["totalOrders"] == 1

    @pytest.mark.asyncio
    async def test_checkout_empty_cart(self, client, customer):
        response = await client.post("/api/orders/checkout", json={
            "shippingAddress": SHIPPING, "paymentMethod": "cod",
        }, headers=auth_headers(customer))

        assert response.status_code == 400
        assert response.json()["message"] == "Cart is empty"

    @pytest.mark.asyncio
    async def test_checkout_from_cart(self, client, customer, product):
        headers = auth_headers(customer)
        await client.post("/api/cart/add", json={"product": product.id}, headers=headers)

        response = await client.post("/api/orders/checkout", json={
            "shippingAddress": SHIPPING, "paymentMethod": "upi",
        }, headers=headers)

        assert response.status_code == 201
        assert len(response.json()["data"]) == 1
        cart = await client.get("/api/cart", headers=headers)
        assert cart.json()["data"]["items"] == []

    @pytest.mark.asyncio
    async def test_missing_product(self, client, customer):
        response = await client.post("/api/orders", json={
            "items": [{"product": 424242, "quantity": 1}],
            "shippingAddress": SHIPPING,
            "paymentMethod": "cod",
        }, headers=auth_headers(customer))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_vendor_status_flow(self, client, test_session, customer, vendor_owner, product):
        created = await client.post("/api/orders", json={
            "items": [{"product": product.id, "quantity": 1}],
            "shippingAddress": SHIPPING,
            "paymentMethod": "cod",
        }, headers=auth_headers(customer))
        order_id = created.json()["data"]["id"]

        rival = await create_user(test_session, "Rival Vendor", role=UserRole.VENDOR)
        await create_vendor(test_session, rival, business_name="Rival Stores")
        denied = await client.put(f"/api/orders/{order_id}/status", json={"status": "shipped"},
                                  headers=auth_headers(rival))
        assert denied.status_code == 403

        invalid = await client.put(f"/api/orders/{order_id}/status", json={"status": "lost"},
                                   headers=auth_headers(vendor_owner))
        assert invalid.status_code == 400
        assert invalid.json()["message"] == "Invalid status: lost"

        delivered = await client.put(f"/api/orders/{order_id}/status", json={
            "status": "delivered", "trackingInfo": {"trackingNumber": "TRK9", "carrier": "Delhivery"},
        }, headers=auth_headers(vendor_owner))
        assert delivered.status_code == 200
        assert delivered.json()["data"]["payment_status"] == "paid"
        assert delivered.json()["data"]["next_statuses"] == []
        assert delivered.json()["data"]["tracking_info"]["tracking_number"] == "TRK9"

        cancel = await client.put(f"/api/orders/{order_id}/cancel", headers=auth_headers(customer))
        assert cancel.status_code == 400

    @pytest.mark.asyncio
    async def test_cancel_with_reason(self, client, customer, product):
        headers = auth_headers(customer)
        created = await client.post("/api/orders", json={
            "items": [{"product": product.id, "quantity": 1}],
            "shippingAddress": SHIPPING,
            "paymentMethod": "cod",
        }, headers=headers)
        order_id = created.json()["data"]["id"]

        cancelled = await client.put(f"/api/orders/{order_id}/cancel", json={"reason": "Changed my mind"},
                                     headers=headers)
        again = await client.put(f"/api/orders/{order_id}/cancel", headers=headers)

        assert cancelled.status_code == 200
        assert cancelled.json()["data"]["payment_status"] == "refunded"
        assert cancelled.json()["data"]["cancellation_reason"] == "Changed my mind"
        assert again.status_code == 400
        assert again.json()["message"] == "Order is already cancelled"

    @pytest.mark.asyncio
    async def test_admin_listing_includes_owner(self, client, customer, admin, product):
        await client.post("/api/orders", json={
            "items": [{"product": product.id, "quantity": 1}],
            "shippingAddress": SHIPPING,
            "paymentMethod": "cod",
        }, headers=auth_headers(customer))

        listing = await client.get("/api/orders", headers=auth_headers(admin))
        denied = await client.get("/api/orders", headers=auth_headers(customer))

        assert listing.status_code == 200
        assert listing.json()["data"][0]["user"]["name"] == "Asha Customer"
        assert denied.status_code == 403
