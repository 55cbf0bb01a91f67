"""
API Tests: products, vendors, reviews, wishlist and the admin console
"""

import pytest

from tests.factories import auth_headers, create_product

PRODUCT_FORM = {
    "title": "Cold Pressed Coconut Oil",
    "description": "1 litre, wood pressed",
    "category": "grocery",
    "price[mrp]": "400",
    "price[sellingPrice]": "340",
    "inventory[stock]": "25",
    "inventory[unit]": "liter",
}


class TestProductApi:

    @pytest.mark.asyncio
    async def test_public_listing_with_pagination(self, client, test_session, vendor):
        for index in range(3):
            await create_product(test_session, vendor, title=f"Pulses Pack {index}")
        response = await client.get("/api/products", params={"limit": 2})

        assert response.status_code == 200
        assert len(response.json()["data"]) == 2
        assert response.json()["pagination"]["totalProducts"] == 3
        assert response.json()["pagination"]["hasNextPage"] is True

    @pytest.mark.asyncio
    async def test_vendor_creates_from_bracketed_form(self, client, vendor_owner, vendor):
        response = await client.post("/api/products", json=PRODUCT_FORM, headers=auth_headers(vendor_owner))

        assert response.status_code == 201
        product = response.json()["data"]
        assert product["vendor_id"] == vendor.id
        assert product["mrp"] == 400.0
        assert product["selling_price"] == 340.0
        assert product["discount_percentage"] == 15
        assert product["in_stock"] is True
        assert product["discount_amount"] == 60.0

    @pytest.mark.asyncio
    async def test_invalid_form_is_400(self, client, vendor_owner, vendor):
        response = await client.post("/api/products", json={**PRODUCT_FORM, "price[sellingPrice]": "500"},
                                     headers=auth_headers(vendor_owner))

        assert response.status_code == 400
        assert "Selling price cannot exceed MRP" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_customer_cannot_create(self, client, customer):
        response = await client.post("/api/products", json=PRODUCT_FORM, headers=auth_headers(customer))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_deleted_product_is_404(self, client, vendor_owner, product):
        deleted = await client.delete(f"/api/products/{product.id}", headers=auth_headers(vendor_owner))
        response = await client.get(f"/api/products/{product.id}")

        assert deleted.status_code == 200
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_search_suggestions(self, client, product):
        response = await client.get("/api/products/search/suggestions", params={"q": "rice"})

        assert response.json()["data"]["products"] == ["Basmati Rice"]


class TestVendorApi:

    @pytest.mark.asyncio
    async def test_profile_lifecycle(self, client, customer, admin):
        headers = auth_headers(customer)
        created = await client.post("/api/vendors/profile", json={
            "businessName": "Chai Point",
            "businessType": "beverages",
            "businessAddress": {"street": "9 Brigade Road", "city": "Bengaluru", "state": "KA", "zipCode": "560001"},
            "contactInfo": {"phone": "9988776655", "email": "chai@example.com"},
        }, headers=headers)
        vendor_id = created.json()["data"]["id"]

        assert created.status_code == 200
        assert created.json()["data"]["status"] == "pending"
        assert created.json()["data"]["products"] == []

        public = await client.get("/api/vendors")
        assert public.json()["pagination"]["totalVendors"] == 0

        verified = await client.patch(f"/api/vendors/{vendor_id}/verify", json={}, headers=auth_headers(admin))
        assert verified.json()["data"]["status"] == "active"

        public = await client.get("/api/vendors")
        assert public.json()["pagination"]["totalVendors"] == 1


class TestReviewAndWishlistApi:

    @pytest.mark.asyncio
    async def test_review_updates_product_rating(self, client, customer, product):
        created = await client.post("/api/reviews", json={"product": product.id, "rating": 4, "comment": "Aromatic"},
                                    headers=auth_headers(customer))
        duplicate = await client.post("/api/reviews", json={"product": product.id, "rating": 2, "comment": "Meh"},
                                      headers=auth_headers(customer))
        fetched = await client.get(f"/api/products/{product.id}")

        assert created.status_code == 201
        assert duplicate.status_code == 400
        assert fetched.json()["data"]["rating_average"] == 4.0
        assert fetched.json()["data"]["rating_count"] == 1

    @pytest.mark.asyncio
    async def test_wishlist(self, client, customer, product):
        headers = auth_headers(customer)

        added = await client.post("/api/wishlist", json={"productId": product.id}, headers=headers)
        check = await client.get(f"/api/wishlist/check/{product.id}", headers=headers)
        listing = await client.get("/api/wishlist", headers=headers)
        cleared = await client.delete("/api/wishlist/clear", headers=headers)

        assert added.status_code == 200
        assert check.json()["data"] == {"in_wishlist": True}
        assert [p["id"] for p in listing.json()["data"]] == [product.id]
        assert cleared.status_code == 200


class TestAdminApi:

    @pytest.mark.asyncio
    async def test_dashboard(self, client, customer, admin, product):
        response = await client.get("/api/admin/dashboard", headers=auth_headers(admin))

        assert response.status_code == 200
        totals = response.json()["data"]["totals"]
        assert totals["users"] == 3
        assert totals["vendors"] == 1
        assert totals["products"] == 1
        assert totals["orders"] == 0

    @pytest.mark.asyncio
    async def test_deactivate_user_blocks_access(self, client, customer, admin):
        response = await client.patch(f"/api/admin/users/{customer.user_id}/status", json={"isActive": False},
                                      headers=auth_headers(admin))
        blocked = await client.get("/api/cart", headers=auth_headers(customer))

        assert response.status_code == 200
        assert blocked.status_code == 401

    @pytest.mark.asyncio
    async def test_feature_product(self, client, admin, product):
        response = await client.patch(f"/api/admin/products/{product.id}/status", json={"isFeatured": True},
                                      headers=auth_headers(admin))
        featured = await client.get("/api/products/featured")

        assert response.status_code == 200
        assert [p["id"] for p in featured.json()["data"]] == [product.id]
