"""
Unit Tests: ProductService

Catalog writes by vendors and admins, filtering and search suggestions.
"""

import pytest

from enums.product_category import ProductCategory
from enums.product_sort import ProductSort
from enums.user_role import UserRole
from exceptions.auth import PermissionDeniedException
from exceptions.base import ValidationException
from exceptions.product import ProductNotFoundException
from exceptions.vendor import VendorProfileNotFoundException
from repositories.product import ProductFilter
from services.product import ProductService
from tests.factories import create_product, create_user, create_vendor
from utils.pagination import PageParams

FORM = {
    "title": "Alphonso Mangoes",
    "description": "Ratnagiri alphonso, one dozen",
    "category": "produce",
    "price": {"mrp": 800, "sellingPrice": 650},
    "inventory": {"stock": 20, "unit": "dozen"},
    "tags": "mango, seasonal",
}


class TestCreateProduct:

    @pytest.mark.asyncio
    async def test_vendor_creates_for_own_profile(self, test_session, vendor_owner, vendor):
        product = await ProductService.create(vendor_owner, FORM, test_session)

        assert product.vendor_id == vendor.id
        assert product.selling_price == 650
        assert product.discount_percentage == 19
        assert product.slug == "alphonso-mangoes"
        assert product.tags == ["mango", "seasonal"]

    @pytest.mark.asyncio
    async def test_vendor_cannot_pick_another_vendor(self, test_session, vendor_owner, vendor):
        rival_owner = await create_user(test_session, "Rival Vendor", role=UserRole.VENDOR)
        rival = await create_vendor(test_session, rival_owner, business_name="Rival Stores")

        product = await ProductService.create(vendor_owner, {**FORM, "vendor": rival.id}, test_session)

        assert product.vendor_id == vendor.id

    @pytest.mark.asyncio
    async def test_admin_names_vendor(self, test_session, admin, vendor):
        product = await ProductService.create(admin, {**FORM, "vendorId": str(vendor.id)}, test_session)

        assert product.vendor_id == vendor.id

    @pytest.mark.asyncio
    async def test_customer_rejected(self, test_session, customer):
        with pytest.raises(PermissionDeniedException):
            await ProductService.create(customer, FORM, test_session)

    @pytest.mark.asyncio
    async def test_vendor_without_profile(self, test_session):
        newcomer = await create_user(test_session, "New Vendor", role=UserRole.VENDOR)

        with pytest.raises(VendorProfileNotFoundException):
            await ProductService.create(newcomer, FORM, test_session)


class TestUpdateProduct:

    @pytest.mark.asyncio
    async def test_price_checked_against_stored_mrp(self, test_session, vendor_owner, product):
        with pytest.raises(ValidationException):
            await ProductService.update(product.id, vendor_owner, {"price": {"sellingPrice": 500}}, test_session)

    @pytest.mark.asyncio
    async def test_title_change_regenerates_slug(self, test_session, vendor_owner, product):
        updated = await ProductService.update(product.id, vendor_owner, {"title": "Sona Masoori Rice"}, test_session)

        assert updated.slug == "sona-masoori-rice"

    @pytest.mark.asyncio
    async def test_vendor_is_fixed(self, test_session, admin, product):
        with pytest.raises(ValidationException):
            await ProductService.update(product.id, admin, {"vendor": product.vendor_id + 1}, test_session)

    @pytest.mark.asyncio
    async def test_other_vendor_rejected(self, test_session, product):
        rival_owner = await create_user(test_session, "Rival Vendor", role=UserRole.VENDOR)
        await create_vendor(test_session, rival_owner, business_name="Rival Stores")

        with pytest.raises(PermissionDeniedException):
            await ProductService.update(product.id, rival_owner, {"stock": 1}, test_session)

    @pytest.mark.asyncio
    async def test_delete_is_soft(self, test_session, vendor_owner, product):
        await ProductService.delete(product.id, vendor_owner, test_session)

        with pytest.raises(ProductNotFoundException):
            await ProductService.get(product.id, test_session)
        own, total = await ProductService.for_current_vendor(vendor_owner, PageParams(), test_session)
        assert total == 1
        assert own[0].is_active is False


class TestCatalogQueries:

    @pytest.mark.asyncio
    async def test_filters_and_sorting(self, test_session, vendor):
        await create_product(test_session, vendor, title="Cheap Salt", mrp=20, selling_price=18)
        await create_product(test_session, vendor, title="Saffron", mrp=500, selling_price=450)
        await create_product(test_session, vendor, title="Paneer", mrp=90, selling_price=80,
                             category=ProductCategory.DAIRY)

        products, total = await ProductService.list_products(
            ProductFilter(category=ProductCategory.GROCERY, min_price=10, sort_by=ProductSort.PRICE_DESC),
            PageParams(), test_session
        )

        assert total == 2
        assert [p.title for p in products] == ["Saffron", "Cheap Salt"]

    @pytest.mark.asyncio
    async def test_search_matches_tags(self, test_session, vendor):
        await create_product(test_session, vendor, title="Millet Mix", tags=["gluten-free"])

        products, total = await ProductService.list_products(ProductFilter(search="GLUTEN"), PageParams(),
                                                             test_session)

        assert total == 1
        assert products[0].title == "Millet Mix"

    @pytest.mark.asyncio
    async def test_suggestions(self, test_session, vendor, product):
        suggestions = await ProductService.search_suggestions("bas", test_session)

        assert suggestions["products"] == ["Basmati Rice"]
        assert suggestions["vendors"] == []

        suggestions = await ProductService.search_suggestions("dai", test_session)
        assert suggestions["categories"] == ["dairy"]

    @pytest.mark.asyncio
    async def test_suggestion_query_too_short(self, test_session):
        with pytest.raises(ValidationException):
            await ProductService.search_suggestions("b", test_session)

    @pytest.mark.asyncio
    async def test_featured(self, test_session, admin, vendor, product):
        await create_product(test_session, vendor, title="Kesar Kulfi")
        await ProductService.set_product_status(product.id, admin, test_session, is_featured=True)

        featured = await ProductService.featured(test_session)

        assert [p.id for p in featured] == [product.id]
