"""
Unit Tests: product payload normalization

Flat, nested and bracketed product forms must all fold into the same
canonical payload.
"""

import pytest

from enums.product_category import ProductCategory
from enums.product_unit import ProductUnit
from exceptions.base import ValidationException
from utils.payload_normalizer import normalize_product_payload, normalize_product_update, requested_vendor_id

BASE = {"title": "Toor Dal", "description": "Unpolished toor dal", "category": "grocery"}


class TestNormalizeProductPayload:

    def test_flat_price_sets_both_prices(self):
        payload = normalize_product_payload({**BASE, "price": 120, "stock": 10, "unit": "KG"})

        assert payload.mrp == 120
        assert payload.selling_price == 120
        assert payload.stock == 10
        assert payload.unit == ProductUnit.KG
        assert payload.category == ProductCategory.GROCERY

    def test_nested_price_and_inventory(self):
        payload = normalize_product_payload({
            **BASE,
            "price": {"mrp": 150, "sellingPrice": 120},
            "inventory": {"stock": 8, "minStock": 2, "unit": "kg"},
        })

        assert (payload.mrp, payload.selling_price) == (150, 120)
        assert (payload.stock, payload.min_stock) == (8, 2)

    def test_bracketed_form_keys(self):
        payload = normalize_product_payload({
            **BASE,
            "price[mrp]": "150",
            "price[sellingPrice]": "120",
            "inventory[stock]": "10",
            "inventory[unit]": "kg",
        })

        assert (payload.mrp, payload.selling_price) == (150.0, 120.0)
        assert payload.stock == 10
        assert payload.unit == ProductUnit.KG

    def test_tags_from_comma_string(self):
        payload = normalize_product_payload({**BASE, "price": 90, "tags": "organic, protein ,,pulses"})

        assert payload.tags == ["organic", "protein", "pulses"]

    def test_selling_price_above_mrp(self):
        with pytest.raises(ValidationException) as exc_info:
            normalize_product_payload({**BASE, "price": {"mrp": 100, "sellingPrice": 120}})
        assert "Selling price cannot exceed MRP" in exc_info.value.message

    def test_missing_title_names_field(self):
        with pytest.raises(ValidationException) as exc_info:
            normalize_product_payload({"description": "x", "category": "grocery", "price": 10})
        assert exc_info.value.field == "title"


class TestNormalizeProductUpdate:

    def test_only_given_fields(self):
        update = normalize_product_update({"price": {"sellingPrice": 99}, "stock": 0})

        assert update.model_dump(exclude_none=True) == {"selling_price": 99, "stock": 0}

    def test_invalid_category(self):
        with pytest.raises(ValidationException):
            normalize_product_update({"category": "spaceships"})


class TestRequestedVendorId:

    @pytest.mark.parametrize("raw,expected", [
        ({"vendor": 4}, 4),
        ({"vendorId": "9"}, "9"),
        ({"vendor_id": ""}, None),
        ({}, None),
    ])
    def test_vendor_keys(self, raw, expected):
        assert requested_vendor_id(raw) == expected
