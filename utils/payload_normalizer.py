"""
Normalization of product write payloads.

Product forms reach the API in three shapes:

    flat:       {"price": 120, "stock": 10, "unit": "kg"}
    nested:     {"price": {"mrp": 150, "sellingPrice": 120},
                 "inventory": {"stock": 10, "unit": "kg"}}
    bracketed:  {"price[mrp]": "150", "price[sellingPrice]": "120",
                 "inventory[stock]": "10", "inventory[unit]": "kg"}

Keys may be camelCase or snake_case. Everything is folded into the canonical
ProductPayload / ProductUpdatePayload before it reaches the service layer.
"""

import re
from typing import Any

from pydantic import ValidationError

from exceptions.base import ValidationException
from models.product import ProductPayload, ProductUpdatePayload

_BRACKET_KEY = re.compile(r"^(\w+)\[(\w+)\]$")
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

# Keys of the nested price / inventory records, mapped onto payload fields
_PRICE_FIELDS = {"mrp": "mrp", "selling_price": "selling_price"}
_INVENTORY_FIELDS = {
    "stock": "stock",
    "quantity": "stock",
    "min_stock": "min_stock",
    "max_stock": "max_stock",
    "unit": "unit",
}
_SCALAR_FIELDS = {
    "title", "description", "short_description", "category", "subcategory", "brand",
    "mrp", "selling_price", "min_stock", "max_stock", "is_active", "is_featured", "images",
}


def _snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _unflatten(raw: dict) -> dict:
    """Turn bracketed keys ("price[mrp]") into nested dicts and snake_case every key."""
    data: dict[str, Any] = {}
    for key, value in raw.items():
        match = _BRACKET_KEY.match(key)
        if match:
            outer, inner = _snake(match.group(1)), _snake(match.group(2))
            nested = data.setdefault(outer, {})
            if isinstance(nested, dict):
                nested[inner] = value
            continue
        key = _snake(key)
        if isinstance(value, dict):
            value = {_snake(k): v for k, v in value.items()}
            existing = data.get(key)
            if isinstance(existing, dict):
                existing.update(value)
                continue
        data[key] = value
    return data


def _split_tags(tags: Any) -> list[str] | None:
    if tags is None:
        return None
    if isinstance(tags, str):
        return [t.strip() for t in tags.split(",") if t.strip()]
    return [str(t).strip() for t in tags if str(t).strip()]


def _canonical_fields(raw: dict) -> dict:
    data = _unflatten(raw)
    fields: dict[str, Any] = {k: data[k] for k in _SCALAR_FIELDS if k in data}

    price = data.get("price")
    if isinstance(price, dict):
        for key, target in _PRICE_FIELDS.items():
            if price.get(key) not in (None, ""):
                fields[target] = price[key]
    elif price not in (None, ""):
        # A single flat price is both the MRP and the selling price unless MRP is given
        fields["selling_price"] = price
        fields.setdefault("mrp", price)

    inventory = data.get("inventory")
    if isinstance(inventory, dict):
        for key, target in _INVENTORY_FIELDS.items():
            if inventory.get(key) not in (None, ""):
                fields[target] = inventory[key]

    stock = data.get("stock")
    if isinstance(stock, dict):
        stock = stock.get("quantity")
    if stock not in (None, ""):
        fields["stock"] = stock

    unit = data.get("unit")
    if isinstance(unit, dict):
        unit = unit.get("type")
    if unit not in (None, ""):
        fields["unit"] = str(unit).strip().lower()

    tags = _split_tags(data.get("tags"))
    if tags is not None:
        fields["tags"] = tags
    return fields


def _first_error(error: ValidationError) -> ValidationException:
    first = error.errors()[0]
    field = ".".join(str(p) for p in first.get("loc", ())) or None
    message = first.get("msg", "Invalid product data")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return ValidationException(f"{field}: {message}" if field else message, field=field)


def requested_vendor_id(raw: dict) -> Any:
    """Vendor reference carried by the payload, if any (it may never change on update)."""
    for key in ("vendor", "vendorId", "vendor_id"):
        if raw.get(key) not in (None, ""):
            return raw[key]
    return None


def normalize_product_payload(raw: dict) -> ProductPayload:
    """
    Raises:
        ValidationException: if the folded payload is incomplete or invalid
    """
    try:
        return ProductPayload(**_canonical_fields(raw))
    except ValidationError as e:
        raise _first_error(e) from e


def normalize_product_update(raw: dict) -> ProductUpdatePayload:
    try:
        return ProductUpdatePayload(**_canonical_fields(raw))
    except ValidationError as e:
        raise _first_error(e) from e
