from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from models.cartItem import CartLinePayload, PriceSnapshotPayload
from services.cart import CartService
from utils.permission_utils import Principal
from web.dependencies import get_current_principal, get_session
from web.responses import success

router = APIRouter(prefix="/api/cart", tags=["cart"])


class AddToCartBody(BaseModel):
    """Display fields are optional; missing ones are taken from the live product."""
    product_id: int = Field(validation_alias=AliasChoices("productId", "product", "product_id"))
    quantity: int = 1
    # A bare number is the selling price; the object form carries mrp and discount too
    price: Annotated[float, Field(ge=0)] | PriceSnapshotPayload | None = None
    name: str | None = None
    image: str | None = None
    vendor_id: int | None = Field(default=None, validation_alias=AliasChoices("vendor", "vendorId", "vendor_id"))
    vendor_name: str | None = Field(default=None, validation_alias=AliasChoices("vendorName", "vendor_name"))


class QuantityBody(BaseModel):
    quantity: int


class SyncBody(BaseModel):
    items: list[CartLinePayload] = []


@router.get("")
async def get_cart(principal: Principal = Depends(get_current_principal),
                   session: AsyncSession = Depends(get_session)):
    cart = await CartService.get(principal.user_id, session)
    return success(cart.to_response())


@router.post("/add")
async def add_to_cart(body: AddToCartBody,
                      principal: Principal = Depends(get_current_principal),
                      session: AsyncSession = Depends(get_session)):
    cart = await CartService.add_item(
        principal.user_id, body.product_id, session, quantity=body.quantity, price=body.price,
        name=body.name, image=body.image, vendor_id=body.vendor_id, vendor_name=body.vendor_name,
    )
    return success(cart.to_response(), "Item added to cart")


@router.put("/update/{product_id}")
async def update_cart_item(product_id: int, body: QuantityBody,
                           principal: Principal = Depends(get_current_principal),
                           session: AsyncSession = Depends(get_session)):
    cart = await CartService.update_quantity(principal.user_id, product_id, body.quantity, session)
    return success(cart.to_response(), "Cart updated")


@router.delete("/remove/{product_id}")
async def remove_from_cart(product_id: int,
                           principal: Principal = Depends(get_current_principal),
                           session: AsyncSession = Depends(get_session)):
    cart = await CartService.remove_item(principal.user_id, product_id, session)
    return success(cart.to_response(), "Item removed from cart")


@router.delete("/clear")
async def clear_cart(principal: Principal = Depends(get_current_principal),
                     session: AsyncSession = Depends(get_session)):
    cart = await CartService.clear(principal.user_id, session)
    return success(cart.to_response(), "Cart cleared")


@router.put("/sync")
async def sync_cart(body: SyncBody,
                    principal: Principal = Depends(get_current_principal),
                    session: AsyncSession = Depends(get_session)):
    cart, skipped = await CartService.sync(principal.user_id, body.items, session)
    data = cart.to_response()
    data["skipped"] = skipped
    return success(data, "Cart synchronized")
