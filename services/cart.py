import logging

from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import session_commit
from exceptions.base import ConcurrentModificationException, ValidationException
from exceptions.cart import CartItemNotFoundException
from exceptions.product import ProductNotFoundException
from models.cart import CartDTO
from models.cartItem import CartItemDTO, CartLinePayload, PriceSnapshotPayload
from models.product import ProductDTO, calculate_discount_percentage
from repositories.cart import CartRepository
from repositories.product import ProductRepository
from repositories.vendor import VendorRepository
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)

UNKNOWN_VENDOR = "Unknown Vendor"


def _cart_conflict(error: Exception, attempts: int) -> Exception:
    return ConcurrentModificationException("Cart")


def _snapshot(product: ProductDTO, quantity: int, vendor_name: str | None, **overrides) -> CartItemDTO:
    """Cart line for a product; explicit overrides win over the live product values."""
    values = {
        "product_id": product.id,
        "quantity": quantity,
        "name": product.title,
        "mrp": product.mrp,
        "selling_price": product.selling_price,
        "discount_percentage": product.discount_percentage,
        "image": product.images[0] if product.images else None,
        "vendor_id": product.vendor_id,
        "vendor_name": vendor_name or UNKNOWN_VENDOR,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return CartItemDTO(**values)


def _price_record(product: ProductDTO, price: float | PriceSnapshotPayload | None) -> dict:
    """
    mrp, selling price and discount for a new line.

    A bare number is the selling price. Parts the caller leaves out are taken
    from the live product, and the discount is derived unless it was given.
    """
    if price is None:
        return {}
    if not isinstance(price, PriceSnapshotPayload):
        price = PriceSnapshotPayload(selling_price=price)
    selling_price = product.selling_price if price.selling_price is None else price.selling_price
    mrp = product.mrp if price.mrp is None else price.mrp
    if mrp is None or selling_price > mrp:
        mrp = selling_price
    discount = price.discount_percentage
    if discount is None:
        discount = calculate_discount_percentage(mrp, selling_price)
    return {"mrp": mrp, "selling_price": selling_price, "discount_percentage": discount}


class CartService:
    """
    Server-side cart, one per user.

    Mutations are read-modify-write on the cart row and are guarded by its
    version column; a lost race is retried from a fresh read and reported as
    409 once the retry budget is spent.
    """

    @staticmethod
    async def get(user_id: int, session: AsyncSession) -> CartDTO:
        cart = await CartRepository.get_or_create(user_id, session)
        await session_commit(session)
        return cart

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.OPTIMISTIC_LOCK_MAX_RETRIES, on_exhausted=_cart_conflict)
    async def add_item(user_id: int, product_id: int, session: AsyncSession, quantity: int = 1,
                       price: float | PriceSnapshotPayload | None = None, name: str | None = None,
                       image: str | None = None, vendor_id: int | None = None,
                       vendor_name: str | None = None) -> CartDTO:
        """
        Add a product to the cart, or increase the quantity of its line.

        Raises:
            ProductNotFoundException: if the product does not exist
            ValidationException: if quantity is below 1
        """
        if quantity < 1:
            raise ValidationException("Quantity must be at least 1", field="quantity")
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundException(product_id)

        if vendor_name is None:
            vendor = await VendorRepository.get_by_id(product.vendor_id, session)
            vendor_name = vendor.business_name if vendor is not None else None
        line = _snapshot(product, quantity, vendor_name, name=name, image=image, vendor_id=vendor_id,
                         **_price_record(product, price))

        cart = await CartRepository.add_item(user_id, line, session)
        await session_commit(session)
        logger.info(f"[Cart] User {user_id} added product {product_id} x{quantity} (cart version {cart.version})")
        return cart

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.OPTIMISTIC_LOCK_MAX_RETRIES, on_exhausted=_cart_conflict)
    async def update_quantity(user_id: int, product_id: int, quantity: int, session: AsyncSession) -> CartDTO:
        """
        Set the quantity of a line; zero or less removes it.

        Raises:
            CartItemNotFoundException: if the product has no line in the cart
        """
        if quantity <= 0:
            cart = await CartRepository.remove_item(user_id, product_id, session)
        else:
            cart = await CartRepository.set_quantity(user_id, product_id, quantity, session)
            if cart is None:
                raise CartItemNotFoundException(user_id, product_id)
        await session_commit(session)
        return cart

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.OPTIMISTIC_LOCK_MAX_RETRIES, on_exhausted=_cart_conflict)
    async def remove_item(user_id: int, product_id: int, session: AsyncSession) -> CartDTO:
        cart = await CartRepository.remove_item(user_id, product_id, session)
        await session_commit(session)
        return cart

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.OPTIMISTIC_LOCK_MAX_RETRIES, on_exhausted=_cart_conflict)
    async def clear(user_id: int, session: AsyncSession) -> CartDTO:
        cart = await CartRepository.clear(user_id, session)
        await session_commit(session)
        logger.info(f"[Cart] User {user_id} cleared cart")
        return cart

    @staticmethod
    @TransactionManager.with_retry(max_retries=config.OPTIMISTIC_LOCK_MAX_RETRIES, on_exhausted=_cart_conflict)
    async def sync(user_id: int, lines: list[CartLinePayload], session: AsyncSession) -> tuple[CartDTO, list[int]]:
        """
        Merge a client-held cart into the server cart.

        The client quantity replaces the stored one; products that do not
        exist or are inactive are skipped.

        Returns:
            (cart, skipped product ids)
        """
        products = await ProductRepository.get_by_ids([line.product_id for line in lines], session,
                                                      include_inactive=False)
        vendors = await VendorRepository.get_by_ids([p.vendor_id for p in products.values()], session)

        merged: dict[int, CartItemDTO] = {}
        skipped = []
        for line in lines:
            product = products.get(line.product_id)
            if product is None:
                skipped.append(line.product_id)
                continue
            vendor = vendors.get(product.vendor_id)
            merged[product.id] = _snapshot(product, line.quantity, vendor.business_name if vendor else None)

        cart = await CartRepository.replace_lines(user_id, list(merged.values()), session)
        await session_commit(session)
        if skipped:
            logger.info(f"[Cart] Sync for user {user_id} skipped unknown products: {skipped}")
        return cart, skipped
