from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from models.base import utcnow
from models.cart import Cart, CartDTO
from models.cartItem import CartItem, CartItemDTO


class CartRepository:
    """
    Cart persistence.

    Every mutating method touches the cart row (updated_at), which makes the
    mapper bump `Cart.version` and check the previously read version in the
    same UPDATE. A concurrent writer that got there first surfaces as
    StaleDataError at flush time.
    """

    @staticmethod
    async def _get_or_create_entity(user_id: int, session: AsyncSession) -> Cart:
        stmt = select(Cart).where(Cart.user_id == user_id)
        cart = await session_execute(stmt, session)
        cart = cart.scalar()
        if cart is None:
            cart = Cart(user_id=user_id, items=[])
            session.add(cart)
            await session_flush(session)
        return cart

    @staticmethod
    def _find_line(cart: Cart, product_id: int) -> CartItem | None:
        for item in cart.items:
            if item.product_id == product_id:
                return item
        return None

    @staticmethod
    async def _touch_and_flush(cart: Cart, session: AsyncSession) -> CartDTO:
        cart.updated_at = utcnow()
        await session_flush(session)
        return CartDTO.model_validate(cart, from_attributes=True)

    @staticmethod
    async def get_or_create(user_id: int, session: AsyncSession) -> CartDTO:
        cart = await CartRepository._get_or_create_entity(user_id, session)
        return CartDTO.model_validate(cart, from_attributes=True)

    @staticmethod
    async def add_item(user_id: int, cart_item: CartItemDTO, session: AsyncSession) -> CartDTO:
        """
        Upsert by product: an existing line has its quantity increased by
        cart_item.quantity, otherwise a new line is appended with the given snapshot.
        """
        cart = await CartRepository._get_or_create_entity(user_id, session)
        existing = CartRepository._find_line(cart, cart_item.product_id)
        if existing is not None:
            existing.quantity = existing.quantity + cart_item.quantity
        else:
            cart.items.append(CartItem(**cart_item.model_dump(exclude_none=True, exclude={"id", "cart_id"})))
        return await CartRepository._touch_and_flush(cart, session)

    @staticmethod
    async def set_quantity(user_id: int, product_id: int, quantity: int, session: AsyncSession) -> CartDTO | None:
        """Returns None when the product has no line in the cart."""
        cart = await CartRepository._get_or_create_entity(user_id, session)
        existing = CartRepository._find_line(cart, product_id)
        if existing is None:
            return None
        existing.quantity = quantity
        return await CartRepository._touch_and_flush(cart, session)

    @staticmethod
    async def remove_item(user_id: int, product_id: int, session: AsyncSession) -> CartDTO:
        cart = await CartRepository._get_or_create_entity(user_id, session)
        existing = CartRepository._find_line(cart, product_id)
        if existing is not None:
            cart.items.remove(existing)
        return await CartRepository._touch_and_flush(cart, session)

    @staticmethod
    async def clear(user_id: int, session: AsyncSession) -> CartDTO:
        cart = await CartRepository._get_or_create_entity(user_id, session)
        cart.items.clear()
        return await CartRepository._touch_and_flush(cart, session)

    @staticmethod
    async def replace_lines(user_id: int, lines: list[CartItemDTO], session: AsyncSession) -> CartDTO:
        """
        Merge lines into the cart: the given quantity replaces the stored one,
        products not in the cart yet are appended. Lines not mentioned are kept.
        """
        cart = await CartRepository._get_or_create_entity(user_id, session)
        for line in lines:
            existing = CartRepository._find_line(cart, line.product_id)
            if existing is not None:
                existing.quantity = line.quantity
            else:
                cart.items.append(CartItem(**line.model_dump(exclude_none=True, exclude={"id", "cart_id"})))
        return await CartRepository._touch_and_flush(cart, session)
