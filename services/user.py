import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import session_commit, session_rollback
from enums.user_role import UserRole
from exceptions.base import ValidationException
from exceptions.product import ProductNotFoundException
from exceptions.user import (
    UserNotFoundException,
    EmailAlreadyRegisteredException,
    AdminAlreadyExistsException,
    WishlistItemExistsException,
    AddressNotFoundException,
)
from models.product import ProductDTO
from models.user import UserDTO, AddressDTO
from repositories.product import ProductRepository
from repositories.user import UserRepository
from utils.pagination import PageParams
from utils.permission_utils import Principal, require_admin

logger = logging.getLogger(__name__)


class UserService:

    @staticmethod
    async def _ensure_no_other_admin(session: AsyncSession, user_id: int | None = None) -> None:
        admin = await UserRepository.get_admin(session)
        if admin is not None and admin.id != user_id:
            raise AdminAlreadyExistsException()

    @staticmethod
    async def create_user(name: str, email: str, session: AsyncSession,
                          role: UserRole = UserRole.USER, phone: str | None = None) -> UserDTO:
        """
        Create a user record.

        Accounts are normally provisioned by the auth service; this is used by
        scripts/create_admin.py and tests.

        Raises:
            EmailAlreadyRegisteredException: if the email is taken
            AdminAlreadyExistsException: if role is admin and an admin exists
        """
        if not name or not name.strip():
            raise ValidationException("Please add a name", field="name")
        if await UserRepository.get_by_email(email, session) is not None:
            raise EmailAlreadyRegisteredException(email)
        if role == UserRole.ADMIN:
            await UserService._ensure_no_other_admin(session)

        user_dto = UserDTO(name=name.strip(), email=email.strip().lower(), phone=phone, role=role,
                           is_active=True, addresses=[], wishlist=[])
        try:
            user_id = await UserRepository.create(user_dto, session)
            await session_commit(session)
        except IntegrityError:
            # Lost a race on the email or single-admin index
            await session_rollback(session)
            if role == UserRole.ADMIN:
                raise AdminAlreadyExistsException()
            raise EmailAlreadyRegisteredException(email)

        logger.info(f"[User] Created user {user_id} with role {role.value}")
        return await UserRepository.get_by_id(user_id, session)

    @staticmethod
    async def get(user_id: int, session: AsyncSession) -> UserDTO:
        user = await UserRepository.get_by_id(user_id, session)
        if user is None:
            raise UserNotFoundException(user_id)
        return user

    @staticmethod
    async def update_profile(user_id: int, session: AsyncSession,
                             name: str | None = None, phone: str | None = None) -> UserDTO:
        await UserService.get(user_id, session)
        if name is not None and not name.strip():
            raise ValidationException("Name cannot be empty", field="name")
        await UserRepository.update(
            UserDTO(id=user_id, name=name.strip() if name else None, phone=phone), session
        )
        await session_commit(session)
        return await UserService.get(user_id, session)

    # === Address book ===

    @staticmethod
    async def add_address(user_id: int, address: AddressDTO, session: AsyncSession) -> UserDTO:
        """
        Append an address. The first address, or one flagged is_default,
        becomes the default and clears the flag on the others.
        """
        user = await UserService.get(user_id, session)
        addresses = [a.model_copy() for a in user.addresses or []]
        new_address = address.model_copy(update={"country": address.country or config.DEFAULT_COUNTRY})
        if not addresses:
            new_address.is_default = True
        if new_address.is_default:
            for existing in addresses:
                existing.is_default = False
        addresses.append(new_address)

        await UserRepository.update(UserDTO(id=user_id, addresses=addresses), session)
        await session_commit(session)
        return await UserService.get(user_id, session)

    @staticmethod
    async def remove_address(user_id: int, index: int, session: AsyncSession) -> UserDTO:
        user = await UserService.get(user_id, session)
        addresses = [a.model_copy() for a in user.addresses or []]
        if index < 0 or index >= len(addresses):
            raise AddressNotFoundException(index)
        removed = addresses.pop(index)
        if removed.is_default and addresses:
            addresses[0].is_default = True

        await UserRepository.update(UserDTO(id=user_id, addresses=addresses), session)
        await session_commit(session)
        return await UserService.get(user_id, session)

    # === Admin operations ===

    @staticmethod
    async def change_role(user_id: int, role: UserRole, admin: Principal, session: AsyncSession) -> UserDTO:
        require_admin(admin)
        user = await UserService.get(user_id, session)
        if role == UserRole.ADMIN:
            await UserService._ensure_no_other_admin(session, user_id=user.id)
        if user.role == UserRole.ADMIN and role != UserRole.ADMIN and user.id == admin.user_id:
            raise ValidationException("Admin cannot demote themselves", field="role")

        try:
            await UserRepository.update(UserDTO(id=user_id, role=role), session)
            await session_commit(session)
        except IntegrityError:
            await session_rollback(session)
            raise AdminAlreadyExistsException()
        logger.info(f"[User] Role of user {user_id} changed {user.role.value} -> {role.value} by admin {admin.user_id}")
        return await UserService.get(user_id, session)

    @staticmethod
    async def promote_to_vendor(user_id: int, session: AsyncSession) -> None:
        """Side effect of vendor profile creation; admins keep their role. Caller commits."""
        user = await UserService.get(user_id, session)
        if user.role == UserRole.USER:
            await UserRepository.update(UserDTO(id=user_id, role=UserRole.VENDOR), session)

    @staticmethod
    async def demote_vendor(user_id: int, session: AsyncSession) -> None:
        """Vendor profile removed: back to the user role. Caller commits."""
        user = await UserService.get(user_id, session)
        if user.role == UserRole.VENDOR:
            await UserRepository.update(UserDTO(id=user_id, role=UserRole.USER), session)

    @staticmethod
    async def set_active(user_id: int, is_active: bool, admin: Principal, session: AsyncSession) -> UserDTO:
        require_admin(admin)
        user = await UserService.get(user_id, session)
        if user.id == admin.user_id and not is_active:
            raise ValidationException("Admin cannot deactivate themselves", field="is_active")
        await UserRepository.update(UserDTO(id=user_id, is_active=is_active), session)
        await session_commit(session)
        logger.info(f"[User] User {user_id} {'activated' if is_active else 'deactivated'} by admin {admin.user_id}")
        return await UserService.get(user_id, session)

    @staticmethod
    async def list_users(params: PageParams, admin: Principal, session: AsyncSession,
                         role: UserRole | None = None, is_active: bool | None = None,
                         search: str | None = None) -> tuple[list[UserDTO], int]:
        require_admin(admin)
        return await UserRepository.get_paginated(params, session, role=role, is_active=is_active, search=search)

    # === Wishlist ===

    @staticmethod
    async def get_wishlist(user_id: int, session: AsyncSession) -> list[ProductDTO]:
        """Wishlisted products that are still active, in insertion order."""
        user = await UserService.get(user_id, session)
        product_ids = user.wishlist or []
        products = await ProductRepository.get_by_ids(product_ids, session, include_inactive=False)
        return [products[pid] for pid in product_ids if pid in products]

    @staticmethod
    async def add_to_wishlist(user_id: int, product_id: int, session: AsyncSession) -> list[int]:
        user = await UserService.get(user_id, session)
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundException(product_id)
        wishlist = list(user.wishlist or [])
        if product_id in wishlist:
            raise WishlistItemExistsException(product_id)
        wishlist.append(product_id)
        await UserRepository.update(UserDTO(id=user_id, wishlist=wishlist), session)
        await session_commit(session)
        return wishlist

    @staticmethod
    async def remove_from_wishlist(user_id: int, product_id: int, session: AsyncSession) -> list[int]:
        user = await UserService.get(user_id, session)
        wishlist = [pid for pid in user.wishlist or [] if pid != product_id]
        await UserRepository.update(UserDTO(id=user_id, wishlist=wishlist), session)
        await session_commit(session)
        return wishlist

    @staticmethod
    async def is_in_wishlist(user_id: int, product_id: int, session: AsyncSession) -> bool:
        user = await UserService.get(user_id, session)
        return product_id in (user.wishlist or [])

    @staticmethod
    async def clear_wishlist(user_id: int, session: AsyncSession) -> None:
        await UserService.get(user_id, session)
        await UserRepository.update(UserDTO(id=user_id, wishlist=[]), session)
        await session_commit(session)
