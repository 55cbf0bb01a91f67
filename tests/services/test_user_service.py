"""
Unit Tests: UserService

Account creation, the address book, admin role management and wishlists.
"""

import pytest

from enums.user_role import UserRole
from exceptions.auth import PermissionDeniedException
from exceptions.base import ValidationException
from exceptions.product import ProductNotFoundException
from exceptions.user import (
    AddressNotFoundException,
    AdminAlreadyExistsException,
    EmailAlreadyRegisteredException,
    WishlistItemExistsException,
)
from models.user import AddressDTO
from repositories.product import ProductRepository
from services.user import UserService
from tests.factories import create_product
from utils.pagination import PageParams


def address(label: str = "home", **overrides) -> AddressDTO:
    data = {"label": label, "line1": "221 Park Street", "city": "Kolkata", "state": "WB", "pincode": "700016"}
    data.update(overrides)
    return AddressDTO(**data)


class TestCreateUser:

    @pytest.mark.asyncio
    async def test_email_normalized(self, test_session):
        user = await UserService.create_user("  Meera  ", "Meera@Example.COM ", test_session)

        assert user.name == "Meera"
        assert user.email == "meera@example.com"
        assert user.role == UserRole.USER
        assert user.is_active is True

    @pytest.mark.asyncio
    async def test_duplicate_email_any_case(self, test_session):
        await UserService.create_user("Meera", "meera@example.com", test_session)

        with pytest.raises(EmailAlreadyRegisteredException):
            await UserService.create_user("Other Meera", "MEERA@example.com", test_session)

    @pytest.mark.asyncio
    async def test_single_admin(self, test_session, admin):
        with pytest.raises(AdminAlreadyExistsException):
            await UserService.create_user("Second Admin", "root2@example.com", test_session, role=UserRole.ADMIN)

    @pytest.mark.asyncio
    async def test_blank_name(self, test_session):
        with pytest.raises(ValidationException):
            await UserService.create_user("   ", "blank@example.com", test_session)


class TestProfile:

    @pytest.mark.asyncio
    async def test_update_keeps_unset_fields(self, test_session, customer):
        await UserService.update_profile(customer.user_id, test_session, phone="9000000001")
        user = await UserService.update_profile(customer.user_id, test_session, name="Asha K")

        assert user.name == "Asha K"
        assert user.phone == "9000000001"

    @pytest.mark.asyncio
    async def test_empty_name_rejected(self, test_session, customer):
        with pytest.raises(ValidationException):
            await UserService.update_profile(customer.user_id, test_session, name=" ")


class TestAddressBook:

    @pytest.mark.asyncio
    async def test_first_address_is_default(self, test_session, customer):
        user = await UserService.add_address(customer.user_id, address(), test_session)

        assert len(user.addresses) == 1
        assert user.addresses[0].is_default is True
        assert user.addresses[0].country == "India"

    @pytest.mark.asyncio
    async def test_new_default_clears_others(self, test_session, customer):
        await UserService.add_address(customer.user_id, address("home"), test_session)
        await UserService.add_address(customer.user_id, address("gym"), test_session)
        user = await UserService.add_address(customer.user_id, address("work", is_default=True), test_session)

        assert [a.is_default for a in user.addresses] == [False, False, True]

    @pytest.mark.asyncio
    async def test_removing_default_promotes_first(self, test_session, customer):
        await UserService.add_address(customer.user_id, address("home"), test_session)
        await UserService.add_address(customer.user_id, address("work"), test_session)

        user = await UserService.remove_address(customer.user_id, 0, test_session)

        assert [a.label for a in user.addresses] == ["work"]
        assert user.addresses[0].is_default is True

    @pytest.mark.asyncio
    async def test_remove_out_of_range(self, test_session, customer):
        with pytest.raises(AddressNotFoundException):
            await UserService.remove_address(customer.user_id, 3, test_session)


class TestAdminOperations:

    @pytest.mark.asyncio
    async def test_change_role(self, test_session, customer, admin):
        user = await UserService.change_role(customer.user_id, UserRole.VENDOR, admin, test_session)

        assert user.role == UserRole.VENDOR

    @pytest.mark.asyncio
    async def test_no_second_admin_by_promotion(self, test_session, customer, admin):
        with pytest.raises(AdminAlreadyExistsException):
            await UserService.change_role(customer.user_id, UserRole.ADMIN, admin, test_session)

    @pytest.mark.asyncio
    async def test_admin_cannot_demote_self(self, test_session, admin):
        with pytest.raises(ValidationException):
            await UserService.change_role(admin.user_id, UserRole.USER, admin, test_session)

    @pytest.mark.asyncio
    async def test_non_admin_rejected(self, test_session, customer, vendor_owner):
        with pytest.raises(PermissionDeniedException):
            await UserService.set_active(customer.user_id, False, vendor_owner, test_session)

    @pytest.mark.asyncio
    async def test_deactivate(self, test_session, customer, admin):
        user = await UserService.set_active(customer.user_id, False, admin, test_session)

        assert user.is_active is False

    @pytest.mark.asyncio
    async def test_list_users_by_role(self, test_session, customer, vendor_owner, admin):
        users, total = await UserService.list_users(PageParams(), admin, test_session, role=UserRole.VENDOR)

        assert total == 1
        assert users[0].id == vendor_owner.user_id


class TestWishlist:

    @pytest.mark.asyncio
    async def test_add_check_remove(self, test_session, customer, product):
        assert await UserService.add_to_wishlist(customer.user_id, product.id, test_session) == [product.id]
        assert await UserService.is_in_wishlist(customer.user_id, product.id, test_session)

        assert await UserService.remove_from_wishlist(customer.user_id, product.id, test_session) == []
        assert not await UserService.is_in_wishlist(customer.user_id, product.id, test_session)

    @pytest.mark.asyncio
    async def test_duplicate_and_missing(self, test_session, customer, product):
        await UserService.add_to_wishlist(customer.user_id, product.id, test_session)

        with pytest.raises(WishlistItemExistsException):
            await UserService.add_to_wishlist(customer.user_id, product.id, test_session)
        with pytest.raises(ProductNotFoundException):
            await UserService.add_to_wishlist(customer.user_id, 9999, test_session)

    @pytest.mark.asyncio
    async def test_inactive_products_hidden(self, test_session, customer, vendor, product):
        other = await create_product(test_session, vendor, title="Poha")
        await UserService.add_to_wishlist(customer.user_id, product.id, test_session)
        await UserService.add_to_wishlist(customer.user_id, other.id, test_session)

        await ProductRepository.update_fields(product.id, {"is_active": False}, test_session)
        await test_session.commit()

        wishlist = await UserService.get_wishlist(customer.user_id, test_session)
        assert [p.id for p in wishlist] == [other.id]

    @pytest.mark.asyncio
    async def test_clear(self, test_session, customer, product):
        await UserService.add_to_wishlist(customer.user_id, product.id, test_session)

        await UserService.clear_wishlist(customer.user_id, test_session)

        assert await UserService.get_wishlist(customer.user_id, test_session) == []
