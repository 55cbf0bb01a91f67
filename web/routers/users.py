from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import AddressDTO
from services.user import UserService
from utils.permission_utils import Principal
from web.dependencies import get_current_principal, get_session
from web.responses import success

router = APIRouter(prefix="/api/users", tags=["users"])


class ProfileBody(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=20)


@router.get("/me")
async def get_me(principal: Principal = Depends(get_current_principal),
                 session: AsyncSession = Depends(get_session)):
    return success(await UserService.get(principal.user_id, session))


@router.put("/me")
async def update_me(body: ProfileBody,
                    principal: Principal = Depends(get_current_principal),
                    session: AsyncSession = Depends(get_session)):
    user = await UserService.update_profile(principal.user_id, session, name=body.name, phone=body.phone)
    return success(user, "Profile updated successfully")


@router.get("/me/addresses")
async def get_addresses(principal: Principal = Depends(get_current_principal),
                        session: AsyncSession = Depends(get_session)):
    user = await UserService.get(principal.user_id, session)
    return success(user.addresses or [])


@router.post("/me/addresses", status_code=201)
async def add_address(address: AddressDTO,
                      principal: Principal = Depends(get_current_principal),
                      session: AsyncSession = Depends(get_session)):
    user = await UserService.add_address(principal.user_id, address, session)
    return success(user.addresses, "Address added successfully")


@router.delete("/me/addresses/{index}")
async def remove_address(index: int,
                         principal: Principal = Depends(get_current_principal),
                         session: AsyncSession = Depends(get_session)):
    user = await UserService.remove_address(principal.user_id, index, session)
    return success(user.addresses, "Address removed successfully")
