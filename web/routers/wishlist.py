from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from services.user import UserService
from utils.permission_utils import Principal
from web.dependencies import get_current_principal, get_session
from web.responses import success

router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])


class WishlistBody(BaseModel):
    product_id: int = Field(validation_alias=AliasChoices("productId", "product", "product_id"))


@router.get("")
async def get_wishlist(principal: Principal = Depends(get_current_principal),
                       session: AsyncSession = Depends(get_session)):
    products = await UserService.get_wishlist(principal.user_id, session)
    return success([p.to_response() for p in products])


@router.post("")
async def add_to_wishlist(body: WishlistBody,
                          principal: Principal = Depends(get_current_principal),
                          session: AsyncSession = Depends(get_session)):
    wishlist = await UserService.add_to_wishlist(principal.user_id, body.product_id, session)
    return success(wishlist, "Product added to wishlist")


@router.get("/check/{product_id}")
async def check_wishlist(product_id: int,
                         principal: Principal = Depends(get_current_principal),
                         session: AsyncSession = Depends(get_session)):
    in_wishlist = await UserService.is_in_wishlist(principal.user_id, product_id, session)
    return success({"in_wishlist": in_wishlist})


@router.delete("/clear")
async def clear_wishlist(principal: Principal = Depends(get_current_principal),
                         session: AsyncSession = Depends(get_session)):
    await UserService.clear_wishlist(principal.user_id, session)
    return success([], "Wishlist cleared")


@router.delete("/{product_id}")
async def remove_from_wishlist(product_id: int,
                               principal: Principal = Depends(get_current_principal),
                               session: AsyncSession = Depends(get_session)):
    wishlist = await UserService.remove_from_wishlist(principal.user_id, product_id, session)
    return success(wishlist, "Product removed from wishlist")
