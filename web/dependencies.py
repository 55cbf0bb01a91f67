"""
Request-scoped dependencies: database session and caller resolution.
"""

import logging
from typing import AsyncIterator

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db_session
from exceptions.auth import AuthenticationException
from exceptions.user import UserInactiveException
from repositories.user import UserRepository
from utils.pagination import PageParams, page_params
from utils.permission_utils import Principal, require_admin
from utils.security import decode_token, extract_bearer

logger = logging.getLogger(__name__)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_db_session() as session:
        yield session


async def _resolve(authorization: str, session: AsyncSession) -> Principal:
    user_id = decode_token(extract_bearer(authorization))
    user = await UserRepository.get_by_id(user_id, session)
    if user is None:
        raise AuthenticationException()
    if not user.is_active:
        raise UserInactiveException(user.id)
    return Principal(user_id=user.id, role=user.role)


async def get_current_principal(authorization: str | None = Header(default=None),
                                session: AsyncSession = Depends(get_session)) -> Principal:
    """
    Raises:
        AuthenticationException: missing, invalid or expired token, or unknown user
        UserInactiveException: the account was deactivated
    """
    return await _resolve(authorization, session)


async def get_optional_principal(authorization: str | None = Header(default=None),
                                 session: AsyncSession = Depends(get_session)) -> Principal | None:
    if not authorization:
        return None
    return await _resolve(authorization, session)


async def get_admin_principal(principal: Principal = Depends(get_current_principal)) -> Principal:
    require_admin(principal)
    return principal


def get_page(page: int | None = Query(default=None), limit: int | None = Query(default=None)) -> PageParams:
    return page_params(page, limit)
