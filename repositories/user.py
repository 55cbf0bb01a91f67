from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from enums.user_role import UserRole
from models.user import UserDTO, User
from utils.pagination import PageParams


class UserRepository:
    @staticmethod
    async def get_by_id(user_id: int, session: AsyncSession) -> UserDTO | None:
        stmt = select(User).where(User.id == user_id)
        user = await session_execute(stmt, session)
        user = user.scalar()
        if user is not None:
            return UserDTO.model_validate(user, from_attributes=True)
        else:
            return user

    @staticmethod
    async def get_by_email(email: str, session: AsyncSession) -> UserDTO | None:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        user = await session_execute(stmt, session)
        user = user.scalar()
        if user is not None:
            return UserDTO.model_validate(user, from_attributes=True)
        return None

    @staticmethod
    async def get_admin(session: AsyncSession) -> UserDTO | None:
        stmt = select(User).where(User.role == UserRole.ADMIN)
        user = await session_execute(stmt, session)
        user = user.scalar()
        if user is not None:
            return UserDTO.model_validate(user, from_attributes=True)
        return None

    @staticmethod
    async def get_by_ids(user_ids: list[int], session: AsyncSession) -> dict[int, UserDTO]:
        if not user_ids:
            return {}
        stmt = select(User).where(User.id.in_(set(user_ids)))
        users = await session_execute(stmt, session)
        return {u.id: UserDTO.model_validate(u, from_attributes=True) for u in users.scalars().all()}

    @staticmethod
    async def create(user_dto: UserDTO, session: AsyncSession) -> int:
        user = User(**user_dto.model_dump(exclude_none=True))
        session.add(user)
        await session_flush(session)
        return user.id

    @staticmethod
    async def update(user_dto: UserDTO, session: AsyncSession) -> None:
        user_dto_dict = user_dto.model_dump(exclude={"id", "created_at", "updated_at"})
        none_keys = [k for k, v in user_dto_dict.items() if v is None]
        for k in none_keys:
            user_dto_dict.pop(k)
        stmt = update(User).where(User.id == user_dto.id).values(**user_dto_dict)
        await session_execute(stmt, session)

    @staticmethod
    async def get_paginated(params: PageParams, session: AsyncSession,
                            role: UserRole | None = None, is_active: bool | None = None,
                            search: str | None = None) -> tuple[list[UserDTO], int]:
        """
        Users newest first with optional role, activity and name/email filters.

        Returns:
            Tuple of (users list, total count)
        """
        conditions = []
        if role is not None:
            conditions.append(User.role == role)
        if is_active is not None:
            conditions.append(User.is_active == is_active)
        if search:
            pattern = f"%{search.strip().lower()}%"
            conditions.append(or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern)))

        users_stmt = (
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc(), User.id.desc())
            .limit(params.limit)
            .offset(params.offset)
        )
        users_count_stmt = select(func.count(User.id)).where(*conditions)

        users = await session_execute(users_stmt, session)
        users = [UserDTO.model_validate(user, from_attributes=True) for user in users.scalars().all()]

        users_count = await session_execute(users_count_stmt, session)
        return users, users_count.scalar_one()

    @staticmethod
    async def count_by_role(session: AsyncSession) -> dict[str, int]:
        stmt = select(User.role, func.count(User.id)).group_by(User.role)
        rows = await session_execute(stmt, session)
        return {role.value: count for role, count in rows.all()}

    @staticmethod
    async def get_recent(limit: int, session: AsyncSession) -> list[UserDTO]:
        stmt = select(User).order_by(User.created_at.desc(), User.id.desc()).limit(limit)
        users = await session_execute(stmt, session)
        return [UserDTO.model_validate(u, from_attributes=True) for u in users.scalars().all()]
