from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, DateTime, String, Boolean, Index, JSON, text
from sqlalchemy import Enum as SQLEnum

from enums.user_role import UserRole
from models.base import Base, utcnow


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(20), nullable=True)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.USER)
    is_active = Column(Boolean, nullable=False, default=True)

    # Address book: [{"label", "line1", "line2", "city", "state", "pincode", "country", "is_default"}]
    addresses = Column(JSON, nullable=False, default=list)
    # Wishlist: product ids in insertion order
    wishlist = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        # At most one admin. SQLEnum persists member names, hence 'ADMIN'.
        Index(
            'uq_users_single_admin', 'role', unique=True,
            sqlite_where=text("role = 'ADMIN'"),
            postgresql_where=text("role = 'ADMIN'"),
        ),
    )


class AddressDTO(BaseModel):
    label: str | None = "home"
    line1: str
    line2: str | None = None
    city: str
    state: str
    pincode: str
    country: str | None = None
    is_default: bool = False


class UserDTO(BaseModel):
    id: int | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    role: UserRole | None = None
    is_active: bool | None = None
    addresses: list[AddressDTO] | None = None
    wishlist: list[int] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
