# A cart belongs to exactly one user and is created lazily on first access.
# It is never deleted, only emptied. Lines carry a price snapshot taken when
# the product was added; order creation re-resolves prices, so the snapshot
# is a display cache.
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from models.base import Base, utcnow
from models.cartItem import CartItemDTO


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, unique=True)
    # Optimistic concurrency: every cart mutation touches updated_at, which bumps this
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    items = relationship(
        'CartItem',
        order_by='CartItem.id',
        cascade='all, delete-orphan',
        lazy='selectin',
    )

    __mapper_args__ = {"version_id_col": version}


class CartDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    version: int | None = None
    items: list[CartItemDTO] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total(self) -> float:
        return round(sum(item.selling_price * item.quantity for item in self.items), 2)

    def to_response(self) -> dict:
        data = self.model_dump(mode="json")
        data.update(item_count=self.item_count, total=self.total)
        return data
