from pydantic import BaseModel
from sqlalchemy import Column, Integer, Float, ForeignKey, CheckConstraint, Index, String

from models.base import Base


class OrderItem(Base):
    """
    Immutable line of an order.

    Captured once when the order is created; later product price or title
    changes never touch it.
    """
    __tablename__ = 'order_items'

    __table_args__ = (
        CheckConstraint('quantity >= 1', name='ck_order_item_quantity_positive'),
        CheckConstraint('price >= 0', name='ck_order_item_price_positive'),
        CheckConstraint('total >= 0', name='ck_order_item_total_positive'),

        Index('ix_order_items_order_id', 'order_id'),
        Index('ix_order_items_product_id', 'product_id'),
    )

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)
    name = Column(String(100), nullable=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)  # Unit price at purchase
    total = Column(Float, nullable=False)  # price * quantity


class OrderItemDTO(BaseModel):
    id: int | None = None
    order_id: int | None = None
    product_id: int | None = None
    name: str | None = None
    quantity: int | None = None
    price: float | None = None
    total: float | None = None
