from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint, Float, String, UniqueConstraint

from models.base import Base


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    # Display snapshot taken when the line was created
    name = Column(String(100), nullable=False)
    mrp = Column(Float, nullable=False, default=0.0)
    selling_price = Column(Float, nullable=False, default=0.0)
    discount_percentage = Column(Integer, nullable=False, default=0)
    image = Column(String, nullable=True)
    vendor_id = Column(Integer, nullable=True)
    vendor_name = Column(String(100), nullable=True)

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_quantity_positive'),
        UniqueConstraint('cart_id', 'product_id', name='uq_cart_items_cart_product'),
    )


class CartItemDTO(BaseModel):
    id: int | None = None
    cart_id: int | None = None
    product_id: int | None = None
    quantity: int | None = None
    name: str | None = None
    mrp: float | None = None
    selling_price: float | None = None
    discount_percentage: int | None = None
    image: str | None = None
    vendor_id: int | None = None
    vendor_name: str | None = None


class CartLinePayload(BaseModel):
    """One line of a client-held cart sent for merging into the server cart."""
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(alias="product")
    quantity: int = Field(default=1, ge=1)


class PriceSnapshotPayload(BaseModel):
    """Price record a client captured for a cart line. Missing parts come from the live product."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    mrp: float | None = Field(default=None, ge=0)
    selling_price: float | None = Field(default=None, ge=0)
    discount_percentage: int | None = Field(default=None, ge=0, le=100)
