from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, String, CheckConstraint, Enum as SQLEnum, Text, JSON, Index
from sqlalchemy.orm import relationship

from enums.delivery_option import DeliveryOption
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from models.base import Base, utcnow
from models.orderItem import OrderItemDTO
from utils.order_state_machine import OrderStateMachine


class Order(Base):
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True)
    # EK + YYMMDD + 4-digit daily sequence, see repositories/order_sequence.py
    order_number = Column(String(20), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    vendor_id = Column(Integer, ForeignKey('vendors.id'), nullable=False)
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.PENDING)

    # Pricing (total = subtotal + shipping_cost + tax - discount, computed at creation)
    subtotal = Column(Float, nullable=False)
    tax = Column(Float, nullable=False, default=0.0)
    shipping_cost = Column(Float, nullable=False, default=0.0)
    discount = Column(Float, nullable=False, default=0.0)
    total = Column(Float, nullable=False)

    payment_method = Column(SQLEnum(PaymentMethod), nullable=False)
    payment_status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)

    # Snapshots taken at creation: {"name", "email", "phone", "address"}
    customer_info = Column(JSON, nullable=False, default=dict)
    # {"line1", "line2", "city", "state", "pincode", "country"}
    delivery_address = Column(JSON, nullable=False, default=dict)
    delivery_option = Column(SQLEnum(DeliveryOption), nullable=False, default=DeliveryOption.STANDARD)

    # {"tracking_number", "carrier", "estimated_delivery", "actual_delivery", "status"}
    tracking_info = Column(JSON, nullable=False, default=dict)
    # {"customer", "vendor", "admin"}
    notes = Column(JSON, nullable=False, default=dict)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    delivered_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    user = relationship('User')
    items = relationship(
        'OrderItem',
        order_by='OrderItem.id',
        cascade='all, delete-orphan',
        lazy='selectin',
    )

    __table_args__ = (
        CheckConstraint('subtotal >= 0', name='check_order_subtotal_positive'),
        CheckConstraint('tax >= 0', name='check_order_tax_positive'),
        CheckConstraint('shipping_cost >= 0', name='check_order_shipping_positive'),
        CheckConstraint('discount >= 0', name='check_order_discount_positive'),
        CheckConstraint('total >= 0', name='check_order_total_positive'),
        Index('uq_orders_order_number', 'order_number', unique=True),
        Index('ix_orders_user_created', 'user_id', 'created_at'),
        Index('ix_orders_vendor_created', 'vendor_id', 'created_at'),
        Index('ix_orders_status', 'status'),
    )


class OrderDTO(BaseModel):
    id: int | None = None
    order_number: str | None = None
    user_id: int | None = None
    vendor_id: int | None = None
    status: OrderStatus | None = None
    subtotal: float | None = None
    tax: float | None = None
    shipping_cost: float | None = None
    discount: float | None = None
    total: float | None = None
    payment_method: PaymentMethod | None = None
    payment_status: PaymentStatus | None = None
    customer_info: dict | None = None
    delivery_address: dict | None = None
    delivery_option: DeliveryOption | None = None
    tracking_info: dict | None = None
    notes: dict | None = None
    cancellation_reason: str | None = None
    items: list[OrderItemDTO] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None

    @computed_field
    @property
    def next_statuses(self) -> list[OrderStatus]:
        """Statuses on the forward path from the current one, for vendor and admin UIs."""
        if self.status is None:
            return []
        return OrderStateMachine.get_valid_transitions(self.status)


class ShippingAddressPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str | None = None
    phone: str | None = None


class OrderLinePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(alias="product")
    quantity: int = Field(ge=1)
    price: float | None = Field(default=None, ge=0)


class CheckoutPayload(BaseModel):
    """
    Delivery and payment details of a checkout.

    payment_method accepts the client aliases handled by
    PaymentMethod.from_string; any delivery option other than express is
    standard delivery.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    shipping_address: ShippingAddressPayload
    payment_method: PaymentMethod
    delivery_option: DeliveryOption = DeliveryOption.STANDARD
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("payment_method", mode="before")
    @classmethod
    def _payment_alias(cls, value):
        if isinstance(value, str):
            return PaymentMethod.from_string(value)
        return value

    @field_validator("delivery_option", mode="before")
    @classmethod
    def _delivery_option(cls, value):
        if isinstance(value, str) and value.strip().lower() == DeliveryOption.EXPRESS.value:
            return DeliveryOption.EXPRESS
        return DeliveryOption.STANDARD


class CreateOrderPayload(CheckoutPayload):
    items: list[OrderLinePayload] = Field(min_length=1)


class TrackingPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tracking_number: str | None = None
    carrier: str | None = None
    estimated_delivery: datetime | None = None
    actual_delivery: datetime | None = None
    status: str | None = None
