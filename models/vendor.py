import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, Integer, DateTime, String, Boolean, Float, ForeignKey, CheckConstraint, Index, JSON, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.product_category import ProductCategory
from enums.vendor_status import VendorStatus
from models.base import Base, utcnow

HH_MM = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class Vendor(Base):
    __tablename__ = 'vendors'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, unique=True)
    business_name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    business_type = Column(SQLEnum(ProductCategory), nullable=False)

    # {"street", "city", "state", "zip_code", "country"}
    business_address = Column(JSON, nullable=False, default=dict)
    # {"phone", "email", "website"}
    contact_info = Column(JSON, nullable=False, default=dict)
    # [{"day", "open", "close", "is_open"}]
    business_hours = Column(JSON, nullable=False, default=list)
    # {"radius", "min_order_amount", "delivery_fee", "estimated_delivery_time"}
    delivery_settings = Column(JSON, nullable=False, default=dict)

    status = Column(SQLEnum(VendorStatus), nullable=False, default=VendorStatus.PENDING)
    is_verified = Column(Boolean, nullable=False, default=False)
    verified_by = Column(Integer, ForeignKey('users.id'), nullable=True)
    verified_at = Column(DateTime, nullable=True)
    verification_notes = Column(Text, nullable=True)

    is_featured = Column(Boolean, nullable=False, default=False)
    commission_rate = Column(Float, nullable=False, default=5.0)
    rating_average = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)
    deleted_at = Column(DateTime, nullable=True)  # Soft delete; orders and products keep referencing the row

    # Optimistic concurrency: every UPDATE checks and bumps this
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship('User', foreign_keys=[user_id])

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint('commission_rate >= 0 AND commission_rate <= 20', name='check_vendor_commission_range'),
        CheckConstraint('rating_average >= 0 AND rating_average <= 5', name='check_vendor_rating_range'),
        Index('ix_vendors_type_status', 'business_type', 'status'),
        Index('ix_vendors_featured', 'is_featured'),
    )


class BusinessHoursDTO(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    day: str
    open: str
    close: str
    is_open: bool = True

    @field_validator("day")
    @classmethod
    def _valid_day(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in WEEKDAYS:
            raise ValueError(f"Invalid day: {value}")
        return value

    @field_validator("open", "close")
    @classmethod
    def _valid_time(cls, value: str) -> str:
        if not HH_MM.match(value):
            raise ValueError("Please add valid time format (HH:MM)")
        return value


class VendorDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    business_name: str | None = None
    description: str | None = None
    business_type: ProductCategory | None = None
    business_address: dict | None = None
    contact_info: dict | None = None
    business_hours: list[BusinessHoursDTO] | None = None
    delivery_settings: dict | None = None
    status: VendorStatus | None = None
    is_verified: bool | None = None
    verified_by: int | None = None
    verified_at: datetime | None = None
    verification_notes: str | None = None
    is_featured: bool | None = None
    commission_rate: float | None = Field(default=None, ge=0, le=20)
    rating_average: float | None = None
    rating_count: int | None = None
    version: int | None = None
    deleted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BusinessAddressDTO(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    street: str
    city: str
    state: str
    zip_code: str
    country: str = "India"


class ContactInfoDTO(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    phone: str
    email: str
    website: str | None = None


class DeliverySettingsDTO(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    radius: float = Field(default=10, ge=1, le=50)  # km
    min_order_amount: float = Field(default=0, ge=0)
    delivery_fee: float = Field(default=0, ge=0)
    estimated_delivery_time: int = Field(default=30, ge=15)  # minutes


class VendorProfilePayload(BaseModel):
    """Vendor profile fields a vendor may set. Accepts camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    business_name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    business_type: ProductCategory
    business_address: BusinessAddressDTO
    contact_info: ContactInfoDTO
    business_hours: list[BusinessHoursDTO] = []
    delivery_settings: DeliverySettingsDTO = DeliverySettingsDTO()


class VendorProfileUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    business_name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    business_type: ProductCategory | None = None
    business_address: BusinessAddressDTO | None = None
    contact_info: ContactInfoDTO | None = None
    business_hours: list[BusinessHoursDTO] | None = None
    delivery_settings: DeliverySettingsDTO | None = None
