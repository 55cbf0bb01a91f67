from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, Integer, DateTime, String, Boolean, ForeignKey, CheckConstraint, Index, UniqueConstraint, Text
from sqlalchemy import Enum as SQLEnum

from enums.review_status import ReviewStatus
from models.base import Base, utcnow


class Review(Base):
    __tablename__ = 'reviews'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)
    vendor_id = Column(Integer, ForeignKey('vendors.id'), nullable=False)
    order_id = Column(Integer, ForeignKey('orders.id'), nullable=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(100), nullable=True)
    comment = Column(String(1000), nullable=False)
    status = Column(SQLEnum(ReviewStatus), nullable=False, default=ReviewStatus.APPROVED)
    is_active = Column(Boolean, nullable=False, default=True)

    # Moderation record
    moderated_by = Column(Integer, ForeignKey('users.id'), nullable=True)
    moderated_at = Column(DateTime, nullable=True)
    moderation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint('rating >= 1 AND rating <= 5', name='check_review_rating_range'),
        UniqueConstraint('user_id', 'product_id', name='uq_reviews_user_product'),
        Index('ix_reviews_product_status', 'product_id', 'status', 'is_active'),
        Index('ix_reviews_vendor_status', 'vendor_id', 'status', 'is_active'),
    )


class ReviewDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    product_id: int | None = None
    vendor_id: int | None = None
    order_id: int | None = None
    rating: int | None = None
    title: str | None = None
    comment: str | None = None
    status: ReviewStatus | None = None
    is_active: bool | None = None
    moderated_by: int | None = None
    moderated_at: datetime | None = None
    moderation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReviewPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    product_id: int = Field(validation_alias=AliasChoices("productId", "product", "product_id"))
    order_id: int | None = None
    rating: int = Field(ge=1, le=5)
    title: str | None = Field(default=None, max_length=100)
    comment: str = Field(max_length=1000)

    @field_validator("comment")
    @classmethod
    def _comment_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please provide a comment")
        return value


class ReviewUpdatePayload(BaseModel):
    rating: int | None = Field(default=None, ge=1, le=5)
    title: str | None = Field(default=None, max_length=100)
    comment: str | None = Field(default=None, min_length=1, max_length=1000)
