import re
from datetime import datetime

from pydantic import BaseModel, Field, model_validator
from sqlalchemy import Column, Integer, DateTime, String, Boolean, Float, ForeignKey, CheckConstraint, Index, JSON, event
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.product_category import ProductCategory
from enums.product_unit import ProductUnit
from models.base import Base, utcnow


class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey('vendors.id'), nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False)
    short_description = Column(String(200), nullable=True)
    category = Column(SQLEnum(ProductCategory), nullable=False)
    subcategory = Column(String(100), nullable=True)
    brand = Column(String(100), nullable=True)

    # Price record
    mrp = Column(Float, nullable=False)
    selling_price = Column(Float, nullable=False)
    discount_percentage = Column(Integer, nullable=False, default=0)  # Recomputed on every save

    # Inventory record
    stock = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=5)
    max_stock = Column(Integer, nullable=True)
    unit = Column(SQLEnum(ProductUnit), nullable=False, default=ProductUnit.PIECE)

    images = Column(JSON, nullable=False, default=list)  # Image URLs, first is primary
    tags = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)  # Soft delete flag
    is_featured = Column(Boolean, nullable=False, default=False)

    rating_average = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)
    total_sold = Column(Integer, nullable=False, default=0)
    revenue = Column(Float, nullable=False, default=0.0)

    slug = Column(String(120), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    vendor = relationship('Vendor')

    __table_args__ = (
        CheckConstraint('mrp >= 0', name='check_product_mrp_positive'),
        CheckConstraint('selling_price >= 0', name='check_product_selling_price_positive'),
        CheckConstraint('stock >= 0', name='check_product_stock_positive'),
        CheckConstraint('rating_average >= 0 AND rating_average <= 5', name='check_product_rating_range'),
        Index('ix_products_vendor_active', 'vendor_id', 'is_active'),
        Index('ix_products_category_active', 'category', 'is_active'),
        Index('ix_products_selling_price', 'selling_price'),
        Index('ix_products_slug', 'slug'),
    )


def calculate_discount_percentage(mrp: float | None, selling_price: float | None) -> int:
    if not mrp or selling_price is None:
        return 0
    return round((mrp - selling_price) / mrp * 100)


def slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


@event.listens_for(Product, "before_insert")
@event.listens_for(Product, "before_update")
def _derive_price_and_slug(mapper, connection, target: Product):
    target.discount_percentage = calculate_discount_percentage(target.mrp, target.selling_price)
    if target.title and not target.slug:
        target.slug = slugify(target.title)


class ProductDTO(BaseModel):
    id: int | None = None
    vendor_id: int | None = None
    title: str | None = None
    description: str | None = None
    short_description: str | None = None
    category: ProductCategory | None = None
    subcategory: str | None = None
    brand: str | None = None
    mrp: float | None = None
    selling_price: float | None = None
    discount_percentage: int | None = None
    stock: int | None = None
    min_stock: int | None = None
    max_stock: int | None = None
    unit: ProductUnit | None = None
    images: list[str] | None = None
    tags: list[str] | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    rating_average: float | None = None
    rating_count: int | None = None
    total_sold: int | None = None
    revenue: float | None = None
    slug: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def in_stock(self) -> bool:
        return (self.stock or 0) > 0

    @property
    def low_stock(self) -> bool:
        return 0 < (self.stock or 0) <= (self.min_stock or 0)

    @property
    def out_of_stock(self) -> bool:
        return (self.stock or 0) == 0

    @property
    def discount_amount(self) -> float:
        if self.mrp is None or self.selling_price is None:
            return 0.0
        return round(self.mrp - self.selling_price, 2)

    def to_response(self) -> dict:
        """Serialized product plus derived stock and discount flags."""
        data = self.model_dump(mode="json")
        data.update(
            in_stock=self.in_stock,
            low_stock=self.low_stock,
            out_of_stock=self.out_of_stock,
            discount_amount=self.discount_amount,
        )
        return data


class ProductPayload(BaseModel):
    """
    Canonical product write payload.

    Clients send prices and stock flat, nested or as bracketed form keys;
    utils/payload_normalizer.py folds all of them into this shape.
    """
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    short_description: str | None = Field(default=None, max_length=200)
    category: ProductCategory
    subcategory: str | None = None
    brand: str | None = None
    mrp: float = Field(ge=0)
    selling_price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=5, ge=0)
    max_stock: int | None = Field(default=None, ge=0)
    unit: ProductUnit = ProductUnit.PIECE
    tags: list[str] = []
    images: list[str] = []
    is_active: bool = True
    is_featured: bool = False

    @model_validator(mode="after")
    def _selling_price_within_mrp(self):
        if self.selling_price > self.mrp:
            raise ValueError("Selling price cannot exceed MRP")
        return self


class ProductUpdatePayload(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    short_description: str | None = Field(default=None, max_length=200)
    category: ProductCategory | None = None
    subcategory: str | None = None
    brand: str | None = None
    mrp: float | None = Field(default=None, ge=0)
    selling_price: float | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    min_stock: int | None = Field(default=None, ge=0)
    max_stock: int | None = Field(default=None, ge=0)
    unit: ProductUnit | None = None
    tags: list[str] | None = None
    images: list[str] | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
