"""
Catalog endpoints.

Create and update accept the loose payload shapes clients send (flat,
nested or bracketed price/inventory keys); utils/payload_normalizer.py
folds them onto ProductPayload inside the service.
"""

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enums.product_category import ProductCategory
from enums.product_sort import ProductSort
from repositories.product import ProductFilter
from services.product import ProductService
from utils.pagination import PageParams
from utils.permission_utils import Principal
from web.dependencies import get_current_principal, get_page, get_session
from web.responses import paginated, success

router = APIRouter(prefix="/api/products", tags=["products"])


def _products(products) -> list[dict]:
    return [p.to_response() for p in products]


@router.get("")
async def list_products(category: ProductCategory | None = Query(default=None),
                        min_price: float | None = Query(default=None, alias="minPrice"),
                        max_price: float | None = Query(default=None, alias="maxPrice"),
                        min_rating: float | None = Query(default=None, alias="minRating"),
                        vendor: int | None = Query(default=None),
                        search: str | None = Query(default=None),
                        sort_by: ProductSort = Query(default=ProductSort.NEWEST, alias="sortBy"),
                        params: PageParams = Depends(get_page),
                        session: AsyncSession = Depends(get_session)):
    product_filter = ProductFilter(category=category, min_price=min_price, max_price=max_price,
                                   min_rating=min_rating, vendor_id=vendor, search=search, sort_by=sort_by)
    products, total = await ProductService.list_products(product_filter, params, session)
    return paginated(_products(products), total, params, "Products")


@router.get("/featured")
async def featured_products(limit: int = Query(default=10, ge=1, le=50),
                            session: AsyncSession = Depends(get_session)):
    return success(_products(await ProductService.featured(session, limit=limit)))


@router.get("/search/suggestions")
async def search_suggestions(q: str = Query(default=""), session: AsyncSession = Depends(get_session)):
    return success(await ProductService.search_suggestions(q, session))


@router.get("/category/{category}")
async def products_by_category(category: ProductCategory,
                               params: PageParams = Depends(get_page),
                               session: AsyncSession = Depends(get_session)):
    products, total = await ProductService.by_category(category, params, session)
    return paginated(_products(products), total, params, "Products")


@router.get("/vendor/me")
async def my_products(params: PageParams = Depends(get_page),
                      principal: Principal = Depends(get_current_principal),
                      session: AsyncSession = Depends(get_session)):
    products, total = await ProductService.for_current_vendor(principal, params, session)
    return paginated(_products(products), total, params, "Products")


@router.get("/vendor/{vendor_id}")
async def vendor_products(vendor_id: int,
                          params: PageParams = Depends(get_page),
                          session: AsyncSession = Depends(get_session)):
    products, total = await ProductService.for_vendor(vendor_id, params, session)
    return paginated(_products(products), total, params, "Products")


@router.get("/{product_id}")
async def get_product(product_id: int, session: AsyncSession = Depends(get_session)):
    product = await ProductService.get(product_id, session)
    return success(product.to_response())


@router.post("", status_code=201)
async def create_product(raw: dict = Body(...),
                         principal: Principal = Depends(get_current_principal),
                         session: AsyncSession = Depends(get_session)):
    product = await ProductService.create(principal, raw, session)
    return success(product.to_response(), "Product created successfully")


@router.put("/{product_id}")
async def update_product(product_id: int, raw: dict = Body(...),
                         principal: Principal = Depends(get_current_principal),
                         session: AsyncSession = Depends(get_session)):
    product = await ProductService.update(product_id, principal, raw, session)
    return success(product.to_response(), "Product updated successfully")


@router.delete("/{product_id}")
async def delete_product(product_id: int,
                         principal: Principal = Depends(get_current_principal),
                         session: AsyncSession = Depends(get_session)):
    await ProductService.delete(product_id, principal, session)
    return success(None, "Product deleted successfully")
