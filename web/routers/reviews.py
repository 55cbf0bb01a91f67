from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from enums.review_status import ReviewStatus
from models.review import ReviewPayload, ReviewUpdatePayload
from services.review import ReviewService
from utils.pagination import PageParams
from utils.permission_utils import Principal
from web.dependencies import get_admin_principal, get_current_principal, get_page, get_session
from web.responses import paginated, success

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


class ModerationBody(BaseModel):
    status: ReviewStatus
    reason: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None


@router.get("/product/{product_id}")
async def product_reviews(product_id: int,
                          params: PageParams = Depends(get_page),
                          session: AsyncSession = Depends(get_session)):
    reviews, total = await ReviewService.list_for_product(product_id, params, session)
    return paginated(reviews, total, params, "Reviews")


@router.get("/vendor/{vendor_id}")
async def vendor_reviews(vendor_id: int,
                         params: PageParams = Depends(get_page),
                         session: AsyncSession = Depends(get_session)):
    reviews, total = await ReviewService.list_for_vendor(vendor_id, params, session)
    return paginated(reviews, total, params, "Reviews")


@router.get("/user/me")
async def my_reviews(params: PageParams = Depends(get_page),
                     principal: Principal = Depends(get_current_principal),
                     session: AsyncSession = Depends(get_session)):
    reviews, total = await ReviewService.list_for_user(principal, params, session)
    return paginated(reviews, total, params, "Reviews")


@router.get("")
async def all_reviews(status: ReviewStatus | None = Query(default=None),
                      params: PageParams = Depends(get_page),
                      admin: Principal = Depends(get_admin_principal),
                      session: AsyncSession = Depends(get_session)):
    reviews, total = await ReviewService.list_all(admin, params, session, status=status)
    return paginated(reviews, total, params, "Reviews")


@router.post("", status_code=201)
async def create_review(payload: ReviewPayload,
                        principal: Principal = Depends(get_current_principal),
                        session: AsyncSession = Depends(get_session)):
    review = await ReviewService.create(principal, payload, session)
    return success(review, "Review added successfully")


@router.put("/{review_id}")
async def update_review(review_id: int, payload: ReviewUpdatePayload,
                        principal: Principal = Depends(get_current_principal),
                        session: AsyncSession = Depends(get_session)):
    review = await ReviewService.update(review_id, principal, payload, session)
    return success(review, "Review updated successfully")


@router.delete("/{review_id}")
async def delete_review(review_id: int,
                        principal: Principal = Depends(get_current_principal),
                        session: AsyncSession = Depends(get_session)):
    await ReviewService.delete(review_id, principal, session)
    return success(None, "Review deleted successfully")


@router.patch("/{review_id}/moderate")
async def moderate_review(review_id: int, body: ModerationBody,
                          admin: Principal = Depends(get_admin_principal),
                          session: AsyncSession = Depends(get_session)):
    review = await ReviewService.moderate(review_id, admin, body.status, session,
                                          reason=body.reason, is_active=body.is_active)
    return success(review, "Review moderated successfully")
