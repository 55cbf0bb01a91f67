import logging

from sqlalchemy.ext.asyncio import AsyncSession

from enums.product_category import ProductCategory
from enums.vendor_status import VendorStatus
from models.product import ProductDTO
from models.vendor import VendorDTO
from repositories.order import OrderRepository
from repositories.product import ProductRepository, ProductFilter
from repositories.review import ReviewRepository
from repositories.user import UserRepository
from repositories.vendor import VendorRepository
from utils.pagination import PageParams
from utils.permission_utils import Principal, require_admin

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


class AdminService:
    """
    Cross-collection views for the admin console.

    Moderation actions live with their owning services (UserService,
    VendorService, ProductService, OrderService, ReviewService); this class
    only aggregates and lists.
    """

    @staticmethod
    async def dashboard(admin: Principal, session: AsyncSession) -> dict:
        require_admin(admin)
        users_by_role = await UserRepository.count_by_role(session)
        vendors_by_status = await VendorRepository.count_by_status(session)
        products_by_category = await ProductRepository.count_by_category(session)
        orders_by_status = await OrderRepository.count_by_status(session)

        recent_users = await UserRepository.get_recent(RECENT_LIMIT, session)
        recent_vendors = await VendorRepository.get_recent(RECENT_LIMIT, session)
        recent_products = await ProductRepository.get_recent(RECENT_LIMIT, session)
        recent_orders = await OrderRepository.get_recent(RECENT_LIMIT, session)
        recent_reviews = await ReviewRepository.get_recent(RECENT_LIMIT, session)

        return {
            "totals": {
                "users": sum(users_by_role.values()),
                "vendors": sum(vendors_by_status.values()),
                "products": sum(products_by_category.values()),
                "orders": sum(orders_by_status.values()),
                "reviews": await ReviewRepository.count(session),
                "revenue": await OrderRepository.get_delivered_revenue(session),
            },
            "distributions": {
                "users_by_role": users_by_role,
                "vendors_by_status": vendors_by_status,
                "products_by_category": products_by_category,
                "orders_by_status": orders_by_status,
            },
            "recent": {
                "users": [u.model_dump(mode="json") for u in recent_users],
                "vendors": [v.model_dump(mode="json") for v in recent_vendors],
                "products": [p.model_dump(mode="json") for p in recent_products],
                "orders": [o.model_dump(mode="json") for o in recent_orders],
                "reviews": [r.model_dump(mode="json") for r in recent_reviews],
            },
        }

    @staticmethod
    async def list_vendors(admin: Principal, params: PageParams, session: AsyncSession,
                           status: VendorStatus | None = None) -> tuple[list[VendorDTO], int]:
        """All vendors regardless of status unless one is given."""
        require_admin(admin)
        return await VendorRepository.get_filtered(params, session, status=status)

    @staticmethod
    async def list_products(admin: Principal, params: PageParams, session: AsyncSession,
                            category: ProductCategory | None = None, vendor_id: int | None = None,
                            search: str | None = None) -> tuple[list[ProductDTO], int]:
        """Products including deactivated ones."""
        require_admin(admin)
        product_filter = ProductFilter(category=category, vendor_id=vendor_id, search=search, include_inactive=True)
        return await ProductRepository.get_filtered(product_filter, params, session)
