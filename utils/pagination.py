"""
Page/limit handling shared by every listing endpoint.

Pages are 1-indexed over HTTP. Repositories receive the already clamped
values and return `(items, total)` tuples; `build_pagination` turns those
into the `pagination` block of the response envelope.
"""

import math

from pydantic import BaseModel

import config


class PageParams(BaseModel):
    page: int = 1
    limit: int = config.PAGE_SIZE_DEFAULT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(page: int | None = None, limit: int | None = None) -> PageParams:
    """Clamp raw query values: page >= 1, 1 <= limit <= PAGE_SIZE_MAX."""
    page = page if page and page > 0 else 1
    if not limit or limit < 1:
        limit = config.PAGE_SIZE_DEFAULT
    return PageParams(page=page, limit=min(limit, config.PAGE_SIZE_MAX))


def build_pagination(params: PageParams, total: int, resource: str) -> dict:
    """
    Build the pagination block.

    Args:
        params: Clamped page parameters used for the query
        total: Total number of matching rows
        resource: Plural resource name, e.g. "Products" -> "totalProducts"
    """
    total_pages = math.ceil(total / params.limit) if total else 0
    return {
        "currentPage": params.page,
        "totalPages": total_pages,
        f"total{resource}": total,
        "hasNextPage": params.page < total_pages,
        "hasPrevPage": params.page > 1,
        "limit": params.limit,
    }
