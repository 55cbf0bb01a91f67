"""
Unit Tests: page clamping and the pagination block
"""

import config
from utils.pagination import PageParams, build_pagination, page_params


class TestPageParams:

    def test_defaults(self):
        params = page_params()
        assert params.page == 1
        assert params.limit == config.PAGE_SIZE_DEFAULT
        assert params.offset == 0

    def test_clamping(self):
        assert page_params(page=0, limit=0) == PageParams(page=1, limit=config.PAGE_SIZE_DEFAULT)
        assert page_params(page=-3, limit=10 ** 6).limit == config.PAGE_SIZE_MAX

    def test_offset(self):
        assert page_params(page=3, limit=10).offset == 20


class TestBuildPagination:

    def test_middle_page(self):
        block = build_pagination(PageParams(page=2, limit=10), 35, "Products")

        assert block == {
            "currentPage": 2,
            "totalPages": 4,
            "totalProducts": 35,
            "hasNextPage": True,
            "hasPrevPage": True,
            "limit": 10,
        }

    def test_empty_result(self):
        block = build_pagination(PageParams(page=1, limit=10), 0, "Orders")

        assert block["totalPages"] == 0
        assert block["totalOrders"] == 0
        assert block["hasNextPage"] is False
        assert block["hasPrevPage"] is False
