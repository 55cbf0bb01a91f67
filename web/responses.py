"""
Response envelope shared by every route.

    {"success": true, "status": "success", "message": "...", "data": ...}

List responses add a `pagination` block (utils/pagination.build_pagination).
Errors use utils/error_handler.error_body with the same keys.
"""

from typing import Any

from pydantic import BaseModel

from utils.pagination import PageParams, build_pagination


def _dump(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_dump(item) for item in data]
    return data


def success(data: Any = None, message: str = "OK") -> dict:
    return {
        "success": True,
        "status": "success",
        "message": message,
        "data": _dump(data),
    }


def paginated(items: list, total: int, params: PageParams, resource: str, message: str = "OK") -> dict:
    body = success(items, message)
    body["pagination"] = build_pagination(params, total, resource)
    return body
