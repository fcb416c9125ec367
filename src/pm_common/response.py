"""Unified API response wrapper.

All API endpoints return this format:
{
    "code": 0,           // 0=success, non-0=AppError code
    "message": "success",
    "data": { ... },     // null on error; money/price fields are decimal strings
    "timestamp": "...",
    "request_id": "..."
}
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field

from src.pm_common.datetime_utils import utc_now


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def success_response(data: BaseModel | list[Any] | dict[str, Any] | None = None) -> ApiResponse:
    """Wrap a payload; pydantic payloads are dumped in JSON mode so Decimals stay exact."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    return ApiResponse(code=0, message="success", data=data)


def error_response(code: int, message: str) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=None)
