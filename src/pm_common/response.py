"""Unified API response wrapper.

All API endpoints return this format:
{
    "code": 0,           // 0=success, non-0=AppError code
    "success": true,
    "message": "success",
    "data": { ... },     // null on error
    "timestamp": 1710547199000,
    "request_id": "..."
}
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field

from src.pm_common.datetime_utils import to_epoch_ms, utc_now


class ApiResponse(BaseModel):
    code: int = 0
    success: bool = True
    message: str = "success"
    data: Any = None
    timestamp: int = Field(default_factory=lambda: to_epoch_ms(utc_now()))
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def success_response(data: Any = None) -> ApiResponse:
    return ApiResponse(code=0, success=True, message="success", data=data)


def error_response(code: int, message: str) -> ApiResponse:
    return ApiResponse(code=code, success=False, message=message, data=None)
