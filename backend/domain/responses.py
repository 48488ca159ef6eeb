"""
Standard API response helpers for consistent response formatting.

- Success: { "success": true, "data": <payload>, "message"?: "...", "pagination"?: {...} }
- Error:   { "success": false, "error": "<message>", "details"?: ... }
"""
import math
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response envelope."""
    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Human-readable error message")
    details: Any | None = Field(default=None, description="Additional error context")


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(..., alias="totalPages")


def error_body(message: str, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return body


def success_response(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: The response payload
        message: Optional human-readable message

    Returns:
        dict: { "success": true, "data": <data>, "message": <message> }
    """
    response: dict[str, Any] = {"success": True}
    if message:
        response["message"] = message
    if data is not None:
        response["data"] = data
    return response


def paginated_response(items: list[Any], *, page: int, limit: int, total: int) -> dict[str, Any]:
    """Page-numbered listing: data plus { page, limit, total, totalPages }."""
    response = success_response(data=items)
    response["pagination"] = {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
    return response
