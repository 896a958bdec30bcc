"""Response envelope models.

Consistent response format for all API endpoints.

WHY RESPONSE ENVELOPES:
- Consistent structure across all endpoints
- Easy to distinguish success from error responses
- Type-safe response building in endpoints
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Standard response envelope for single resources.

    All success responses use {"data": ...} envelope.
    """

    data: T


class ErrorDetail(BaseModel):
    """Error payload inside the error envelope.

    Attributes:
        code: Machine-readable error code.
        message: Human-readable message.
        details: Optional field-level details.
    """

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Standard response envelope for errors."""

    error: ErrorDetail
