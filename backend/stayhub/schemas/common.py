"""Shared response schemas."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Typed error body for every booking, pricing, and availability failure."""

    error: str
    detail: str
    retryable: bool = False
