"""Type definitions for the API module."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class APIError(Exception):
    """Base exception for API-related errors."""

    pass


class ScrapeRequest(BaseModel):
    """On-demand scan request; both fields must be non-blank."""

    product: Optional[str] = None
    location: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(
            self.product and self.product.strip() and self.location and self.location.strip()
        )


class ScrapeResponse(BaseModel):
    """Response model for an on-demand scan."""

    success: bool
    product: str
    result: dict[str, Any]


class ErrorResponse(BaseModel):
    """Response model for API errors."""

    error: str
    message: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
