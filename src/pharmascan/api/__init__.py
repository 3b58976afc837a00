"""HTTP API for on-demand availability scans."""

from .app import create_app, main
from .types import APIError, ErrorResponse, ScrapeRequest, ScrapeResponse

__all__ = [
    "create_app",
    "main",
    "APIError",
    "ErrorResponse",
    "ScrapeRequest",
    "ScrapeResponse",
]
