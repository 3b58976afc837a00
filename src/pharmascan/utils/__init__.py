"""Shared utilities for PharmaScan."""

from .async_utils import (
    AsyncContextManager,
    gather_with_limit,
    run_with_timeout,
)
from .logging import get_logger, get_structured_logger, setup_logging
from .types import AsyncTimeoutError, UtilityError

__all__ = [
    "setup_logging",
    "get_logger",
    "get_structured_logger",
    "run_with_timeout",
    "gather_with_limit",
    "AsyncContextManager",
    "UtilityError",
    "AsyncTimeoutError",
]
