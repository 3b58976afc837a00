"""Type definitions for utility modules."""

from typing import TypeVar


class UtilityError(Exception):
    """Base exception for utility-related errors."""

    pass


class AsyncTimeoutError(UtilityError):
    """Exception raised when async operations timeout."""

    pass


T = TypeVar("T")
