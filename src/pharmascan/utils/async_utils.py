"""Async utility functions and helpers."""

import asyncio
from collections.abc import Awaitable
from typing import Any, Optional

from .logging import get_structured_logger
from .types import AsyncTimeoutError, T

logger = get_structured_logger(__name__)


async def run_with_timeout(
    coro: Awaitable[T], timeout: float, timeout_message: Optional[str] = None
) -> T:
    """Run a coroutine with a timeout."""
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError as e:
        msg = timeout_message or f"Operation timed out after {timeout}s"
        logger.warning(msg)
        raise AsyncTimeoutError(msg) from e


async def gather_with_limit(
    *coroutines: Awaitable[T], limit: int = 10, return_exceptions: bool = False
) -> list[Any]:
    """Run coroutines concurrently with a concurrency limit."""
    semaphore = asyncio.Semaphore(limit)

    async def limited_coro(coro: Awaitable[T]) -> T:
        async with semaphore:
            return await coro

    limited_coroutines = [limited_coro(coro) for coro in coroutines]

    return await asyncio.gather(
        *limited_coroutines, return_exceptions=return_exceptions
    )


class AsyncContextManager:
    """Base class for async context managers."""

    async def __aenter__(self):
        await self.setup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    async def setup(self) -> None:
        """Setup the context manager."""
        pass

    async def cleanup(self) -> None:
        """Cleanup the context manager."""
        pass
