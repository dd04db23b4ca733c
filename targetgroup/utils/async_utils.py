"""
Asynchronous utility helpers for the target group provisioner.

Provides utilities for:
- Running synchronous functions in thread pool
- Running a coroutine to completion from synchronous code
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_in_executor(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """
    Run a synchronous function in a thread pool executor.

    Allows non-blocking execution of blocking operations within async context.

    Args:
        func: Synchronous function to execute
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Raises:
        Any exceptions raised by func are propagated

    Example:
        response = await run_in_executor(rds.describe_db_proxies, DBProxyName="p")
    """
    loop = asyncio.get_running_loop()
    partial_func = functools.partial(func, *args, **kwargs)
    return await loop.run_in_executor(None, partial_func)


def run_sync(coro: Awaitable[T]) -> T:
    """
    Run a coroutine to completion from synchronous code (Flask views, jobs).

    Each call gets its own event loop, which is closed afterwards.

    Args:
        coro: Coroutine to execute

    Returns:
        Result of the coroutine
    """
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()
