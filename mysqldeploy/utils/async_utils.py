"""
Asynchronous utility helpers for mysqldeploy.

Provides utilities for:
- Running blocking SDK calls in a thread pool
- Retrying async functions with exponential backoff
- Concurrent execution with a concurrency limit
- Timeout management for async operations
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, List, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_in_executor(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """
    Run a synchronous function in a thread pool executor.

    Allows non-blocking execution of blocking SDK calls within async context.

    Args:
        func: Synchronous function to execute
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Raises:
        Any exceptions raised by func are propagated
    """
    loop = asyncio.get_running_loop()
    partial_func = functools.partial(func, *args, **kwargs)
    return await loop.run_in_executor(None, partial_func)


def async_retry(
    max_retries: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable:
    """
    Decorator for async functions with automatic retry on failure.

    Implements exponential backoff between retries. Exceptions that are not
    instances of retry_on propagate immediately.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        delay: Initial delay between retries in seconds (default: 1.0)
        backoff: Multiplier for delay after each retry (default: 2.0)
        retry_on: Exception types that trigger a retry (default: all)

    Returns:
        Decorator function

    Raises:
        The last exception if all retries are exhausted

    Example:
        @async_retry(max_retries=5, delay=0.5, retry_on=(TransientFailure,))
        async def put_resource():
            return await client.put(request)
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    if attempt >= max_retries:
                        logger.error(
                            f"All {max_retries + 1} attempts failed for "
                            f"{func.__name__}: {str(e)}"
                        )
                        raise
                    logger.warning(
                        f"Attempt {attempt + 1} failed for {func.__name__}: "
                        f"{str(e)}. Retrying in {current_delay}s..."
                    )
                    await asyncio.sleep(current_delay)
                    current_delay *= backoff

        return wrapper

    return decorator


async def gather_with_limit(
    coros: List[Awaitable[T]], limit: int = 5
) -> List[T]:
    """
    Run multiple coroutines with a concurrency limit using a semaphore.

    Args:
        coros: List of coroutines to execute
        limit: Maximum concurrent coroutines (default: 5)

    Returns:
        List of results in same order as input coroutines

    Raises:
        Propagates any exceptions from coroutines
    """
    semaphore = asyncio.Semaphore(limit)

    async def bounded_coro(coro: Awaitable[T]) -> T:
        async with semaphore:
            return await coro

    return await asyncio.gather(*[bounded_coro(coro) for coro in coros])


async def timeout_wrapper(
    coro: Awaitable[T], timeout_seconds: float = 30
) -> T:
    """
    Wrap a coroutine with a timeout.

    Args:
        coro: Coroutine to execute
        timeout_seconds: Timeout in seconds (default: 30)

    Returns:
        Result of coroutine

    Raises:
        asyncio.TimeoutError: If coroutine exceeds timeout
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.error(
            f"Coroutine exceeded timeout of {timeout_seconds} seconds"
        )
        raise
