"""Async utilities for bridging blocking HTTP and file calls to the sync engine."""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Sequence, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

# Module-level semaphore, initialized once per run
_semaphore: asyncio.Semaphore | None = None


def init_semaphore(max_parallel: int = 10) -> None:
    """Initialize the request semaphore. Call once before a sync run."""
    global _semaphore
    _semaphore = asyncio.Semaphore(max_parallel)
    logger.debug(
        "ReadMe request semaphore initialized: max_parallel=%d",
        max_parallel,
    )


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Does NOT acquire the semaphore; used for local file I/O.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        text = await run_sync(store.read, "guides/intro.md")
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def run_sync_limited(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool, bounded by the request semaphore.

    Falls back to unbounded if the semaphore is not initialized.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)
    """
    if _semaphore is None:
        return await asyncio.to_thread(func, *args, **kwargs)
    async with _semaphore:
        return await asyncio.to_thread(func, *args, **kwargs)


async def gather_isolated(
    coros: Sequence[Coroutine[Any, Any, T]],
) -> list[T | BaseException]:
    """Run coroutines concurrently without letting one failure cancel the rest.

    Returns results in input order; a coroutine that raised contributes its
    exception object instead of a result.

    Args:
        coros: Sequence of coroutines to run concurrently.

    Returns:
        List of results or exceptions, in the same order as input coroutines.
    """
    return list(await asyncio.gather(*coros, return_exceptions=True))
