"""Async utilities for running coroutines from synchronous contexts."""

import asyncio
from collections.abc import Coroutine
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from loguru import logger

T = TypeVar("T")


async def _with_timeout(coro: Coroutine[Any, Any, T], timeout: float) -> T:
    try:
        return await asyncio.wait_for(coro, timeout)
    except asyncio.TimeoutError as e:
        raise TimeoutError(f"Timed out after {timeout}s") from e


def run_async_safely(coro: Coroutine[Any, Any, T], timeout: float | None = None) -> T:
    """
    Run ``coro`` to completion from synchronous code and return its result.

    With no running event loop this is asyncio.run(). Inside one (an agent host,
    Jupyter) the coroutine gets a fresh loop on a worker thread, so anything it
    opens, such as a connection pool, must be created and closed within it.

    Raises:
        TimeoutError: ``timeout`` seconds passed; the coroutine was cancelled.
    """
    if timeout is not None:
        coro = _with_timeout(coro, timeout)

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    logger.debug("Event loop already running; running coroutine on a worker thread")
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="smriti-async") as executor:
        return executor.submit(asyncio.run, coro).result()
