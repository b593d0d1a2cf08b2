"""
Deadline wrappers for slow external calls (LLM requests).

Both helpers raise OperationTimeoutError, which callers can tell apart from
errors raised by the wrapped operation itself.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")


class OperationTimeoutError(Exception):
    """
    Raised when a wrapped operation misses its deadline.

    Attributes:
        timeout_ms: Deadline that was exceeded, in milliseconds
    """

    def __init__(self, message: str, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(message)


def _timeout_message(timeout_ms: int, message: Optional[str]) -> str:
    return message or f"Operation timed out after {timeout_ms}ms"


def call_with_timeout(
    operation: Callable[[], T], timeout_ms: int, message: Optional[str] = None
) -> T:
    """
    Run a blocking callable with a deadline.

    The callable runs on a worker thread. On timeout the worker is abandoned
    (Python threads cannot be killed) and OperationTimeoutError is raised.

    Args:
        operation: Zero-argument callable to run
        timeout_ms: Deadline in milliseconds
        message: Optional custom error message

    Returns:
        Whatever the operation returns

    Raises:
        OperationTimeoutError: If the deadline passes first
    """
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(operation)
    try:
        return future.result(timeout=timeout_ms / 1000)
    except FutureTimeoutError:
        raise OperationTimeoutError(_timeout_message(timeout_ms, message), timeout_ms) from None
    finally:
        executor.shutdown(wait=False)


async def with_timeout(
    awaitable: Awaitable[T], timeout_ms: int, message: Optional[str] = None
) -> T:
    """
    Await with a deadline, cancelling the awaitable when it passes.

    Example:
        result = await with_timeout(parse_job(description), 30000, "Parsing took too long")
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000)
    except asyncio.TimeoutError:
        raise OperationTimeoutError(_timeout_message(timeout_ms, message), timeout_ms) from None
