"""
Bounded retry loop shared by every completion adapter.

Only timeouts and 5xx responses are retried. Cancellation, malformed
replies and other request failures surface on the first occurrence.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from ..errors import CompletionCancelledError, UpstreamError, UpstreamTimeoutError
from ..logging_config import logger
from .types import RetryPolicy

T = TypeVar("T")


def _raise_if_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise CompletionCancelledError("Completion cancelled by caller")


async def _run_cancellable(
    operation: Awaitable[T], cancel_event: Optional[asyncio.Event]
) -> T:
    """Await `operation`, aborting it as soon as `cancel_event` is set."""
    if cancel_event is None:
        return await operation

    task = asyncio.ensure_future(operation)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait(
            {task, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        task.cancel()
        waiter.cancel()
        raise
    waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    await asyncio.wait({task})
    raise CompletionCancelledError("Completion cancelled by caller")


async def _backoff(seconds: float, cancel_event: Optional[asyncio.Event]) -> None:
    if cancel_event is None:
        await asyncio.sleep(seconds)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return
    raise CompletionCancelledError("Completion cancelled by caller")


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    label: str,
    cancel_event: Optional[asyncio.Event] = None,
) -> T:
    """
    Run `operation` until it succeeds or the policy gives up.

    Each attempt is bounded by policy.timeout_ms. On exhaustion the last
    error is raised with its `attempts` attribute set.
    """
    total = policy.total_attempts
    attempt = 0
    while True:
        attempt += 1
        _raise_if_cancelled(cancel_event)
        logger.info(f"Calling {label} (attempt {attempt}/{total})")
        try:
            return await _run_cancellable(
                asyncio.wait_for(operation(), timeout=policy.timeout_seconds),
                cancel_event,
            )
        except asyncio.TimeoutError:
            error: UpstreamError = UpstreamTimeoutError(
                f"{label} did not respond within {policy.timeout_ms}ms"
            )
        except UpstreamError as exc:
            error = exc

        if not error.retryable:
            error.attempts = attempt
            logger.error(f"{label} call failed ({error.code}): {error.message}")
            raise error

        if attempt >= total:
            error.attempts = attempt
            logger.error(
                f"{label} call failed after all retries ({error.code}): {error.message}"
            )
            raise error

        delay_ms = policy.delay_ms(attempt - 1)
        logger.warning(
            f"{label} call failed ({error.code}), retrying in {delay_ms}ms..."
        )
        await _backoff(delay_ms / 1000, cancel_event)
