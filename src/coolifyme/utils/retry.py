# ABOUTME: Per-call timeout and exponential-backoff retry policy
# ABOUTME: Wraps whole logical operations using tenacity's AsyncRetrying

"""
Timeout and retry policy for logical operations.

``with_timeout(config, operation)`` runs ``operation`` with a per-attempt
deadline and retries failures that are worth retrying:

    attempt 1 fails -> wait retry_delay
    attempt 2 fails -> wait retry_delay * 2
    attempt 3 fails -> wait retry_delay * 4   (capped at max_backoff)
    ...
    retry_count + 1 attempts in total, then OperationFailedError

Only transport failures, timeouts and retryable remote statuses (5xx, 408,
429) are retried. Invalid input, configuration problems and 4xx answers fail
on the first attempt with their own exception.

The policy wraps a whole resource-client call (a zero-argument coroutine
factory), never a raw HTTP request, so every attempt builds a fresh request.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from pydantic import BaseModel, Field, ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from coolifyme.errors import InvalidArgumentError, OperationFailedError, RemoteError, TransportError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class TimeoutConfig(BaseModel):
    """Limits for one logical operation. Times are in seconds."""

    model_config = {"frozen": True}

    timeout: float = Field(default=30.0, ge=1.0, description="Per-attempt deadline")
    retry_count: int = Field(default=3, ge=0, le=10, description="Additional attempts")
    retry_delay: float = Field(default=1.0, ge=0.1, description="First backoff delay")
    max_backoff: float = Field(default=10.0, gt=0, description="Backoff ceiling")

    @classmethod
    def build(
        cls,
        timeout: float | None = None,
        retry_count: int | None = None,
        retry_delay: float | None = None,
        max_backoff: float | None = None,
    ) -> TimeoutConfig:
        """
        Validate user-supplied values, falling back to defaults for None.

        Raises:
            InvalidArgumentError: If a value is out of range.
        """
        values = {
            "timeout": timeout,
            "retry_count": retry_count,
            "retry_delay": retry_delay,
            "max_backoff": max_backoff,
        }
        try:
            return cls(**{k: v for k, v in values.items() if v is not None})
        except ValidationError as e:
            raise InvalidArgumentError(f"invalid timeout configuration: {e}") from e

    @property
    def attempts(self) -> int:
        return self.retry_count + 1


def is_retryable(error: BaseException) -> bool:
    """Transport failures, timeouts and 5xx/408/429 answers."""
    if isinstance(error, TransportError | TimeoutError):
        return True
    if isinstance(error, RemoteError):
        return error.retryable
    return False


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        "Attempt failed, retrying",
        attempt=retry_state.attempt_number,
        error=str(error),
        delay=delay,
    )


async def with_timeout(
    config: TimeoutConfig,
    operation: Callable[[], Awaitable[T]],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``operation`` under the timeout and retry policy.

    Args:
        config: Limits to apply.
        operation: Zero-argument callable returning a fresh awaitable per call.
        sleep: Backoff sleep; injectable so tests need not wait.

    Returns:
        The operation's result.

    Raises:
        OperationFailedError: All attempts failed with retryable errors.
        Exception: The first non-retryable error, unchanged.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(config.attempts),
        wait=wait_exponential(multiplier=config.retry_delay, max=config.max_backoff),
        retry=retry_if_exception(is_retryable),
        sleep=sleep,
        before_sleep=_log_retry,
    )
    try:
        async for attempt in retrying:
            with attempt:
                async with asyncio.timeout(config.timeout):
                    return await operation()
    except RetryError as e:
        last = e.last_attempt.exception()
        raise OperationFailedError(e.last_attempt.attempt_number, last) from last
    # AsyncRetrying either returns from the block above or raises
    raise AssertionError("unreachable")
