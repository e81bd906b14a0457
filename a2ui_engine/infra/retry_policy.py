"""Retry policies for transport operations.

Supports linear (``delay * attempt``) and exponential
(``delay * 2 ** (attempt - 1)``) backoff.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

BackoffStrategy = Literal["linear", "exponential"]


@dataclass
class RetryConfig:
    """Retry configuration.

    ``attempts`` counts the first try, so ``max_retries`` is ``attempts - 1``.
    """

    attempts: int = 4
    min_delay_ms: int = 1000
    max_delay_ms: int = 30000
    jitter: float = 0.0
    backoff: BackoffStrategy = "linear"

    @classmethod
    def from_retries(
        cls,
        max_retries: int = 3,
        retry_delay_ms: int = 1000,
        backoff: BackoffStrategy = "linear",
    ) -> "RetryConfig":
        return cls(
            attempts=max(0, max_retries) + 1,
            min_delay_ms=retry_delay_ms,
            backoff=backoff,
        )

    @property
    def max_retries(self) -> int:
        return self.attempts - 1


DELIVERY_RETRY_DEFAULTS = RetryConfig()


def compute_delay_ms(config: RetryConfig, attempt: int) -> float:
    """Delay before retry number ``attempt`` (1-based).

    Args:
        config: Retry configuration
        attempt: Retry number, starting at 1

    Returns:
        Delay in milliseconds, capped at max_delay_ms
    """
    if config.backoff == "exponential":
        delay_ms = config.min_delay_ms * (2 ** (attempt - 1))
    else:
        delay_ms = config.min_delay_ms * attempt
    delay_ms = min(delay_ms, config.max_delay_ms)

    if config.jitter > 0:
        jitter_amount = delay_ms * config.jitter
        delay_ms += random.uniform(-jitter_amount, jitter_amount)

    return max(0, delay_ms)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    should_retry: Optional[Callable[[Exception], bool]] = None,
    on_retry: Optional[Callable[[dict[str, Any]], None]] = None,
    label: Optional[str] = None,
) -> T:
    """Retry an async function with backoff.

    Args:
        fn: Async function to retry
        config: Retry configuration
        should_retry: Function to determine if error is retryable
        on_retry: Callback before each retry
        label: Label for logging

    Returns:
        Result of fn()

    Raises:
        Last exception if all attempts fail
    """
    if config is None:
        config = DELIVERY_RETRY_DEFAULTS

    attempts = max(1, config.attempts)

    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except Exception as e:
            if should_retry and not should_retry(e):
                raise

            if attempt >= attempts:
                raise

            delay_ms = compute_delay_ms(config, attempt)

            if on_retry:
                on_retry({
                    "attempt": attempt,
                    "max_attempts": attempts,
                    "delay_ms": delay_ms,
                    "label": label,
                    "error": str(e),
                })

            logger.warning(
                f"{label or 'operation'} failed (attempt {attempt}/{attempts}), "
                f"retrying in {delay_ms:.0f}ms: {e}"
            )

            await asyncio.sleep(delay_ms / 1000)

    raise RuntimeError("unreachable")


__all__ = [
    "BackoffStrategy",
    "RetryConfig",
    "DELIVERY_RETRY_DEFAULTS",
    "compute_delay_ms",
    "retry_async",
]
