"""Infrastructure helpers"""

from .retry_policy import DELIVERY_RETRY_DEFAULTS, RetryConfig, compute_delay_ms, retry_async

__all__ = [
    "DELIVERY_RETRY_DEFAULTS",
    "RetryConfig",
    "compute_delay_ms",
    "retry_async",
]
