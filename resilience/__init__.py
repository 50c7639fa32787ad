"""
Resilience patterns for the session store.

This package provides retry logic used to ride out transient Redis
failures.
"""

from resilience.retry import (
    RetryConfig,
    calculate_delay,
    retry_call,
)

__all__ = [
    "RetryConfig",
    "calculate_delay",
    "retry_call",
]
