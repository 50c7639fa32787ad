"""
Retry logic with backoff for calls to the session store.

This module implements synchronous retry functionality to handle
transient failures when talking to Redis. The calling thread blocks
between attempts; there is no cancellation once a retry sequence starts.

When all attempts are exhausted the last exception is logged with the
caller-supplied context and re-raised unchanged, so callers see the
original Redis error rather than a wrapper.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.
    
    Attributes:
        max_attempts: Total number of attempts, including the first call.
            Default is 3.
        initial_delay: Delay before the first retry in seconds. Default is 1.0.
        exponential_base: Base for backoff calculation. Default is 1.0,
            which gives a fixed delay between attempts.
        max_delay: Maximum delay between retries in seconds.
            Default is None (no maximum).
        retryable_exceptions: Tuple of exception types that should
            trigger a retry. Default is (Exception,) to retry all.
    """
    max_attempts: int = 3
    initial_delay: float = 1.0
    exponential_base: float = 1.0
    max_delay: Optional[float] = None
    retryable_exceptions: Tuple[Type[BaseException], ...] = field(
        default_factory=lambda: (Exception,)
    )
    
    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay cannot be negative")


def calculate_delay(
    attempt: int,
    initial_delay: float,
    exponential_base: float,
    max_delay: Optional[float] = None
) -> float:
    """
    Calculate the delay for a given retry attempt.
    
    The delay is calculated as: initial_delay * (exponential_base ^ attempt)
    
    With the default base of 1.0 every retry waits initial_delay seconds.
    With a base of 2.0 and initial_delay=1.0 the delays are 1s, 2s, 4s.
    
    Args:
        attempt: The current attempt number (0-indexed)
        initial_delay: The initial delay in seconds
        exponential_base: The base for exponential calculation
        max_delay: Optional maximum delay cap
        
    Returns:
        The calculated delay in seconds
    """
    delay = initial_delay * (exponential_base ** attempt)
    
    if max_delay is not None:
        delay = min(delay, max_delay)
    
    return delay


def retry_call(
    func: Callable[..., T],
    *args: Any,
    config: Optional[RetryConfig] = None,
    operation_name: Optional[str] = None,
    context: Optional[Mapping[str, Any]] = None,
    **kwargs: Any
) -> T:
    """
    Execute a function with retry logic.
    
    Example usage:
        values = retry_call(
            executor.execute,
            "sessionLoad",
            read_fields,
            config=RetryConfig(retryable_exceptions=(ConnectionError,)),
            operation_name="session_load",
            context={"session_id": session_id},
        )
    
    Args:
        func: The function to execute
        *args: Positional arguments to pass to the function
        config: Optional RetryConfig object with retry settings
        operation_name: Optional name for logging purposes
        context: Optional fields added to every retry log entry
        **kwargs: Keyword arguments to pass to the function
        
    Returns:
        The result of the function call
        
    Raises:
        The last retryable exception, unchanged, once all attempts are used.
        Non-retryable exceptions propagate immediately.
    """
    effective_config = config or RetryConfig()
    op_name = operation_name or getattr(func, "__name__", "operation")
    log_context = dict(context or {})
    
    for attempt in range(effective_config.max_attempts):
        try:
            return func(*args, **kwargs)
        except effective_config.retryable_exceptions as e:
            if attempt == effective_config.max_attempts - 1:
                logger.error(
                    "Retry exhausted for operation '%s' after %d attempts %s. "
                    "Last error: %s",
                    op_name,
                    effective_config.max_attempts,
                    log_context,
                    str(e),
                    exc_info=True,
                    extra={
                        "extra_data": {
                            **log_context,
                            "operation": op_name,
                            "attempts": effective_config.max_attempts,
                            "last_error": str(e),
                            "error_type": type(e).__name__,
                        }
                    }
                )
                raise
            
            delay = calculate_delay(
                attempt,
                effective_config.initial_delay,
                effective_config.exponential_base,
                effective_config.max_delay
            )
            
            logger.warning(
                "Retry attempt %d/%d for operation '%s' %s failed with %s: %s. "
                "Retrying in %.2f seconds...",
                attempt + 1,
                effective_config.max_attempts,
                op_name,
                log_context,
                type(e).__name__,
                str(e),
                delay,
                extra={
                    "extra_data": {
                        **log_context,
                        "operation": op_name,
                        "attempt": attempt + 1,
                        "max_attempts": effective_config.max_attempts,
                        "delay_seconds": delay,
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                    }
                }
            )
            
            time.sleep(delay)
    
    # range() is never empty because max_attempts >= 1
    raise AssertionError("unreachable")
