"""
Pooled Redis command executor.

The session store never holds a Redis connection itself. Each operation
is handed to an executor whose client borrows connections from a bounded
pool only for the duration of each command or transaction.
"""

import logging
import time
from abc import ABC, abstractmethod
from contextlib import nullcontext
from typing import Any, Callable, ContextManager, Optional, TypeVar

import redis

from telemetry.service import TelemetryService, get_telemetry_service

logger = logging.getLogger(__name__)

T = TypeVar("T")


class KeyValueExecutor(ABC):
    """
    Runs an operation against a live key-value client.
    
    The label names the operation for diagnostics only.
    """
    
    @abstractmethod
    def execute(self, label: str, operation: Callable[[redis.Redis], T]) -> T:
        """
        Run operation with a pool-backed client and return its result.
        
        Failures raised by the operation propagate after every connection
        it used has been released.
        """
        pass


class PooledRedisExecutor(KeyValueExecutor):
    """
    Executor backed by a redis-py blocking connection pool.
    
    The pool bounds the number of concurrent connections; callers beyond
    that bound wait up to the pool timeout for a connection to be returned.
    Checkout and release are thread-safe.
    
    Attributes:
        pool: The shared redis connection pool
        telemetry: Optional telemetry service used to record operation
            timings and wrap each operation in a tracing span
    """
    
    def __init__(
        self,
        pool: redis.ConnectionPool,
        telemetry: Optional[TelemetryService] = None
    ):
        self.pool = pool
        self.telemetry = telemetry
    
    @classmethod
    def from_url(
        cls,
        redis_url: str,
        max_connections: int = 16,
        timeout: float = 5.0,
        telemetry: Optional[TelemetryService] = None
    ) -> "PooledRedisExecutor":
        """
        Build an executor with a bounded pool for redis_url.
        
        Responses are decoded to str so hash fields come back as text.
        """
        pool = redis.BlockingConnectionPool.from_url(
            redis_url,
            max_connections=max_connections,
            timeout=timeout,
            decode_responses=True,
        )
        return cls(pool, telemetry=telemetry)
    
    @classmethod
    def from_settings(
        cls,
        settings: Any,
        telemetry: Optional[TelemetryService] = None
    ) -> "PooledRedisExecutor":
        """
        Build an executor from application settings.
        
        Falls back to the process-wide telemetry service, if one has been
        initialized, for timings and spans.
        """
        return cls.from_url(
            settings.redis_url,
            max_connections=settings.redis_max_connections,
            timeout=settings.redis_pool_timeout_seconds,
            telemetry=telemetry if telemetry is not None else get_telemetry_service(),
        )
    
    def execute(self, label: str, operation: Callable[[redis.Redis], T]) -> T:
        started = time.monotonic()
        # Holds no connection itself: each command, and each pipeline on
        # execute(), checks one out of the pool and returns it
        client = redis.Redis(connection_pool=self.pool)
        try:
            with self._span(label):
                return operation(client)
        finally:
            client.close()
            elapsed_ms = (time.monotonic() - started) * 1000
            logger.debug("Redis operation %s took %.2f ms", label, elapsed_ms)
            if self.telemetry:
                self.telemetry.record_metric(
                    "session_store.operation_ms",
                    elapsed_ms,
                    tags={"operation": label},
                )
    
    def _span(self, label: str) -> ContextManager[Any]:
        if self.telemetry is None:
            return nullcontext()
        return self.telemetry.create_external_service_span("redis", label)
    
    def close(self) -> None:
        """Disconnect every pooled connection."""
        self.pool.disconnect()
