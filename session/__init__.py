"""
Session persistence module.

This module persists web-session records into Redis so sessions survive
process restarts and can be shared across server instances.
"""

from session.record import SessionRecord
from session.store import SessionDataStore
from session.serializer import AttributeSerializer, JsonAttributeSerializer
from session.executor import KeyValueExecutor, PooledRedisExecutor
from session.redis_store import (
    DEFAULT_RETRY_CONFIG,
    KEY_PREFIX,
    LOAD_FIELDS,
    TRANSIENT_ERRORS,
    RedisSessionDataStore,
)

__all__ = [
    "SessionRecord",
    "SessionDataStore",
    "AttributeSerializer",
    "JsonAttributeSerializer",
    "KeyValueExecutor",
    "PooledRedisExecutor",
    "RedisSessionDataStore",
    "DEFAULT_RETRY_CONFIG",
    "KEY_PREFIX",
    "LOAD_FIELDS",
    "TRANSIENT_ERRORS",
]
