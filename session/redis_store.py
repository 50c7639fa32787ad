"""
Redis-based session data store.

Each session is kept in a Redis hash under ``jetty-session-<id>``. Field
names are plain text and numbers are written as decimal text so records
can be inspected with redis-cli. Writes set every field and the key's
expiry inside one MULTI/EXEC transaction, so a record is never visible
with fields but no TTL or the reverse.

Expiry is left entirely to Redis: the store never scans for expired
sessions.
"""

import logging
import re
import time
from typing import Any, Callable, Iterable, Optional

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from errors.exceptions import SessionDataError, validation_error
from resilience.retry import RetryConfig, retry_call
from session.executor import KeyValueExecutor
from session.record import SessionRecord
from session.serializer import AttributeSerializer
from session.store import SessionDataStore

logger = logging.getLogger(__name__)


KEY_PREFIX = "jetty-session-"

# Order matters: load() decodes by position
LOAD_FIELDS = (
    "cpath",
    "vhost",
    "created",
    "accessed",
    "lastAccessed",
    "maxInactiveMs",
    "attributes",
    "cookieSet",
    "lastSaved",
)

# Plain ASCII decimal integers, as written by store()
_DECIMAL = re.compile(r"-?[0-9]+")

# Communication-class failures worth another attempt
TRANSIENT_ERRORS = (RedisConnectionError, RedisTimeoutError)

DEFAULT_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    initial_delay=1.0,
    exponential_base=1.0,
    retryable_exceptions=TRANSIENT_ERRORS,
)


def _current_millis() -> int:
    return int(time.time() * 1000)


class RedisSessionDataStore(SessionDataStore):
    """
    Redis-backed session data store.

    store() and load() retry transient Redis failures (connection and
    timeout errors) with a fixed backoff; the last failure is logged with
    the session id and re-raised unchanged. exists() and delete() make a
    single attempt.

    Attributes:
        executor: Runs operations against pooled Redis connections
        serializer: Encodes the attribute mapping to a string and back
        retry_config: Retry policy for store() and load()
    """

    def __init__(
        self,
        executor: KeyValueExecutor,
        serializer: AttributeSerializer,
        retry_config: Optional[RetryConfig] = None,
        clock: Callable[[], int] = _current_millis
    ):
        """
        Initialize the Redis session store.

        Args:
            executor: Executor owning connection checkout and release.
            serializer: Codec for the session attribute mapping.
            retry_config: Retry policy for store() and load(). Defaults to
                3 attempts, 1 second apart, retrying connection and
                timeout errors only.
            clock: Returns the current wall-clock time in epoch milliseconds.
        """
        self.executor = executor
        self.serializer = serializer
        self.retry_config = retry_config or DEFAULT_RETRY_CONFIG
        self._clock = clock
        self._started = False

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        executor: KeyValueExecutor,
        serializer: AttributeSerializer
    ) -> "RedisSessionDataStore":
        """Build a store whose retry policy comes from application settings."""
        retry_config = RetryConfig(
            max_attempts=settings.session_store_retry_attempts,
            initial_delay=settings.session_store_retry_delay_seconds,
            exponential_base=1.0,
            retryable_exceptions=TRANSIENT_ERRORS,
        )
        return cls(executor, serializer, retry_config=retry_config)

    def start(self) -> None:
        self.serializer.start()
        self._started = True
        logger.info("Redis session data store started")

    def stop(self) -> None:
        self._started = False
        self.serializer.stop()
        logger.info("Redis session data store stopped")

    def _ensure_started(self) -> None:
        if not self._started:
            raise RuntimeError("Session data store not started. Call start() first.")

    @staticmethod
    def _get_key(session_id: str) -> str:
        """
        Generate the Redis key for a session.

        Args:
            session_id: The session identifier.

        Returns:
            Redis key with the "jetty-session-" prefix.
        """
        return f"{KEY_PREFIX}{session_id}"

    def _record_to_fields(self, record: SessionRecord) -> dict[str, str]:
        return {
            "id": record.id,
            "cpath": record.context_path,
            "vhost": record.virtual_host,
            "created": str(record.created),
            "lastAccessed": str(record.last_accessed),
            "accessed": str(record.accessed),
            "maxInactiveMs": str(record.max_inactive_ms),
            "cookieSet": str(record.cookie_set),
            "attributes": self.serializer.serialize_attributes(record.attributes),
        }

    def _fields_to_record(self, session_id: str, values: list) -> SessionRecord:
        if len(values) != len(LOAD_FIELDS):
            raise SessionDataError(
                session_id,
                f"expected {len(LOAD_FIELDS)} fields, got {len(values)}"
            )

        fields = dict(zip(LOAD_FIELDS, values))

        def number(name: str, required: bool = True) -> int:
            raw = fields[name]
            if raw is None:
                if required:
                    raise SessionDataError(session_id, f"missing field '{name}'")
                return 0
            if not isinstance(raw, str) or not _DECIMAL.fullmatch(raw):
                raise SessionDataError(
                    session_id, f"field '{name}' is not a decimal number: {raw!r}"
                )
            return int(raw)

        for name in ("vhost", "attributes"):
            if fields[name] is None:
                raise SessionDataError(session_id, f"missing field '{name}'")
        try:
            attributes = self.serializer.deserialize_attributes(fields["attributes"])
        except ValueError as e:
            raise SessionDataError(session_id, f"undecodable attributes: {e}") from e

        return SessionRecord(
            id=session_id,
            context_path=fields["cpath"],
            virtual_host=fields["vhost"],
            created=number("created"),
            accessed=number("accessed"),
            last_accessed=number("lastAccessed"),
            max_inactive_ms=number("maxInactiveMs"),
            attributes=attributes,
            cookie_set=number("cookieSet"),
            last_saved=number("lastSaved", required=False),
        )

    def store(self, session_id: str, record: SessionRecord) -> None:
        self._ensure_started()
        if session_id != record.id:
            raise validation_error(
                "Session id does not match the record being stored",
                details={"session_id": session_id, "record_id": record.id}
            )

        to_store = self._record_to_fields(record)
        key = self._get_key(record.id)
        logger.debug("Storing session %s", key)

        def write(client) -> int:
            # Taken per attempt so a retried write records when it really happened
            saved_at = self._clock()
            fields = dict(to_store, lastSaved=str(saved_at))
            with client.pipeline(transaction=True) as pipe:
                pipe.hset(key, mapping=fields)
                if record.max_inactive_ms > 0:
                    # Absolute deadline: latency before EXEC must not extend it
                    pipe.pexpireat(key, record.calc_expiry(saved_at))
                else:
                    pipe.persist(key)
                pipe.execute()
            return saved_at

        saved_at = retry_call(
            self.executor.execute,
            "sessionStore",
            write,
            config=self.retry_config,
            operation_name="session_store",
            context={"session_id": session_id},
        )
        record.last_saved = saved_at
        logger.debug(
            "Saved session %s, expires at %d",
            key,
            record.calc_expiry(saved_at),
        )

    def load(self, session_id: str) -> Optional[SessionRecord]:
        self._ensure_started()
        key = self._get_key(session_id)

        values = retry_call(
            self.executor.execute,
            "sessionLoad",
            lambda client: client.hmget(key, list(LOAD_FIELDS)),
            config=self.retry_config,
            operation_name="session_load",
            context={"session_id": session_id},
        )

        if not values or values[0] is None:
            logger.debug("No stored session %s", key)
            return None

        return self._fields_to_record(session_id, values)

    def exists(self, session_id: str) -> bool:
        self._ensure_started()
        key = self._get_key(session_id)
        return self.executor.execute(
            "sessionExists", lambda client: client.exists(key) > 0
        )

    def delete(self, session_id: str) -> bool:
        self._ensure_started()
        key = self._get_key(session_id)
        removed = self.executor.execute(
            "sessionDelete", lambda client: client.delete(key)
        )
        return removed == 1

    def get_expired(self, candidates: Iterable[str]) -> set[str]:
        # Redis TTLs reclaim expired sessions; nothing to report
        return set()

    def is_passivating(self) -> bool:
        return False

    def health_check(self) -> bool:
        """
        Check connectivity and health of Redis.

        Returns:
            True if Redis answered PING, False otherwise. Never raises.
        """
        try:
            return self.executor.execute("sessionPing", lambda client: client.ping()) is True
        except Exception as e:
            logger.warning(
                "Session store health check failed: %s", e,
                extra={"extra_data": {"error_type": type(e).__name__}}
            )
            return False
