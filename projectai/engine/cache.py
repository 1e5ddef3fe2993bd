"""
ProjectAI Cache Layer — Redis session store and the in-process query cache.

Redis holds the resolved-session snapshots (profile + effective role) so a
token that was already resolved does not hit the profiles table again
within the session timeout. All Redis data is ephemeral; losing Redis only
costs an extra profile lookup.

QueryCache mirrors the dashboard's data-fetching semantics: results are
keyed by (resource, identity, role), considered fresh for ``stale_time``
seconds, garbage-collected after ``gc_time`` seconds, identical in-flight
fetches are shared, and failed fetches are retried unless the error looks
like a permission/authentication problem.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

logger = logging.getLogger("projectai.engine.cache")


class RedisCache:
    """
    Redis wrapper with a circuit breaker.

    Never raises: operations return None/False/0 when Redis is unavailable
    or the circuit is open, so callers fall back to the backend.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "projectai:",
        default_ttl: int = 300,
        db: int = 0,
    ):
        self._redis_url = redis_url
        self._prefix = prefix
        self._default_ttl = default_ttl
        self._db = db
        self._client = None
        self._available = False

        # Circuit breaker state
        self._failure_count = 0
        self._failure_threshold = 5
        self._failure_window = 30  # seconds
        self._first_failure_time = 0.0
        self._circuit_open = False

    def connect(self) -> bool:
        """Initialize the Redis connection."""
        try:
            import redis
            self._client = redis.Redis.from_url(
                self._redis_url,
                db=self._db,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
                retry_on_timeout=True,
            )
            self._client.ping()
            self._available = True
            self._circuit_open = False
            self._failure_count = 0
            logger.info(f"Redis connected: DB {self._db} ({self._prefix})")
            return True
        except Exception as e:
            logger.warning(f"Redis connection failed (DB {self._db}): {e}")
            self._available = False
            return False

    def _check_circuit(self) -> bool:
        if self._circuit_open:
            if time.time() - self._first_failure_time > self._failure_window:
                self._circuit_open = False
                self._failure_count = 0
                return self.connect()
            return False
        return self._available

    def _record_failure(self) -> None:
        now = time.time()
        if self._failure_count == 0:
            self._first_failure_time = now
        self._failure_count += 1

        if self._failure_count >= self._failure_threshold:
            elapsed = now - self._first_failure_time
            if elapsed <= self._failure_window:
                self._circuit_open = True
                logger.error(
                    f"Redis circuit breaker OPEN: {self._failure_count} failures in {elapsed:.1f}s"
                )

    def _make_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        """Get a value. Returns None on miss or failure."""
        if not self._check_circuit():
            return None
        try:
            return self._client.get(self._make_key(key))
        except Exception as e:
            self._record_failure()
            logger.debug(f"Redis GET failed: {e}")
            return None

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """Set a value with optional TTL. Returns False on failure."""
        if not self._check_circuit():
            return False
        try:
            self._client.set(self._make_key(key), value, ex=ttl or self._default_ttl)
            return True
        except Exception as e:
            self._record_failure()
            logger.debug(f"Redis SET failed: {e}")
            return False

    def delete(self, key: str) -> bool:
        if not self._check_circuit():
            return False
        try:
            self._client.delete(self._make_key(key))
            return True
        except Exception:
            self._record_failure()
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a pattern. Returns count deleted."""
        if not self._check_circuit():
            return 0
        try:
            keys = list(self._client.scan_iter(match=self._make_key(pattern), count=1000))
            if keys:
                return self._client.delete(*keys)
            return 0
        except Exception:
            self._record_failure()
            return 0

    def get_json(self, key: str) -> Optional[Any]:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    def set_json(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            return self.set(key, json.dumps(value, default=str), ttl=ttl)
        except (TypeError, ValueError):
            return False

    def ping(self) -> bool:
        if not self._client:
            return False
        try:
            return bool(self._client.ping())
        except Exception:
            return False

    def close(self) -> None:
        """Close the Redis connection and reset breaker state."""
        if self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                logger.debug(f"Redis close failed: {e}")
            self._client = None
        self._available = False
        self._circuit_open = False
        self._failure_count = 0

    @property
    def is_available(self) -> bool:
        return self._available and not self._circuit_open

    @property
    def is_circuit_open(self) -> bool:
        return self._circuit_open


def create_session_store(redis_url: str, ttl: int = 3600) -> RedisCache:
    """Create the resolved-session store (Redis DB 4)."""
    cache = RedisCache(redis_url=redis_url, prefix="projectai:session:", default_ttl=ttl, db=4)
    cache.connect()
    return cache


# ---------------------------------------------------------------------------
# Query Cache
# ---------------------------------------------------------------------------

QueryKey = Tuple[Hashable, ...]


def should_retry(
    failure_count: int,
    error: BaseException,
    max_retries: int = 3,
    no_retry_markers: Sequence[str] = ("permission", "authentication"),
) -> bool:
    """
    Uniform retry rule for every query: never retry errors that look like a
    permission or authentication problem, otherwise retry while
    ``failure_count < max_retries``.
    """
    text = str(error).lower()
    if any(marker in text for marker in no_retry_markers):
        return False
    return failure_count < max_retries


@dataclass
class _CacheEntry:
    data: Any
    updated_at: float


@dataclass
class _InFlight:
    event: threading.Event = field(default_factory=threading.Event)
    result: Any = None
    error: Optional[BaseException] = None


class QueryCache:
    """
    In-process query result cache with staleness and GC windows.

    Usage:
        cache = QueryCache(stale_time=120, gc_time=300)
        projects = cache.fetch(("projects", user_id, role), load_projects)
        cache.invalidate(("projects",))
    """

    def __init__(
        self,
        stale_time: float = 120,
        gc_time: float = 300,
        max_retries: int = 3,
        no_retry_markers: Sequence[str] = ("permission", "authentication"),
        retry_delay: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._stale_time = stale_time
        self._gc_time = gc_time
        self._max_retries = max_retries
        self._no_retry_markers = tuple(m.lower() for m in no_retry_markers)
        self._retry_delay = retry_delay
        self._clock = clock
        self._entries: Dict[QueryKey, _CacheEntry] = {}
        self._in_flight: Dict[QueryKey, _InFlight] = {}
        self._lock = threading.Lock()
        self.fetch_count = 0

    def fetch(self, key: QueryKey, fetcher: Callable[[], Any], force: bool = False) -> Any:
        """
        Return cached data for ``key`` while fresh, otherwise run ``fetcher``.

        Concurrent callers asking for the same key while a fetch is running
        wait for it and share its result (or its error).
        """
        key = tuple(key)
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is not None and now - entry.updated_at > self._gc_time:
                del self._entries[key]
                entry = None
            if entry is not None and not force and now - entry.updated_at < self._stale_time:
                return entry.data

            flight = self._in_flight.get(key)
            owner = flight is None
            if owner:
                flight = _InFlight()
                self._in_flight[key] = flight

        if not owner:
            flight.event.wait()
            if flight.error is not None:
                raise flight.error
            return flight.result

        try:
            flight.result = self._run_with_retry(key, fetcher)
            with self._lock:
                self._entries[key] = _CacheEntry(data=flight.result, updated_at=self._clock())
            return flight.result
        except Exception as e:
            flight.error = e
            raise
        finally:
            with self._lock:
                self._in_flight.pop(key, None)
            flight.event.set()

    def _run_with_retry(self, key: QueryKey, fetcher: Callable[[], Any]) -> Any:
        failure_count = 0
        while True:
            try:
                self.fetch_count += 1
                return fetcher()
            except Exception as e:
                failure_count += 1
                if not should_retry(failure_count, e, self._max_retries, self._no_retry_markers):
                    logger.warning(f"Query {key[0]!r} failed after {failure_count} attempt(s): {e}")
                    raise
                logger.info(f"Query {key[0]!r} retry attempt {failure_count} for error: {e}")
                if self._retry_delay:
                    time.sleep(self._retry_delay * (2 ** (failure_count - 1)))

    def get(self, key: QueryKey) -> Optional[Any]:
        """Cached data for ``key`` regardless of staleness, or None."""
        with self._lock:
            entry = self._entries.get(tuple(key))
            return entry.data if entry is not None else None

    def set(self, key: QueryKey, data: Any) -> None:
        with self._lock:
            self._entries[tuple(key)] = _CacheEntry(data=data, updated_at=self._clock())

    def is_stale(self, key: QueryKey) -> bool:
        with self._lock:
            entry = self._entries.get(tuple(key))
            return entry is None or self._clock() - entry.updated_at >= self._stale_time

    def invalidate(self, prefix: QueryKey = ()) -> int:
        """Drop every entry whose key starts with ``prefix``. Returns count dropped."""
        prefix = tuple(prefix)
        with self._lock:
            doomed = [k for k in self._entries if k[: len(prefix)] == prefix]
            for k in doomed:
                del self._entries[k]
        return len(doomed)

    def collect_garbage(self) -> int:
        """Evict entries older than gc_time. Returns count evicted."""
        with self._lock:
            now = self._clock()
            doomed = [k for k, e in self._entries.items() if now - e.updated_at > self._gc_time]
            for k in doomed:
                del self._entries[k]
        return len(doomed)

    def keys(self) -> List[QueryKey]:
        with self._lock:
            return list(self._entries.keys())
