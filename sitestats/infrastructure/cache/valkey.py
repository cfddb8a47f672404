# ==============================================================================
# Valkey Key-Value Store Implementation
# ==============================================================================
"""
Valkey/Redis implementation of the KeyValueStore interface.

Provides:
- Plain string keys (get/set)
- Record collections stored as Redis hashes (one field per record)
- Atomic single-record updates via WATCH/MULTI
- Pattern-based deletion and size accounting
"""

import logging
from collections.abc import Callable
from typing import Optional

import redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.retry import Retry

from sitestats.base import KeyValueStore
from sitestats.utils.config import get_settings
from sitestats.utils.retry import VALKEY_RETRIES

logger = logging.getLogger(__name__)


class ValkeyCache(KeyValueStore):
    """
    Valkey/Redis implementation of the KeyValueStore interface.

    Configured with:
    - Socket timeouts for fast failure detection (10 seconds unless given)
    - Client-level retries with exponential backoff for transient failures
      (0 disables them; callers then retry at the operation level)
    - Health check interval to keep connections alive
    """

    def __init__(
        self,
        url: str | None = None,
        socket_timeout: float = 10,
        retries: int | None = None,
        health_check_interval: int = 30,
        client: redis.Redis | None = None,
    ):
        """
        Initialize Valkey store.

        Args:
            url: Valkey/Redis connection URL. If None, uses settings.
            socket_timeout: Socket timeout in seconds (default: 10)
            retries: Number of retries for transient failures (default: from settings)
            health_check_interval: Health check interval in seconds (default: 30)
            client: Ready-made client (must use decode_responses=True); skips connecting
        """
        if client is not None:
            self._client = client
            self._url = url or "redis://injected"
            return

        if url is None:
            url = get_settings().valkey.url

        retry_count = retries if retries is not None else VALKEY_RETRIES
        retry_strategy = Retry(ExponentialBackoff(cap=32, base=1), retries=retry_count)

        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            retry=retry_strategy,
            retry_on_error=[RedisTimeoutError, RedisConnectionError],
            health_check_interval=health_check_interval,
        )
        self._url = url

    @property
    def client(self) -> redis.Redis:
        """Get the underlying Redis client for advanced operations."""
        return self._client

    # ==========================================================================
    # Plain keys
    # ==========================================================================

    def get(self, key: str) -> Optional[str]:
        return self._client.get(key)

    def set(self, key: str, value: str, only_new: bool = False) -> bool:
        return bool(self._client.set(key, value, nx=only_new))

    def delete_pattern(self, pattern: str) -> int:
        keys = list(self._client.scan_iter(pattern))
        if keys:
            return self._client.delete(*keys)
        return 0

    # ==========================================================================
    # Record collections (hashes)
    # ==========================================================================

    def put_record(self, collection: str, record_id: str, value: str, only_new: bool = False) -> bool:
        """
        Write one hash field.

        HSET/HSETNX touch a single field, so concurrent writers adding other
        records to the same collection are never overwritten.
        """
        if only_new:
            return bool(self._client.hsetnx(collection, record_id, value))
        self._client.hset(collection, record_id, value)
        return True

    def get_records(self, collection: str) -> dict[str, str]:
        return self._client.hgetall(collection)

    def update_record(
        self,
        collection: str,
        record_id: str,
        updater: Callable[[str], str],
    ) -> Optional[str]:
        """
        Read-modify-write of one hash field under WATCH.

        The transaction is retried by redis-py when another writer touches
        the collection between the read and the write.
        """
        result: dict[str, Optional[str]] = {"value": None}

        def _apply(pipe) -> None:
            current = pipe.hget(collection, record_id)
            if current is None:
                result["value"] = None
                pipe.multi()
                return
            updated = updater(current)
            result["value"] = updated
            pipe.multi()
            pipe.hset(collection, record_id, updated)

        self._client.transaction(_apply, collection)
        return result["value"]

    # ==========================================================================
    # Maintenance
    # ==========================================================================

    def size_of(self, pattern: str) -> int:
        total = 0
        for key in self._client.scan_iter(pattern):
            key_type = self._client.type(key)
            if key_type == "hash":
                total += sum(len(v.encode("utf-8")) for v in self._client.hvals(key))
            elif key_type == "string":
                value = self._client.get(key)
                total += len(value.encode("utf-8")) if value else 0
        return total
