import asyncio
import hashlib
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)


def make_cache_key(namespace: str, payload: Any) -> str:
    """
    Structural cache key: equal payloads give equal keys regardless of dict order

    Args:
        namespace: Route or operation name
        payload: JSON-serializable request data

    Returns:
        "<namespace>:<sha256 of canonical JSON>"
    """
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return f"{namespace}:{hashlib.sha256(encoded.encode('utf-8')).hexdigest()}"


class ResponseCache:
    """
    In-memory TTL cache with single-flight de-duplication

    Features:
    - cachetools.TTLCache storage: bounded size, expiry on read, explicit sweep()
    - Concurrent callers with the same key share one in-flight computation
    - Failed computations are never cached
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        maxsize: int = 256,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize cache

        Args:
            ttl_seconds: How long a stored value stays fresh
            maxsize: Entry limit; the least recently used entry is evicted first
            clock: Monotonic time source (injectable for tests)
        """
        self.ttl_seconds = ttl_seconds
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=clock)
        self._in_flight: Dict[str, asyncio.Future] = {}

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        """Return a fresh cached value, or None"""
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def sweep(self) -> int:
        """Drop every expired entry; returns how many were removed"""
        expired = self._entries.expire()
        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_compute(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return the cached value for key, computing it at most once

        Args:
            key: Cache key (see make_cache_key)
            factory: Coroutine function producing the value

        Returns:
            Cached or freshly computed value

        Raises:
            Whatever factory raises; the failure is shared with any callers
            that joined the same in-flight computation
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        pending = self._in_flight.get(key)
        if pending is not None:
            logger.debug(f"Joining in-flight computation: {key}")
            return await asyncio.shield(pending)

        future = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            value = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unjoined failure is not reported by asyncio
            future.exception()
            raise
        else:
            self.set(key, value)
            future.set_result(value)
            return value
        finally:
            self._in_flight.pop(key, None)
