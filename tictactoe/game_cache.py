"""Read-through cache for game snapshots.

Invalidation is blanket: every key lives under the current generation number
and invalidate_all() bumps it. A reader that started computing before an
invalidation stores its value under the old generation, where nobody looks.
"""

import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from tictactoe.domain.errors import CacheUnavailable

Compute = Callable[[], Awaitable[Any]]


class RedisGameCache:
    def __init__(self, redis: Redis, ttl_sec: int, timeout: float, prefix: str = "tictactoe"):
        self.redis = redis
        self.ttl_sec = ttl_sec
        self.timeout = timeout
        self.prefix = prefix
        self.generation_key = f"{prefix}:generation"

    async def _call(self, awaitable: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(awaitable, self.timeout)
        except (asyncio.TimeoutError, RedisError) as e:
            logging.warning(f"Redis call failed: {e!r}")
            raise CacheUnavailable() from e

    async def get_or_compute(self, key: str, compute: Compute) -> Any:
        """Return the cached JSON value for key, computing and storing it on a miss

        Args:
            key (str): Cache key, e.g. "game:<id>" or "games:<status>"
            compute (Compute): Coroutine function producing a JSON-serializable value

        Returns:
            Any: Decoded value
        """
        generation = await self._call(self.redis.get(self.generation_key)) or "0"
        full_key = f"{self.prefix}:{generation}:{key}"
        cached = await self._call(self.redis.get(full_key))
        if cached is not None:
            logging.debug(f"Cache hit: {full_key}")
            return json.loads(cached)

        value = await compute()
        await self._call(self.redis.set(full_key, json.dumps(value), ex=self.ttl_sec))
        return value

    async def invalidate_all(self):
        await self._call(self.redis.incr(self.generation_key))

    async def close(self):
        await self.redis.aclose()


class LocalGameCache:
    """In-process backend with the same contract, for development and tests."""

    def __init__(self, ttl_sec: int = 60):
        self.ttl_sec = ttl_sec
        self.generation = 0
        self.entries: Dict[str, Tuple[float, str]] = {}
        self.hits = 0
        self.misses = 0

    async def get_or_compute(self, key: str, compute: Compute) -> Any:
        generation = self.generation
        entry = self.entries.get(key)
        if entry is not None and entry[0] > time.monotonic():
            self.hits += 1
            return json.loads(entry[1])

        self.misses += 1
        value = await compute()
        if generation == self.generation:
            self.entries[key] = (time.monotonic() + self.ttl_sec, json.dumps(value))
        return value

    async def invalidate_all(self):
        self.generation += 1
        self.entries.clear()

    async def close(self):
        self.entries.clear()
