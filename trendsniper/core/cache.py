from __future__ import annotations

import logging
import time
from typing import Any, Protocol

import orjson
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class Cache(Protocol):
    async def get_json(self, key: str) -> Any | None: ...

    async def set_json(self, key: str, value: Any, ttl: int) -> None: ...

    async def delete(self, *keys: str) -> int: ...

    async def close(self) -> None: ...


class RedisCache:
    def __init__(self, redis_url: str) -> None:
        self.redis = Redis.from_url(redis_url, decode_responses=False)

    async def close(self) -> None:
        await self.redis.aclose()

    async def get_json(self, key: str) -> Any | None:
        try:
            raw = await self.redis.get(key)
            if not raw:
                return None
            return orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning("cache_json_decode_error", extra={"event": "cache_json_decode_error", "error": key})
            return None
        except Exception as exc:  # noqa: BLE001
            logger.warning("cache_get_error", extra={"event": "cache_get_error", "error": str(exc)})
            return None

    async def set_json(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self.redis.set(key, orjson.dumps(value), ex=ttl)
        except Exception as exc:  # noqa: BLE001
            logger.warning("cache_set_error", extra={"event": "cache_set_error", "error": str(exc)})

    async def delete(self, *keys: str) -> int:
        """Delete one or more keys. Returns number of keys removed."""
        if not keys:
            return 0
        try:
            return int(await self.redis.delete(*keys))
        except Exception as exc:  # noqa: BLE001
            logger.warning("cache_delete_error", extra={"event": "cache_delete_error", "error": str(exc)})
            return 0


class MemoryCache:
    """Process-local cache with the RedisCache interface.

    Values go through orjson on the way in and out so both backends accept
    and return exactly the same shapes.
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[bytes, float]] = {}

    async def close(self) -> None:
        self._data.clear()

    async def get_json(self, key: str) -> Any | None:
        item = self._data.get(key)
        if item is None:
            return None
        raw, expires_at = item
        if expires_at <= time.monotonic():
            self._data.pop(key, None)
            return None
        return orjson.loads(raw)

    async def set_json(self, key: str, value: Any, ttl: int) -> None:
        self._data[key] = (orjson.dumps(value), time.monotonic() + ttl)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._data.pop(key, None) is not None:
                removed += 1
        return removed


def build_cache(redis_url: str | None) -> Cache:
    if redis_url:
        return RedisCache(redis_url)
    return MemoryCache()
