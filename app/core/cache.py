"""
Cache de consultas con TTL (horario del padre, datos de entidades).

Los servicios reciben el cache inyectado; `get_query_cache()` entrega la
instancia de proceso según `CACHE_BACKEND` (memoria o Redis).

Las escrituras de horario NO invalidan el cache por defecto: una
validación hija puede observar el horario padre anterior hasta que
expire el TTL. Con `CACHE_INVALIDATE_ON_WRITE=True` se evictan las
claves de la entidad escrita.
"""

import abc
import fnmatch
import json
import logging
import time
from functools import lru_cache
from typing import Any, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from app.config import get_settings

logger = logging.getLogger(__name__)


class QueryCache(abc.ABC):
    """Interfaz del cache de consultas. Los valores deben ser serializables a JSON."""

    @abc.abstractmethod
    async def get(self, key: str) -> Any | None: ...

    @abc.abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    @abc.abstractmethod
    async def delete(self, key: str) -> None: ...

    @abc.abstractmethod
    async def invalidate_pattern(self, pattern: str) -> int:
        """Elimina las claves que coinciden con un patrón glob (`*`)."""

    @abc.abstractmethod
    async def clear(self) -> None: ...


class InMemoryQueryCache(QueryCache):
    """Cache en memoria del proceso con expiración perezosa."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: dict[str, tuple[float, str]] = {}
        self._clock = clock

    async def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        expires_at, payload = entry
        if self._clock() >= expires_at:
            del self._store[key]
            return None
        return json.loads(payload)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._store[key] = (self._clock() + ttl_seconds, json.dumps(value))

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def invalidate_pattern(self, pattern: str) -> int:
        keys = [k for k in self._store if fnmatch.fnmatchcase(k, pattern)]
        for key in keys:
            del self._store[key]
        return len(keys)

    async def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


class RedisQueryCache(QueryCache):
    """
    Cache sobre Redis (SETEX + JSON). Si Redis no responde, se registra un
    warning y la operación se comporta como un miss.
    """

    def __init__(self, url: str, prefix: str = "clinicas") -> None:
        self._client = aioredis.from_url(url, decode_responses=True)
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def get(self, key: str) -> Any | None:
        try:
            payload = await self._client.get(self._key(key))
        except RedisError as exc:
            logger.warning(f"Redis no disponible al leer {key}: {exc}")
            return None
        if payload is None:
            return None
        return json.loads(payload)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self._client.setex(self._key(key), ttl_seconds, json.dumps(value))
        except RedisError as exc:
            logger.warning(f"Redis no disponible al escribir {key}: {exc}")

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except RedisError as exc:
            logger.warning(f"Redis no disponible al eliminar {key}: {exc}")

    async def invalidate_pattern(self, pattern: str) -> int:
        deleted = 0
        try:
            async for redis_key in self._client.scan_iter(match=self._key(pattern)):
                deleted += await self._client.delete(redis_key)
        except RedisError as exc:
            logger.warning(f"Redis no disponible al invalidar {pattern}: {exc}")
        return deleted

    async def clear(self) -> None:
        await self.invalidate_pattern("*")


# ── Claves ───────────────────────────────────────────

class WorkingHoursCacheKeys:
    """Constructores de claves del cache de horarios."""

    @staticmethod
    def parent_hours(entity_type: str, entity_id: Any) -> str:
        return f"working-hours:parent:{entity_type}:{entity_id}"

    @staticmethod
    def entity_details(entity_type: str, entity_id: Any) -> str:
        return f"entity:details:{entity_type}:{entity_id}"

    @staticmethod
    def entity_pattern(entity_type: str, entity_id: Any) -> str:
        """Todas las claves de una entidad, para invalidación opcional."""
        return f"*:{entity_type}:{entity_id}*"


@lru_cache
def get_query_cache() -> QueryCache:
    settings = get_settings()
    if settings.CACHE_BACKEND == "redis":
        logger.info("Cache de consultas: Redis")
        return RedisQueryCache(settings.REDIS_URL)
    return InMemoryQueryCache()


def resolve_cache(cache: QueryCache | None) -> QueryCache:
    """El cache inyectado o, si no hay, el del proceso."""
    return cache if cache is not None else get_query_cache()
