"""
Tests del cache de consultas: TTL, patrones de invalidación y lectura
cacheada del horario del padre.
"""

import fnmatch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.cache import (
    InMemoryQueryCache,
    RedisQueryCache,
    WorkingHoursCacheKeys,
    get_query_cache,
)
from app.models.working_hours import EntityType
from app.services import working_hours_service
from app.services.working_hours_validation_service import validate_hierarchical
from tests.utils import store_hours, week


class TestInMemoryQueryCache:

    async def test_set_get_and_delete(self):
        cache = InMemoryQueryCache()
        await cache.set("a", {"x": 1}, ttl_seconds=60)
        assert await cache.get("a") == {"x": 1}
        await cache.delete("a")
        assert await cache.get("a") is None

    async def test_expired_entries_are_misses(self):
        now = [1000.0]
        cache = InMemoryQueryCache(clock=lambda: now[0])

        await cache.set("a", [1, 2], ttl_seconds=300)
        now[0] += 299
        assert await cache.get("a") == [1, 2]
        now[0] += 1
        assert await cache.get("a") is None
        assert len(cache) == 0

    async def test_invalidate_pattern(self):
        cache = InMemoryQueryCache()
        await cache.set(WorkingHoursCacheKeys.parent_hours("clinic", "c1"), [], 60)
        await cache.set(WorkingHoursCacheKeys.entity_details("clinic", "c1"), {}, 60)
        await cache.set(WorkingHoursCacheKeys.parent_hours("clinic", "c2"), [], 60)

        deleted = await cache.invalidate_pattern(WorkingHoursCacheKeys.entity_pattern("clinic", "c1"))

        assert deleted == 2
        assert len(cache) == 1

    async def test_values_are_copies(self):
        cache = InMemoryQueryCache()
        value = {"days": ["monday"]}
        await cache.set("a", value, 60)
        value["days"].append("tuesday")
        assert await cache.get("a") == {"days": ["monday"]}


class TestRedisQueryCache:

    async def test_redis_errors_behave_as_misses(self, monkeypatch):
        cache = RedisQueryCache("redis://localhost:6399/0")

        async def unavailable(*args, **kwargs):
            raise RedisConnectionError("connection refused")

        monkeypatch.setattr(cache._client, "get", unavailable)
        monkeypatch.setattr(cache._client, "setex", unavailable)

        await cache.set("a", {"x": 1}, 60)
        assert await cache.get("a") is None


def test_process_cache_defaults_to_memory():
    assert isinstance(get_query_cache(), InMemoryQueryCache)
    assert get_query_cache() is get_query_cache()


# ── Horario del padre ────────────────────────────────

class TestParentHoursCache:

    async def test_parent_hours_are_served_from_cache(self, db_session, test_clinic, query_cache):
        await store_hours(db_session, EntityType.CLINIC, test_clinic.id, week("08:00", "18:00"))

        first = await working_hours_service.get_parent_working_hours(
            db_session, EntityType.CLINIC, test_clinic.id, cache=query_cache
        )
        await store_hours(db_session, EntityType.CLINIC, test_clinic.id, week("10:00", "12:00"))
        second = await working_hours_service.get_parent_working_hours(
            db_session, EntityType.CLINIC, test_clinic.id, cache=query_cache
        )
        fresh = await working_hours_service.get_parent_working_hours(
            db_session, EntityType.CLINIC, test_clinic.id, cache=query_cache, use_cache=False
        )

        assert first == second
        assert second[1].opening_time == "08:00"
        assert fresh[1].opening_time == "10:00"

    async def test_stale_parent_hours_until_ttl(self, db_session, test_clinic, query_cache):
        """Sin invalidación, la validación hija ve el horario anterior del padre."""
        await store_hours(db_session, EntityType.CLINIC, test_clinic.id, week("08:00", "18:00"))
        child = week("08:30", "17:30")

        before = await validate_hierarchical(
            db_session, child, EntityType.CLINIC, test_clinic.id, "X", cache=query_cache
        )
        await store_hours(db_session, EntityType.CLINIC, test_clinic.id, week("09:00", "17:00"))
        after = await validate_hierarchical(
            db_session, child, EntityType.CLINIC, test_clinic.id, "X", cache=query_cache
        )

        assert before.is_valid is True
        assert after.is_valid is True

    async def test_invalidate_on_write(self, db_session, test_clinic, query_cache, monkeypatch):
        monkeypatch.setattr(working_hours_service.settings, "CACHE_INVALIDATE_ON_WRITE", True)
        await store_hours(db_session, EntityType.CLINIC, test_clinic.id, week("08:00", "18:00"))
        child = week("08:30", "17:30")

        await validate_hierarchical(
            db_session, child, EntityType.CLINIC, test_clinic.id, "X", cache=query_cache
        )
        await working_hours_service.replace_working_hours(
            db_session, EntityType.CLINIC, test_clinic.id, week("09:00", "17:00"), cache=query_cache
        )
        await db_session.commit()
        after = await validate_hierarchical(
            db_session, child, EntityType.CLINIC, test_clinic.id, "X", cache=query_cache
        )

        assert after.is_valid is False

    async def test_empty_parent_result_is_cached(self, db_session, test_clinic, query_cache):
        await working_hours_service.get_parent_working_hours(
            db_session, EntityType.CLINIC, test_clinic.id, cache=query_cache
        )
        key = WorkingHoursCacheKeys.parent_hours("clinic", test_clinic.id)
        assert await query_cache.get(key) == []


@pytest.mark.parametrize("entity_type", list(EntityType))
def test_entity_pattern_matches_both_key_families(entity_type):
    pattern = WorkingHoursCacheKeys.entity_pattern(entity_type.value, "abc")
    assert fnmatch.fnmatchcase(WorkingHoursCacheKeys.parent_hours(entity_type.value, "abc"), pattern)
    assert fnmatch.fnmatchcase(WorkingHoursCacheKeys.entity_details(entity_type.value, "abc"), pattern)
