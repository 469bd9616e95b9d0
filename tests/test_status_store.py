"""Tests for memory.status_store against the in-memory backend."""

from __future__ import annotations

import json
from typing import Any

import pytest

from core.reconciler import BoostObservation, HealthCounters
from memory.status_store import StatusStore


class TestStatusStoreInMemory:
    def test_empty_snapshot(self) -> None:
        store = StatusStore(use_redis=False)
        assert store.backend == "memory"
        assert store.snapshot() == {"backend": "memory", "last_boost": None, "health": None}

    def test_publish_boost(self) -> None:
        store = StatusStore(use_redis=False)
        store.publish_boost(BoostObservation(21.0, "+950", "+1129", observed_at=10.0))
        assert store.snapshot()["last_boost"] == {
            "percentage": 21.0,
            "was_odds": "+950",
            "now_odds": "+1129",
            "observed_at": 10.0,
        }

    def test_publish_health_overwrites(self) -> None:
        store = StatusStore(use_redis=False)
        store.publish_health(HealthCounters(consecutive_parse_failures=2, last_unique_boost_at=5.0))
        store.publish_health(HealthCounters(consecutive_parse_failures=3, last_unique_boost_at=5.0))
        assert store.snapshot()["health"]["consecutive_parse_failures"] == 3


class FakeRedis:
    def __init__(self, fail: bool = False) -> None:
        self.data: dict[str, str] = {}
        self.fail = fail

    def set(self, key: str, value: str) -> None:
        if self.fail:
            import redis

            raise redis.ConnectionError("gone")
        self.data[key] = value

    def get(self, key: str) -> Any:
        return self.data.get(key)


class TestStatusStoreRedis:
    def test_values_are_json_under_prefix(self) -> None:
        pytest.importorskip("redis")
        store = StatusStore(use_redis=False, key_prefix="t")
        client = FakeRedis()
        store._redis_client = client
        store.publish_health(HealthCounters(consecutive_parse_failures=1, last_unique_boost_at=0.0))
        assert json.loads(client.data["t:health"])["consecutive_parse_failures"] == 1
        assert store.snapshot()["health"]["consecutive_parse_failures"] == 1

    def test_write_failure_falls_back_to_memory(self) -> None:
        pytest.importorskip("redis")
        store = StatusStore(use_redis=False)
        store._redis_client = FakeRedis(fail=True)
        store.publish_boost(BoostObservation(40.0, observed_at=1.0))
        assert store.snapshot()["last_boost"]["percentage"] == 40.0
