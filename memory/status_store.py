"""Redis-backed (or in-memory fallback) status snapshot.

Publishes the last detected boost and the health counters under
``<prefix>:last_boost`` and ``<prefix>:health`` so dashboards or a second
process can see what the sentinel is doing.  When Redis is unreachable
the same data lives in a local dict; the rest of the system works
identically regardless of the backend.

The active backend (``"redis"`` or ``"memory"``) is exposed via
:attr:`StatusStore.backend` for logging.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass, field
from typing import Any

from core.reconciler import BoostObservation, HealthCounters

_log = logging.getLogger("boost.status_store")


@dataclass(slots=True)
class StatusStore:
    """Dual-backend status publisher (Redis / in-memory).

    Attributes:
        redis_url:  Redis connection URL.
        key_prefix: Namespace for the published keys.
        use_redis:  ``False`` skips the connection attempt entirely.
        backend:    ``"redis"`` or ``"memory"`` (set during init).
    """

    redis_url: str = "redis://127.0.0.1:6379/0"
    key_prefix: str = "boost_sentinel"
    use_redis: bool = True
    _cache: dict[str, Any] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _redis_client: Any = field(init=False, default=None)
    backend: str = field(init=False, default="memory")

    def __post_init__(self) -> None:
        if not self.use_redis:
            return
        import redis

        try:
            client = redis.Redis.from_url(self.redis_url, decode_responses=True, socket_connect_timeout=2)
            client.ping()
            self._redis_client = client
            self.backend = "redis"
        except redis.RedisError as exc:
            self._redis_client = None
            self.backend = "memory"
            _log.warning("Redis unavailable (%s), using in-memory fallback", exc)

    def _key(self, name: str) -> str:
        return f"{self.key_prefix}:{name}"

    def _set(self, name: str, value: dict[str, Any]) -> None:
        if self._redis_client is not None:
            import redis

            try:
                self._redis_client.set(self._key(name), json.dumps(value))
                return
            except redis.RedisError as exc:
                _log.warning("Redis write failed (%s), keeping value in memory", exc)
        with self._lock:
            self._cache[name] = value

    def _get(self, name: str) -> dict[str, Any] | None:
        if self._redis_client is not None:
            import redis

            try:
                payload = self._redis_client.get(self._key(name))
            except redis.RedisError as exc:
                _log.warning("Redis read failed (%s), using in-memory value", exc)
            else:
                if payload is not None:
                    try:
                        return json.loads(payload)
                    except json.JSONDecodeError:
                        return None
        with self._lock:
            return self._cache.get(name)

    def publish_boost(self, observation: BoostObservation) -> None:
        self._set("last_boost", asdict(observation))

    def publish_health(self, counters: HealthCounters) -> None:
        self._set("health", asdict(counters))

    def snapshot(self) -> dict[str, Any]:
        """Current ``{"backend", "last_boost", "health"}`` view."""
        return {
            "backend": self.backend,
            "last_boost": self._get("last_boost"),
            "health": self._get("health"),
        }
