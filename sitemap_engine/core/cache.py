"""
Key-value stores backing the content hash cache and the pending scan set
"""

import threading
from typing import Any, Dict, Optional, Protocol, Set

import redis

from sitemap_engine.core.config import settings


class KeyValueStore(Protocol):
    """Minimal cache interface used by the change detector and the scan guard"""

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]: ...

    def put(self, key: str, value: str) -> None: ...

    def forget(self, key: str) -> None: ...

    def add_member(self, key: str, member: str) -> bool: ...

    def remove_member(self, key: str, member: str) -> None: ...

    def has_member(self, key: str, member: str) -> bool: ...


class InMemoryKeyValueStore:
    """
    Process-local store guarded by a lock

    ``add_member`` is a test-and-set: it returns True only for the caller
    that actually inserted the member.
    """

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}
        self._sets: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._lock:
            return self._values.get(key, default)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def forget(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)
            self._sets.pop(key, None)

    def add_member(self, key: str, member: str) -> bool:
        with self._lock:
            members = self._sets.setdefault(key, set())
            if member in members:
                return False
            members.add(member)
            return True

    def remove_member(self, key: str, member: str) -> None:
        with self._lock:
            members = self._sets.get(key)
            if members is not None:
                members.discard(member)

    def has_member(self, key: str, member: str) -> bool:
        with self._lock:
            return member in self._sets.get(key, ())


class RedisKeyValueStore:
    """
    Store shared between the web process and Celery workers

    Set membership uses SADD, which reports whether the member was new,
    so concurrent callers cannot both win the same member.
    """

    def __init__(self, client: Any = None, prefix: str = None) -> None:
        self.client = client if client is not None else redis.Redis.from_url(
            settings.REDIS_URL, decode_responses=True
        )
        self.prefix = prefix if prefix is not None else settings.CACHE_KEY_PREFIX

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.client.get(self._key(key))
        return default if value is None else value

    def put(self, key: str, value: str) -> None:
        self.client.set(self._key(key), value)

    def forget(self, key: str) -> None:
        self.client.delete(self._key(key))

    def add_member(self, key: str, member: str) -> bool:
        return bool(self.client.sadd(self._key(key), member))

    def remove_member(self, key: str, member: str) -> None:
        self.client.srem(self._key(key), member)

    def has_member(self, key: str, member: str) -> bool:
        return bool(self.client.sismember(self._key(key), member))


def get_default_store() -> RedisKeyValueStore:
    """Store shared by the web process and the workers, backed by REDIS_URL"""
    return RedisKeyValueStore()
