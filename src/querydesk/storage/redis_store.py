"""
Redis key-value store.

Keys are namespaced with ``REDIS_KEY_PREFIX`` so several workspaces can share
one database. Values are stored as plain strings.
"""

from __future__ import annotations

from typing import Any

import redis

from querydesk.exceptions import StorageException
from querydesk.storage.base import KeyValueStore


class RedisKeyValueStore(KeyValueStore):
    def __init__(self, client: Any, key_prefix: str = "querydesk:"):
        self._client = client
        self._key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "querydesk:") -> RedisKeyValueStore:
        try:
            client = redis.Redis.from_url(url, decode_responses=True)
        except (redis.RedisError, ValueError) as e:
            raise StorageException("redis", f"client init failed: {e}") from e
        return cls(client, key_prefix=key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def get(self, key: str) -> str | None:
        try:
            raw = self._client.get(self._key(key))
        except redis.RedisError as e:
            raise StorageException("redis", f"GET failed: {e}") from e
        if raw is None:
            return None
        if isinstance(raw, (bytes, bytearray)):
            return raw.decode("utf-8", errors="replace")
        return str(raw)

    def set(self, key: str, value: str) -> None:
        try:
            self._client.set(self._key(key), value)
        except redis.RedisError as e:
            raise StorageException("redis", f"SET failed: {e}") from e
