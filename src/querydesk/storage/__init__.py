"""
QueryDesk Storage - durable key-value persistence.

Backends:
- InMemoryKeyValueStore (tests, throwaway sessions)
- JsonFileKeyValueStore (local default)
- RedisKeyValueStore (shared deployments)
"""

from querydesk.storage.base import KeyValueStore
from querydesk.storage.json_file import JsonFileKeyValueStore
from querydesk.storage.memory import InMemoryKeyValueStore
from querydesk.storage.redis_store import RedisKeyValueStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "RedisKeyValueStore",
]
