"""
QueryDesk - Main entry point.

Builds a ready-to-use Workspace from settings: logging, HTTP client and the
key-value backend selected by ``STORAGE_BACKEND``.
"""

import logging
import sys

from querydesk import __version__
from querydesk.client import ApiClient
from querydesk.config import Settings, get_settings
from querydesk.core.notifications import Scheduler
from querydesk.core.tables import ConfirmCallback
from querydesk.core.workspace import Workspace
from querydesk.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
)

logger = logging.getLogger("querydesk")


def configure_logging(level: str = "INFO") -> None:
    """Configure standard logging to stdout."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_storage(settings: Settings) -> KeyValueStore:
    backend = settings.storage.backend
    if backend == "memory":
        return InMemoryKeyValueStore()
    if backend == "redis":
        return RedisKeyValueStore.from_url(settings.redis.url, key_prefix=settings.redis.key_prefix)
    return JsonFileKeyValueStore(settings.storage.path)


def create_workspace(
    settings: Settings | None = None,
    *,
    confirm: ConfirmCallback,
    client: ApiClient | None = None,
    storage: KeyValueStore | None = None,
    scheduler: Scheduler | None = None,
) -> Workspace:
    """
    Create a Workspace wired from settings.

    Args:
        settings: Defaults to the cached environment settings
        confirm: Yes/no gate used before deleting a table
        client: Pre-built API client (tests inject one over a mock transport)
        storage: Pre-built key-value store
        scheduler: Timer source for notification expiry

    Returns:
        A workspace; call ``start()`` or use it as an async context manager
    """
    settings = settings or get_settings()
    configure_logging(settings.app_log_level)

    client = client or ApiClient.from_settings(settings)
    storage = storage or build_storage(settings)

    logger.info(
        f"Starting QueryDesk v{__version__} "
        f"[env={settings.app_env}] "
        f"[backend={settings.backend.url}] "
        f"[storage={type(storage).__name__}]"
    )
    return Workspace(client, storage, confirm=confirm, settings=settings, scheduler=scheduler)
