"""
QueryDesk Core - Query history.

Most-recent-first list of distinct query texts, capped, persisted as a JSON
array under ``query_history`` in the key-value store.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from querydesk.exceptions import StorageException
from querydesk.observability import MetricsStore, get_metrics_store
from querydesk.storage import KeyValueStore

logger = logging.getLogger(__name__)

HISTORY_KEY = "query_history"


class HistoryStore:
    def __init__(
        self,
        storage: KeyValueStore,
        limit: int = 10,
        on_change: Callable[[], None] | None = None,
        metrics: MetricsStore | None = None,
    ):
        self._storage = storage
        self._metrics = metrics or get_metrics_store()
        self._limit = limit
        self._on_change = on_change
        self._entries: list[str] = []

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> list[str]:
        """
        Read history from storage.

        A missing or malformed value loads as an empty history.

        Raises:
            StorageException: If the backend cannot be read
        """
        try:
            raw = self._storage.get(HISTORY_KEY)
        except StorageException as e:
            self._metrics.record_storage_error(e.details["backend"])
            raise
        entries: list[str] = []
        if raw:
            try:
                loaded = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.warning(f"[history] Discarding unreadable history: {e}")
                loaded = []
            if isinstance(loaded, list):
                for item in loaded:
                    if isinstance(item, str) and item not in entries:
                        entries.append(item)
            else:
                logger.warning("[history] Discarding history: expected a JSON array")

        self._entries = entries[: self._limit]
        logger.info(f"[history] Loaded {len(self._entries)} entries")
        self._changed()
        return self.entries

    def add(self, text: str) -> list[str]:
        """Insert ``text`` at the front, promoting it if already present."""
        text = text.strip()
        if not text:
            return self.entries
        self._entries = [text, *(e for e in self._entries if e != text)][: self._limit]
        self._changed()
        self._persist()
        return self.entries

    def clear(self) -> None:
        self._entries = []
        self._changed()
        self._persist()

    def _persist(self) -> None:
        try:
            self._storage.set(HISTORY_KEY, json.dumps(self._entries, ensure_ascii=False))
        except StorageException as e:
            self._metrics.record_storage_error(e.details["backend"])
            raise

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
