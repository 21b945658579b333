"""
JSON file key-value store.

All keys live in one JSON object on disk. The document is re-read on every
``get`` so several workspaces sharing a file see each other's writes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import RLock

from querydesk.exceptions import StorageException
from querydesk.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class JsonFileKeyValueStore(KeyValueStore):
    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = RLock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            loaded = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            logger.warning(f"[storage] Ignoring unreadable state file {self._path}: {e}")
            return {}
        except OSError as e:
            raise StorageException("file", str(e)) from e
        if not isinstance(loaded, dict):
            logger.warning(f"[storage] Ignoring state file {self._path}: expected a JSON object")
            return {}
        return {k: v for k, v in loaded.items() if isinstance(v, str)}

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            document = self._read()
            document[key] = value
            tmp_path = self._path.with_name(self._path.name + ".tmp")
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")
                tmp_path.replace(self._path)
            except OSError as e:
                raise StorageException("file", str(e)) from e
