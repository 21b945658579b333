"""Key-value storage interface."""

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Minimal durable store used for query history and preferences."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        pass
