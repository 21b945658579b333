"""QueryDesk Client - async HTTP access to the query service."""

from querydesk.client.api import ApiClient, ProgressCallback

__all__ = ["ApiClient", "ProgressCallback"]
