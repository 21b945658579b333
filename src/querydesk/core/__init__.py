"""
QueryDesk Core - workspace orchestration.

Components (leaf first):
- notifications: auto-expiring user messages
- history: bounded, deduplicated query history
- uploads: single tracked upload with progress
- tables: table list and token-guarded schema cache
- queries: one-at-a-time query runner
- export: CSV rendering of results
- workspace: composes the above
"""

from querydesk.core.export import result_to_csv, write_csv
from querydesk.core.history import HistoryStore
from querydesk.core.notifications import NotificationQueue
from querydesk.core.queries import QueryRunner
from querydesk.core.tables import TableRegistry
from querydesk.core.uploads import UploadCoordinator, is_supported_file
from querydesk.core.workspace import EXAMPLE_QUERIES, Workspace

__all__ = [
    "NotificationQueue",
    "HistoryStore",
    "UploadCoordinator",
    "is_supported_file",
    "TableRegistry",
    "QueryRunner",
    "result_to_csv",
    "write_csv",
    "Workspace",
    "EXAMPLE_QUERIES",
]
