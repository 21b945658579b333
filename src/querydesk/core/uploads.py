"""
QueryDesk Core - Upload coordinator.

Tracks the single in-flight dataset upload. Files are accepted when their
MIME type is CSV / Excel or their name carries a .csv, .xlsx or .xls
extension. A second upload started while one is running is rejected.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from querydesk.client import ApiClient, ProgressCallback
from querydesk.core.notifications import NotificationQueue
from querydesk.exceptions import (
    ConflictException,
    HttpErrorException,
    MalformedResponseException,
    NetworkException,
    QueryDeskException,
    UnsupportedFileTypeException,
)
from querydesk.schemas import Outcome, SelectedFile, UploadReceipt, UploadState

logger = logging.getLogger(__name__)

ACCEPTED_CONTENT_TYPES = frozenset(
    {
        "text/csv",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)
ACCEPTED_EXTENSIONS = (".csv", ".xlsx", ".xls")


def is_supported_file(file_name: str, content_type: str | None) -> bool:
    if content_type in ACCEPTED_CONTENT_TYPES:
        return True
    return file_name.lower().endswith(ACCEPTED_EXTENSIONS)


class UploadCoordinator:
    def __init__(
        self,
        client: ApiClient,
        notifications: NotificationQueue,
        on_change: Callable[[], None] | None = None,
    ):
        self._client = client
        self._notifications = notifications
        self._on_change = on_change
        self._state = UploadState()
        self._last_status: str | None = None

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def in_progress(self) -> bool:
        return self._state.status == "in_progress"

    @property
    def last_status(self) -> str | None:
        """``done`` or ``failed`` for the most recent finished upload."""
        return self._last_status

    async def start_upload(
        self,
        file: SelectedFile,
        file_name: str | None = None,
        on_progress: ProgressCallback | None = None,
        on_complete: Callable[[Outcome[UploadReceipt]], None] | None = None,
    ) -> Outcome[UploadReceipt]:
        name = file_name or file.name

        if not is_supported_file(name, file.content_type):
            error = UnsupportedFileTypeException(name, file.content_type)
            logger.info(f"[upload] Rejected {name!r} (content_type={file.content_type})")
            self._notifications.error("Unsupported file", error.message)
            return self._finish(Outcome.failure(error), on_complete, track=False)

        if self.in_progress:
            error = ConflictException("Another upload is still in progress.", current_state="in_progress")
            self._notifications.error("Upload already in progress", error.message)
            return self._finish(Outcome.failure(error), on_complete, track=False)

        self._set_state(UploadState(status="in_progress", progress_percent=0))
        logger.info(f"[upload] Sending {name!r} ({file.size} bytes)")

        def _progress(percent: int) -> None:
            percent = max(0, min(100, percent))
            if percent <= self._state.progress_percent:
                return
            self._set_state(UploadState(status="in_progress", progress_percent=percent))
            if on_progress is not None:
                on_progress(percent)

        try:
            receipt = await self._client.upload(file, name, on_progress=_progress)
        except MalformedResponseException as e:
            self._notifications.error("Unexpected response", "Upload succeeded but response could not be parsed.")
            outcome: Outcome[UploadReceipt] = Outcome.failure(e)
        except HttpErrorException as e:
            self._notifications.error("Upload failed", f"Status {e.status_code}")
            outcome = Outcome.failure(e)
        except NetworkException as e:
            self._notifications.error("Network error", "Could not upload file.")
            outcome = Outcome.failure(e)
        except QueryDeskException as e:
            self._notifications.error("Upload failed", e.message)
            outcome = Outcome.failure(e)
        else:
            logger.info(f"[upload] Completed {name!r} -> table={receipt.table_name} rows={receipt.row_count}")
            self._notifications.success("Upload complete", receipt.describe())
            outcome = Outcome.success(receipt)

        return self._finish(outcome, on_complete)

    def _finish(
        self,
        outcome: Outcome[UploadReceipt],
        on_complete: Callable[[Outcome[UploadReceipt]], None] | None,
        track: bool = True,
    ) -> Outcome[UploadReceipt]:
        if track:
            self._last_status = "done" if outcome.ok else "failed"
            self._set_state(UploadState())
        if on_complete is not None:
            on_complete(outcome)
        return outcome

    def _set_state(self, state: UploadState) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change()
