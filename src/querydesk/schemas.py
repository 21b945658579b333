"""
QueryDesk - Common Schemas.

Shared models for remote payloads, workspace state and operation outcomes.
Remote payloads are validated with pydantic; the service is tolerated when
it uses alternative field names for the same value.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from querydesk.exceptions import QueryDeskException

T = TypeVar("T")


def _first_present(data: dict[str, Any], *keys: str) -> Any:
    """Return the first value that is not None among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


# =============================================================================
# Tables
# =============================================================================


class TableSummary(BaseModel):
    """A table registered on the service, as listed by GET /api/tables."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    row_count: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_variants(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        ident = data.get("id") or data.get("_id") or data.get("name") or data.get("table_name")
        name = data.get("name") or data.get("table_name") or ident
        return {
            "id": str(ident) if ident is not None else None,
            "name": str(name) if name is not None else None,
            "row_count": _first_present(data, "row_count", "rows", "rowCount"),
        }

    @property
    def label(self) -> str:
        return self.name or self.id


class Column(BaseModel):
    """One column of a table schema."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = ""


class TableSchema(BaseModel):
    """Ordered column list of a single table."""

    model_config = ConfigDict(frozen=True)

    columns: list[Column] = Field(default_factory=list)

    @field_validator("columns", mode="before")
    @classmethod
    def _accept_pairs(cls, value: Any) -> Any:
        # Columns may arrive as [name, type] pairs
        if not isinstance(value, list):
            return value
        normalized: list[Any] = []
        for item in value:
            if isinstance(item, (list, tuple)) and len(item) == 2:
                normalized.append({"name": str(item[0]), "type": str(item[1])})
            else:
                normalized.append(item)
        return normalized


# =============================================================================
# Uploads
# =============================================================================


@dataclass(frozen=True)
class SelectedFile:
    """A file handed over by the file picker."""

    name: str
    data: bytes
    content_type: str | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> SelectedFile:
        p = Path(path)
        content_type, _ = mimetypes.guess_type(p.name)
        return cls(name=p.name, data=p.read_bytes(), content_type=content_type)

    @property
    def size(self) -> int:
        return len(self.data)


class UploadReceipt(BaseModel):
    """Parsed body of a successful upload; a body without a table name is malformed."""

    table_name: str = Field(..., min_length=1)
    row_count: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_variants(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            "table_name": _first_present(data, "table_name", "tableName"),
            "row_count": _first_present(data, "row_count", "rowCount", "rows"),
        }

    def describe(self) -> str:
        rows = self.row_count if self.row_count is not None else "?"
        return f"{self.table_name} • {rows} rows"


class UploadState(BaseModel):
    """Progress of the single tracked upload."""

    model_config = ConfigDict(frozen=True)

    status: Literal["idle", "in_progress", "done", "failed"] = "idle"
    progress_percent: int = Field(default=0, ge=0, le=100)


# =============================================================================
# Queries
# =============================================================================


class QueryResult(BaseModel):
    """Normalized response of POST /api/query."""

    model_config = ConfigDict(frozen=True)

    sql: str | None = None
    columns: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    total_rows: int = Field(default=0, ge=0)
    elapsed_ms: float | None = None
    truncated: bool = False
    summary: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_variants(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        rows = data.get("rows") or data.get("data") or []
        columns = data.get("columns")
        if not columns:
            columns = list(rows[0].keys()) if rows and isinstance(rows[0], dict) else []
        total_rows = data.get("total_rows")
        if total_rows is None:
            total_rows = len(rows) if isinstance(rows, list) else 0
        return {
            "sql": data.get("sql") or data.get("generated_sql"),
            "columns": columns,
            "rows": rows,
            "total_rows": total_rows,
            "elapsed_ms": _first_present(data, "execution_time_ms", "time_ms", "elapsed_ms"),
            "truncated": bool(data.get("truncated") or False),
            "summary": data.get("summary") or data.get("ai_summary"),
        }


# =============================================================================
# Notifications
# =============================================================================


class Notification(BaseModel):
    """Ephemeral user-facing message."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: Literal["success", "error"] = "success"
    title: str
    message: str | None = None
    created_at: datetime


# =============================================================================
# Outcomes
# =============================================================================


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a public workspace operation.

    ``skipped`` marks a deliberate no-op: empty input, busy component,
    declined confirmation or a superseded response.
    """

    status: Literal["ok", "error", "skipped"]
    value: T | None = None
    error: QueryDeskException | None = None
    reason: str | None = None

    @classmethod
    def success(cls, value: T | None = None) -> Outcome[T]:
        return cls(status="ok", value=value)

    @classmethod
    def failure(cls, error: QueryDeskException) -> Outcome[T]:
        return cls(status="error", error=error)

    @classmethod
    def skip(cls, reason: str) -> Outcome[T]:
        return cls(status="skipped", reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"


# =============================================================================
# Workspace snapshot
# =============================================================================


class WorkspaceState(BaseModel):
    """Read-only view of the workspace handed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    tables: list[TableSummary] = Field(default_factory=list)
    selected_table: TableSummary | None = None
    table_schema: TableSchema | None = None
    result: QueryResult | None = None
    history: list[str] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)
    upload: UploadState = Field(default_factory=UploadState)
    draft_query: str = ""
    running: bool = False
    loading_tables: bool = False
    loading_schema: bool = False
