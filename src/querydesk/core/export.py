"""Comma-separated export of query results."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from querydesk.schemas import QueryResult

DEFAULT_EXPORT_NAME = "results.csv"

# Same dialect the service uses for normalized uploads
EXPORT_QUOTING = csv.QUOTE_MINIMAL


def format_cell(value: Any) -> str:
    return "" if value is None else str(value)


def _csv_line(cells: Iterable[Any]) -> str:
    # Written with the default CRLF terminator so CR and LF inside cells are quoted
    buffer = io.StringIO(newline="")
    csv.writer(buffer, quoting=EXPORT_QUOTING).writerow(cells)
    return buffer.getvalue().removesuffix("\r\n")


def result_to_csv(result: QueryResult) -> str:
    """Header row first, then one line per row in column order, joined with ``\\n``."""
    lines = [_csv_line(result.columns)]
    lines.extend(_csv_line(format_cell(row.get(column)) for column in result.columns) for row in result.rows)
    return "\n".join(lines)


def write_csv(result: QueryResult, path: str | Path = DEFAULT_EXPORT_NAME) -> Path:
    target = Path(path)
    target.write_text(result_to_csv(result), encoding="utf-8", newline="")
    return target
