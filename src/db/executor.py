"""
Read-only queries against the account table.

``execute_readonly`` runs one statement inside ``readonly_connection``
with a per-statement timeout and returns plain dicts: NUMERIC columns
(revenue, employee counts) come back as floats and timestamps as ISO
strings, so rows can go straight into ``json.dumps``.
"""
from __future__ import annotations

import datetime
import decimal
from typing import Any, Mapping

from sqlalchemy import text

from src.core.config import get_settings
from src.core.logging import get_logger
from src.db.connection import readonly_connection

logger = get_logger(__name__)


def serialise_value(val: Any) -> Any:
    """Map a driver value onto a JSON-friendly Python value."""
    if isinstance(val, decimal.Decimal):
        return float(val)
    if isinstance(val, (datetime.datetime, datetime.date, datetime.time)):
        return val.isoformat()
    if isinstance(val, datetime.timedelta):
        return val.total_seconds()
    if isinstance(val, (bytes, memoryview)):
        return bytes(val).hex()
    return val


def execute_readonly(
    sql: str,
    params: Mapping[str, Any] | None = None,
    timeout_ms: int | None = None,
) -> list[dict[str, Any]]:
    """Run *sql* read-only and return every row as a dict."""
    timeout_ms = get_settings().query_timeout_ms if timeout_ms is None else timeout_ms
    with readonly_connection() as conn:
        conn.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))
        result = conn.execute(text(sql), dict(params or {}))
        rows = [
            {key: serialise_value(value) for key, value in row.items()}
            for row in result.mappings()
        ]
    logger.info("Read %d rows (%d chars of SQL)", len(rows), len(sql))
    return rows


def table_columns(table: str) -> list[str]:
    """Column names of *table* in definition order."""
    rows = execute_readonly(
        "SELECT column_name FROM information_schema.columns "
        "WHERE table_schema = current_schema() AND table_name = :table "
        "ORDER BY ordinal_position",
        {"table": table},
    )
    return [r["column_name"] for r in rows]
