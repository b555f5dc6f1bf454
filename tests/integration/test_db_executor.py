"""
Integration tests -- read-only executor and uploader against live PostgreSQL.

These tests require a reachable Postgres instance (see POSTGRES_* in
.env).  They are automatically skipped when the database is unreachable.
"""
from __future__ import annotations

import uuid

import pandas as pd
import pytest
from sqlalchemy import text

# ── Guard: skip all tests if DB is unreachable ───────────
try:
    from src.db.connection import get_engine, ping

    DB_AVAILABLE = ping()
except Exception:
    DB_AVAILABLE = False

pytestmark = pytest.mark.skipif(not DB_AVAILABLE, reason="Postgres not reachable")

from src.db.executor import execute_readonly, table_columns
from src.db.uploader import AccountUploader


# ── Basic connectivity ───────────────────────────────────

def test_simple_select():
    rows = execute_readonly("SELECT 1 AS n")
    assert rows == [{"n": 1}]


def test_bound_parameters():
    rows = execute_readonly("SELECT :city AS city", {"city": "Atlanta"})
    assert rows == [{"city": "Atlanta"}]


# ── Read-only enforcement ───────────────────────────────

def test_write_blocked():
    """READ ONLY transaction must reject writes."""
    with pytest.raises(Exception):
        execute_readonly("CREATE TABLE _test_no_write (id INT)")


# ── Timeout enforcement ─────────────────────────────────

def test_timeout_fires():
    with pytest.raises(Exception):
        execute_readonly("SELECT pg_sleep(30)", timeout_ms=200)


# ── Decimal / date serialisation ─────────────────────────

def test_decimal_serialised_to_float():
    rows = execute_readonly("SELECT 1234.50::numeric AS revenue")
    assert isinstance(rows[0]["revenue"], float)
    assert rows[0]["revenue"] == 1234.5


def test_timestamp_serialised_to_iso():
    rows = execute_readonly("SELECT TIMESTAMP '2025-02-01 10:30:00' AS ts")
    assert rows[0]["ts"].startswith("2025-02-01T10:30:00")


# ── Upload round trip ────────────────────────────────────

@pytest.fixture
def scratch_table():
    name = f"_test_accounts_{uuid.uuid4().hex[:8]}"
    with get_engine().begin() as conn:
        conn.execute(text(f"CREATE TABLE {name} (urn_name text, total_ibm_rev_2024 numeric, tech_client boolean)"))
    yield name
    with get_engine().begin() as conn:
        conn.execute(text(f"DROP TABLE IF EXISTS {name}"))


def test_upload_then_read_back(scratch_table, tmp_path):
    path = tmp_path / "prepared.csv"
    pd.DataFrame([
        {"urn_name": "Acme Corp", "total_ibm_rev_2024": "$50,000", "tech_client": "false"},
        {"urn_name": "Vulcan Steel", "total_ibm_rev_2024": "300000", "tech_client": "true"},
    ]).to_csv(path, index=False)

    uploader = AccountUploader(table_name=scratch_table, batch_size=1, progress_path=tmp_path / "p.json")
    result = uploader.upload_file(path)
    assert result.success_count == 2
    assert uploader.verify_upload() == 2

    assert table_columns(scratch_table) == ["urn_name", "total_ibm_rev_2024", "tech_client"]
    rows = execute_readonly(f"SELECT urn_name, total_ibm_rev_2024 FROM {scratch_table} ORDER BY total_ibm_rev_2024 DESC")
    assert rows[0] == {"urn_name": "Vulcan Steel", "total_ibm_rev_2024": 300000.0}
