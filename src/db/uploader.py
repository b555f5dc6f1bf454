"""
Batch uploader -- loads a prepared account CSV into the Postgres table.

Records are cleaned, split into batches and inserted one batch per
transaction.  A failing batch is retried with a delay (doubled for
network errors); when retries are exhausted the progress is written to
``upload_progress.json`` so a later run can resume from that batch.

Run:  python -m src.db.uploader supabase_bps_accounts.csv [more.csv ...]
"""
from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, TypeVar

import pandas as pd
from sqlalchemy import column, func, insert, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError

from src.core.config import get_settings
from src.core.logging import get_logger
from src.core.utils import chunked
from src.db.connection import get_engine

logger = get_logger(__name__)

T = TypeVar("T")

PROGRESS_FILE = "upload_progress.json"
RESUME_WINDOW = timedelta(hours=24)

NUMERIC_FIELDS = frozenset({
    "firmo_le_emp_cnt_number_of_employees",
    "total_ibm_rev_2024",
    "total_ibm_rev_2023",
    "total_ibm_rev_2022",
    "growth",
    "it_spend_estimate",
})

_NETWORK_MARKERS = ("fetch failed", "network", "econnreset", "timeout", "connection")


class UploadError(RuntimeError):
    """A record could not be cleaned or a batch could not be inserted."""


@dataclass
class UploadResult:
    total_records: int
    success_count: int = 0
    error_count: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)


def is_network_error(exc: BaseException) -> bool:
    if isinstance(exc, (DisconnectionError, ConnectionError, TimeoutError)):
        return True
    if isinstance(exc, OperationalError) and exc.connection_invalidated:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _NETWORK_MARKERS)


def load_start_batch(progress_path: str | Path = PROGRESS_FILE, now: datetime | None = None) -> int:
    """Batch index to resume from; 0 when there is no recent progress file."""
    path = Path(progress_path)
    try:
        progress = json.loads(path.read_text(encoding="utf-8"))
        saved_at = datetime.fromisoformat(progress["timestamp"])
        last_batch = int(progress["last_batch"])
    except FileNotFoundError:
        logger.info("No upload progress found, starting fresh")
        return 0
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.warning("Ignoring unreadable progress file %s: %s", path, exc)
        return 0

    if saved_at.tzinfo is None:
        saved_at = saved_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now - saved_at >= RESUME_WINDOW:
        logger.info("Previous upload progress is too old, starting fresh")
        return 0
    logger.info("Resuming from batch %d (progress saved %s)", last_batch + 1, saved_at.isoformat())
    return last_batch + 1


class AccountUploader:
    """Uploads cleaned account records into *table_name* in batches.

    Parameters
    ----------
    engine : Engine, optional
        Target database; defaults to the shared Postgres engine.
    sleep : callable
        Delay function, replaceable in tests.
    """

    def __init__(
        self,
        engine: Engine | None = None,
        table_name: str | None = None,
        batch_size: int | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        progress_path: str | Path | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        settings = get_settings()
        self.engine = engine or get_engine()
        self.table_name = table_name or settings.accounts_table
        self.batch_size = batch_size or settings.upload_batch_size
        self.max_retries = settings.upload_max_retries if max_retries is None else max_retries
        self.retry_delay = settings.upload_retry_delay if retry_delay is None else retry_delay
        self.progress_path = Path(progress_path or settings.upload_progress_file)
        self._sleep = sleep

    # ── Cleaning ────────────────────────────────────────

    @staticmethod
    def clean_record(record: dict[str, Any]) -> dict[str, Any]:
        """Coerce numeric fields, flags and blanks.

        Raises
        ------
        ValueError
            If a numeric field holds an unparseable value.
        """
        cleaned: dict[str, Any] = {}
        for key, value in record.items():
            if key in NUMERIC_FIELDS:
                if value is None or str(value).strip() == "":
                    cleaned[key] = None
                    continue
                text = str(value).strip().replace("$", "").replace(",", "").replace(" ", "")
                try:
                    cleaned[key] = float(text)
                except ValueError:
                    raise ValueError(f"Invalid numeric value in field {key}: {value}") from None
            elif isinstance(value, str) and value.lower() in ("true", "false"):
                cleaned[key] = value.lower() == "true"
            elif value == "":
                cleaned[key] = None
            else:
                cleaned[key] = value
        return cleaned

    # ── Retry ───────────────────────────────────────────

    def retry_operation(self, operation: Callable[[], T]) -> T:
        """Run *operation*, retrying up to ``max_retries`` times."""
        attempt = 0
        while True:
            try:
                return operation()
            except (SQLAlchemyError, OSError) as exc:
                if attempt >= self.max_retries:
                    raise
                network = is_network_error(exc)
                delay = self.retry_delay * 2 if network else self.retry_delay
                logger.warning(
                    "Attempt %d failed%s, retrying in %.1f seconds: %s",
                    attempt + 1, " (network error)" if network else "", delay, exc,
                )
                self._sleep(delay)
                attempt += 1

    # ── Upload ──────────────────────────────────────────

    def insert_batch(self, batch: list[dict[str, Any]]) -> None:
        target = table(self.table_name, *[column(name) for name in batch[0]])
        with self.engine.begin() as conn:
            conn.execute(insert(target), batch)

    def save_progress(self, last_batch: int, result: UploadResult) -> None:
        self.progress_path.write_text(json.dumps({
            "last_batch": last_batch,
            "success_count": result.success_count,
            "error_count": result.error_count,
            "errors": result.errors,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }, default=str), encoding="utf-8")
        logger.info("Saved progress to %s (last successful batch: %d)", self.progress_path, last_batch)

    def upload_file(self, csv_path: str | Path, start_batch: int = 0) -> UploadResult:
        """Clean and insert every record of *csv_path*, starting at *start_batch*.

        Raises
        ------
        UploadError
            If a record fails cleaning or a batch fails after all retries.
        """
        logger.info("Reading file: %s", csv_path)
        rows = pd.read_csv(csv_path, dtype=str, keep_default_na=False).to_dict(orient="records")
        result = UploadResult(total_records=len(rows))

        records = []
        for i, row in enumerate(rows, 1):
            try:
                records.append(self.clean_record(row))
            except ValueError as exc:
                raise UploadError(f"Error cleaning record {i}: {exc}") from exc

        batches = list(chunked(records, self.batch_size))
        logger.info("Split %d records into %d batches of %d", len(records), len(batches), self.batch_size)
        if start_batch:
            logger.info("Resuming from batch %d", start_batch)

        for i in range(start_batch, len(batches)):
            batch = batches[i]
            logger.info("Uploading batch %d of %d (%.2f%%)", i + 1, len(batches), (i + 1) / len(batches) * 100)
            try:
                self.retry_operation(lambda: self.insert_batch(batch))
            except (SQLAlchemyError, OSError) as exc:
                result.error_count += len(batch)
                result.errors.append({"batch": i + 1, "error": str(exc), "sample_data": batch[0]})
                self.save_progress(i - 1, result)
                raise UploadError(f"Batch {i + 1} failed after {self.max_retries} retries: {exc}") from exc
            result.success_count += len(batch)

        return result

    def verify_upload(self) -> int:
        """Row count of the target table."""
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(table(self.table_name))).scalar_one()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Upload prepared account CSVs to Postgres.")
    parser.add_argument("files", nargs="+", help="prepared CSV files")
    args = parser.parse_args(argv)

    uploader = AccountUploader()
    start_batch = load_start_batch(uploader.progress_path)

    try:
        for path in args.files:
            print(f"\nProcessing {path}...")
            result = uploader.upload_file(path, start_batch)
            print(f"Total Records: {result.total_records}")
            print(f"Successfully Uploaded: {result.success_count}")
            print(f"Failed: {result.error_count}")
        print(f"\nFinal record count: {uploader.verify_upload()}")
    except (UploadError, SQLAlchemyError, OSError) as exc:
        logger.error("Upload failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
