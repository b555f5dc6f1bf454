"""
Prepares the raw account CSV for the hosted Postgres table.

  - column names -> lowercase snake case (empty columns dropped)
  - numeric columns -> floats ($ and thousands separators removed)
  - "true" / "false" -> booleans
  - empty strings -> NULL

Also writes ``schema.sql`` with the matching CREATE TABLE statement.

Run:  python -m src.ingest.prepare [input.csv] [--output supabase_bps_accounts.csv]
"""
from __future__ import annotations

import argparse
import csv
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from src.core.config import get_settings
from src.core.logging import get_logger

logger = get_logger(__name__)

NUMERIC_FIELDS = frozenset({
    "firmo_le_emp_cnt_number_of_employees",
    "total_ibm_rev_2024",
    "total_ibm_rev_2023",
    "total_ibm_rev_2022",
    "growth",
})

_SQL_TYPES = {bool: "boolean", float: "numeric", int: "numeric", str: "text"}

# Indexes for commonly queried columns (created only when present).
_INDEXED_COLUMNS = ("urn_name", "tech_client", "sector", "prmry_city_name", "prmry_st_prov_name")


@dataclass
class PreparedData:
    record_count: int
    columns: list[str] = field(default_factory=list)


def clean_field_name(name: str | None) -> str | None:
    """``"Cov Name 1H25"`` -> ``"cov_name_1h25"``; blank names -> None."""
    if name is None or not str(name).strip() or str(name).startswith("Unnamed:"):
        return None
    cleaned = re.sub(r"[^a-z0-9_]", "_", str(name).lower())
    cleaned = re.sub(r"_{2,}", "_", cleaned)
    return cleaned.strip("_") or None


def parse_number(value: Any) -> float | None:
    """``"$1,234.50"`` -> ``1234.5``; blank or unparseable -> None."""
    if value is None or str(value).strip() == "":
        return None
    try:
        return float(re.sub(r"[$,\s]", "", str(value)))
    except ValueError:
        return None


def clean_cell(column: str, value: Any) -> Any:
    if column in NUMERIC_FIELDS:
        return parse_number(value)
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    if value is None or value == "":
        return None
    return value


def column_map(columns: list[str]) -> dict[str, str]:
    """Original column -> cleaned name, for every usable column."""
    mapping: dict[str, str] = {}
    for col in columns:
        cleaned = clean_field_name(col)
        if cleaned is not None:
            mapping[col] = cleaned
    return mapping


def prepare_records(rows: list[dict[str, Any]], mapping: dict[str, str]) -> list[dict[str, Any]]:
    return [
        {clean: clean_cell(clean, row.get(orig)) for orig, clean in mapping.items()}
        for row in rows
    ]


def generate_schema_sql(sample: dict[str, Any], table: str = "bps_accounts") -> str:
    """CREATE TABLE (plus trigger and indexes) typed from *sample* values."""
    columns = ",\n".join(
        f"    {name} {_SQL_TYPES.get(type(value), 'text')}" for name, value in sample.items()
    )
    indexes = "\n".join(
        f"CREATE INDEX idx_{table}_{col} ON {table}({col});"
        for col in _INDEXED_COLUMNS if col in sample
    )
    return f"""-- Create table for account records
CREATE TABLE {table} (
    id bigint GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
{columns},
    created_at timestamp with time zone DEFAULT timezone('utc'::text, now()) NOT NULL,
    updated_at timestamp with time zone DEFAULT timezone('utc'::text, now()) NOT NULL
);

-- Create updated_at trigger
CREATE TRIGGER set_updated_at
    BEFORE UPDATE ON {table}
    FOR EACH ROW
    EXECUTE FUNCTION public.set_updated_at();

-- Create indexes for commonly queried fields
{indexes}
"""


def prepare_for_database(
    input_csv: str | Path,
    output_csv: str | Path,
    schema_path: str | Path = "schema.sql",
    table: str = "bps_accounts",
) -> PreparedData:
    """Clean *input_csv* into *output_csv* and write the schema DDL.

    Raises
    ------
    ValueError
        If the input holds no records.
    """
    df = pd.read_csv(input_csv, dtype=str, keep_default_na=False, skip_blank_lines=True)
    if df.empty:
        raise ValueError(f"No records found in {input_csv}")

    mapping = column_map(list(df.columns))
    records = prepare_records(df.to_dict(orient="records"), mapping)
    columns = list(dict.fromkeys(mapping.values()))
    if len(columns) != len(mapping):
        logger.warning("%d columns collapse onto an existing name", len(mapping) - len(columns))
    logger.info("Mapped %d columns: %s", len(columns), mapping)

    Path(schema_path).write_text(generate_schema_sql(records[0], table), encoding="utf-8")

    pd.DataFrame(records, columns=columns).to_csv(
        output_csv, index=False, quoting=csv.QUOTE_ALL, lineterminator="\n",
    )

    written = pd.read_csv(output_csv, nrows=0)
    if len(written.columns) != len(columns):
        raise ValueError(
            f"Output file has incorrect header count: {len(written.columns)} vs {len(columns)}"
        )

    logger.info("Prepared %d records into %s", len(records), output_csv)
    return PreparedData(record_count=len(records), columns=columns)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Prepare the account CSV for database import.")
    parser.add_argument("input", nargs="?", default=settings.accounts_csv)
    parser.add_argument("--output", default="supabase_bps_accounts.csv")
    parser.add_argument("--schema", default="schema.sql")
    args = parser.parse_args(argv)

    try:
        result = prepare_for_database(args.input, args.output, args.schema, settings.accounts_table)
    except (OSError, ValueError) as exc:
        logger.error("Preparation failed: %s", exc)
        return 1

    print(f"Processed {result.record_count} total records")
    print(f"Columns: {', '.join(result.columns)}")
    print(f"Next: create the table from {args.schema}, then run python -m src.db.uploader {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
