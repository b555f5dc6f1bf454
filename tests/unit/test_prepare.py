"""
Unit tests -- database preparation: field names, values, schema DDL.
"""
import pandas as pd
import pytest

from src.ingest.prepare import (
    clean_cell,
    clean_field_name,
    column_map,
    generate_schema_sql,
    parse_number,
    prepare_for_database,
    prepare_records,
)


@pytest.mark.parametrize("name,expected", [
    ("URN NAME", "urn_name"),
    ("Cov Name 1H25", "cov_name_1h25"),
    ("FIRMO LE EMP CNT (Number of Employees)", "firmo_le_emp_cnt_number_of_employees"),
    ("Top Data & AI Business Parter", "top_data_ai_business_parter"),
    ("", None),
    ("   ", None),
    ("Unnamed: 12", None),
    (None, None),
])
def test_clean_field_name(name, expected):
    assert clean_field_name(name) == expected


@pytest.mark.parametrize("value,expected", [
    ("$1,234.50", 1234.5),
    (" 42 ", 42.0),
    ("", None),
    ("abc", None),
])
def test_parse_number(value, expected):
    assert parse_number(value) == expected


def test_clean_cell():
    assert clean_cell("total_ibm_rev_2024", "$5,000") == 5000.0
    assert clean_cell("tech_client", "TRUE") is True
    assert clean_cell("tech_client", "false") is False
    assert clean_cell("sector", "") is None
    assert clean_cell("sector", "Public") == "Public"


def test_column_map_drops_blank_columns():
    assert column_map(["URN NAME", "Unnamed: 3", "Sector"]) == {"URN NAME": "urn_name", "Sector": "sector"}


def test_prepare_records():
    mapping = {"URN NAME": "urn_name", "TOTAL IBM REV 2024": "total_ibm_rev_2024"}
    rows = [{"URN NAME": "Acme", "TOTAL IBM REV 2024": "$1,000", "ignored": "x"}]
    assert prepare_records(rows, mapping) == [{"urn_name": "Acme", "total_ibm_rev_2024": 1000.0}]


def test_schema_sql():
    sql = generate_schema_sql({"urn_name": "Acme", "total_ibm_rev_2024": 1.0, "tech_client": True}, "accounts")
    assert "CREATE TABLE accounts (" in sql
    assert "    urn_name text" in sql
    assert "    total_ibm_rev_2024 numeric" in sql
    assert "    tech_client boolean" in sql
    assert "CREATE INDEX idx_accounts_urn_name ON accounts(urn_name);" in sql
    assert "idx_accounts_sector" not in sql


def test_prepare_for_database(tmp_path):
    src = tmp_path / "raw.csv"
    pd.DataFrame([
        {"URN NAME": "Acme", "Tech Client": "true", "TOTAL IBM REV 2024": "$50,000", "Sector": ""},
        {"URN NAME": "Vulcan", "Tech Client": "false", "TOTAL IBM REV 2024": "", "Sector": "Industrial"},
    ]).to_csv(src, index=False)
    out = tmp_path / "prepared.csv"
    schema = tmp_path / "schema.sql"

    result = prepare_for_database(src, out, schema, "bps_accounts")

    assert result.record_count == 2
    assert result.columns == ["urn_name", "tech_client", "total_ibm_rev_2024", "sector"]
    assert out.read_text().splitlines()[0] == '"urn_name","tech_client","total_ibm_rev_2024","sector"'
    written = pd.read_csv(out)
    assert written.loc[0, "total_ibm_rev_2024"] == 50000.0
    assert "CREATE TABLE bps_accounts" in schema.read_text()


def test_prepare_rejects_empty_input(tmp_path):
    src = tmp_path / "raw.csv"
    src.write_text("URN NAME,Sector\n")
    with pytest.raises(ValueError, match="No records"):
        prepare_for_database(src, tmp_path / "out.csv", tmp_path / "schema.sql")
