"""
Unit tests -- territory analysis: aggregation and output files (no DB).
"""
import json

import pytest

from src.analytics import territory
from src.analytics.territory import (
    DATA_FILE,
    RESULTS_FILE,
    analyze_by_location,
    build_summary,
    customer_export,
    growth_pct,
)
from src.query.loader import load_records
from src.query.service import search

PRODUCTS = ["mq", "api_connect", "aspera"]


@pytest.fixture
def rows():
    return [
        {"urn_name": "Vulcan Steel", "total_ibm_rev_2024": 300000.0, "total_ibm_rev_2023": 200000.0,
         "total_ibm_rev_2022": 150000.0, "sector": "Industrial", "prmry_city_name": "Birmingham",
         "prmry_st_prov_name": "Alabama", "mq": "2", "api_connect": "1", "aspera": None},
        {"urn_name": "Acme Corp", "total_ibm_rev_2024": 50000.0, "total_ibm_rev_2023": 40000.0,
         "total_ibm_rev_2022": None, "sector": "Financial Services", "prmry_city_name": "Atlanta",
         "prmry_st_prov_name": "Georgia", "mq": "1", "api_connect": None, "aspera": None},
        {"urn_name": "Peach Co", "total_ibm_rev_2024": 10000.0, "total_ibm_rev_2023": None,
         "total_ibm_rev_2022": None, "sector": "Financial Services", "prmry_city_name": "Atlanta",
         "prmry_st_prov_name": "Georgia", "mq": None, "api_connect": None, "aspera": None},
        {"urn_name": "Dormant LLC", "total_ibm_rev_2024": None, "total_ibm_rev_2023": 0.0,
         "total_ibm_rev_2022": None, "sector": None, "prmry_city_name": "Jackson",
         "prmry_st_prov_name": "Mississippi", "mq": None, "api_connect": None, "aspera": None},
    ]


def test_growth_pct():
    assert growth_pct(120.0, 100.0) == "20.00"
    assert growth_pct(10.0, 0.0) == "N/A"


def test_build_summary(rows):
    summary = build_summary(rows, PRODUCTS)
    assert summary["total_customers"] == 4
    assert summary["total_revenue"] == {"2024": 360000.0, "2023": 240000.0, "2022": 150000.0}
    assert summary["revenue"]["top50"][0] == {
        "name": "Vulcan Steel", "revenue_2024": 300000.0, "revenue_2023": 200000.0, "growth": "50.00",
    }
    assert summary["sectors"][0] == {"sector": "Financial Services", "count": 2, "percentage": "50.00"}
    assert summary["products"]["top_products"][:2] == [
        {"product": "mq", "customers_count": 2, "percentage": "50.00"},
        {"product": "api_connect", "customers_count": 1, "percentage": "25.00"},
    ]


def test_customer_export_skips_accounts_without_revenue(rows):
    customers = customer_export(rows, PRODUCTS)
    assert [c["name"] for c in customers] == ["Vulcan Steel", "Acme Corp", "Peach Co"]
    assert customers[0]["products"] == {"mq": True, "api_connect": True}
    assert customers[1]["location"] == "Atlanta, Georgia"
    assert customers[2]["growth"] == "N/A"


def test_analyze_by_location(rows):
    locations = analyze_by_location(rows, PRODUCTS)
    assert [loc["location"] for loc in locations] == ["Birmingham, Alabama", "Atlanta, Georgia", "Jackson, Mississippi"]
    atlanta = locations[1]
    assert atlanta["customer_count"] == 2
    assert atlanta["revenue_2024"] == 60000.0
    assert atlanta["growth"] == "50.00"
    assert atlanta["top_products"][0] == {"product": "mq", "count": 1, "percentage": "50.00"}
    assert [c["name"] for c in atlanta["top_customers"]] == ["Acme Corp", "Peach Co"]


def test_fetch_accounts_selects_available_columns(monkeypatch):
    executed = []
    monkeypatch.setattr(territory, "table_columns", lambda table: ["id", "urn_name", "total_ibm_rev_2024", "mq"])

    def fake_execute(sql, params=None):
        executed.append(sql)
        return [{"urn_name": "Acme", "total_ibm_rev_2024": 1.0, "mq": "1"}]

    monkeypatch.setattr(territory, "execute_readonly", fake_execute)
    rows, products = territory.fetch_accounts("bps_accounts")

    assert products == ["mq"]
    assert executed == [
        "SELECT urn_name, total_ibm_rev_2024, mq FROM bps_accounts ORDER BY total_ibm_rev_2024 DESC NULLS LAST"
    ]
    assert rows[0]["urn_name"] == "Acme"


def test_run_writes_outputs(monkeypatch, tmp_path, rows):
    monkeypatch.setattr(territory, "fetch_accounts", lambda: (rows, PRODUCTS))
    analysis = territory.run(output_dir=tmp_path, provider="mock")

    assert analysis.startswith("[MOCK] Analyze this customer data")
    assert (tmp_path / RESULTS_FILE).read_text() == analysis
    document = json.loads((tmp_path / DATA_FILE).read_text())
    assert document["total_customers"] == 4
    assert len(document["locations"]) == 3

    # the data file feeds the query tool directly
    records = load_records(tmp_path / DATA_FILE)
    assert [r["name"] for r in search("who uses api_connect", records).records] == ["Vulcan Steel"]
