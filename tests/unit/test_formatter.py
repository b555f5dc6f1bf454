"""
Unit tests -- formatter: report text, field guide, value rendering.
"""
import pytest

from src.query.formatter import (
    NO_RESULTS_MESSAGE,
    breakdown,
    example_query,
    format_currency,
    format_fields,
    format_growth,
    format_result,
    infer_type,
    sorted_products,
)
from src.query.matcher import ResultSet


def test_no_results_message():
    assert format_result(ResultSet(count=0)) == NO_RESULTS_MESSAGE
    assert NO_RESULTS_MESSAGE == "No customers found matching the criteria."


def test_full_detail(records):
    text = format_result(ResultSet(count=1, records=[records[0]]))
    assert "Total customers: 1" in text
    assert "1. Acme Corp" in text
    assert "Location: Atlanta, Georgia" in text
    assert "Revenue 2024: $50,000" in text
    assert "Growth: 25.00%" in text
    assert "Products: mq" in text


def test_summary_totals_and_breakdowns(records):
    text = format_result(ResultSet(count=len(records), records=records))
    assert "Total customers: 4" in text
    assert "- 2024: $470,000" in text
    assert "Sector Breakdown:" in text
    assert "- Yes: 2" in text
    assert "Industry Breakdown:" in text


def test_missing_fields_render_na():
    text = format_result(ResultSet(count=1, records=[{"name": "Bare Co"}]))
    assert "Sector: N/A" in text
    assert "Revenue 2024: N/A" in text
    assert "Products: None" in text


def test_projected_records_list_only_projection():
    record = {"name": "Acme Corp", "revenue_2024": 50000}
    text = format_result(ResultSet(count=1, records=[record], projection=["name", "revenue_2024"]))
    assert "  name: Acme Corp" in text
    assert "  revenue_2024: $50,000" in text
    assert "Sector:" not in text


def test_projected_summary_totals_matched_records(records):
    projected = [{"name": r["name"]} for r in records[:2]]
    result = ResultSet(count=2, records=projected, projection=["name"], matched=records[:2])
    text = format_result(result)
    assert "Total customers: 2" in text
    assert "- 2024: $170,000" in text
    assert "- Distribution: 1" in text


def test_directive_field_guide(records):
    text = format_result(ResultSet(count=2, fields=["city", "revenue_2024"]), records)
    assert text.startswith("Available fields (2):")
    assert "city (string)" in text
    assert "revenue_2024 (number)" in text
    assert "Example: city:Atlanta" in text


def test_format_fields_unknown_description():
    text = format_fields(["mystery"])
    assert "No description available" in text
    assert "mystery (unknown)" in text


@pytest.mark.parametrize("value,expected", [
    (1234567, "$1,234,567"),
    (1234.5, "$1,234.50"),
    ("50000", "$50,000"),
    (None, "N/A"),
    ("N/A", "N/A"),
])
def test_format_currency(value, expected):
    assert format_currency(value) == expected


def test_format_growth():
    assert format_growth("20.00") == "20.00%"
    assert format_growth("N/A") == "N/A"
    assert format_growth(None) == "N/A"


def test_sorted_products_by_count():
    assert sorted_products({"MQ": 2, "Aspera": 7, "API Connect": 4}) == ["Aspera", "API Connect", "MQ"]


def test_sorted_products_flags_keep_order():
    assert sorted_products({"b": True, "a": True, "c": False}) == ["b", "a"]
    assert sorted_products(None) == []


def test_breakdown_descending(records):
    assert breakdown(records, "state") == [("Georgia", 2), ("Mississippi", 1), ("Alabama", 1)]


def test_infer_type(records):
    assert infer_type("products", records) == "object"
    assert infer_type("employee_count", records) == "number"
    assert infer_type("products.mq", records) == "boolean"
    assert infer_type("nothing", records) == "unknown"


@pytest.mark.parametrize("field,expected", [
    ("name", 'name:"Acme Corp"'),
    ("revenue_2023", "revenue_2023:>=100000"),
    ("products", "products:mq"),
    ("tech_client", "tech_client:<value>"),
])
def test_example_query(field, expected):
    assert example_query(field) == expected


@pytest.mark.parametrize("field,expected", [
    ("original.URN NAME", 'name:"Acme Corp"'),
    ("original.Prmry City Name", "city:Atlanta"),
    ("products.WebSphere Application Server", 'products:"WebSphere Application Server"'),
    ("original.Client Type Overwrite", "(not queryable: name contains spaces)"),
])
def test_example_query_for_spaced_names(field, expected):
    assert example_query(field) == expected


def test_field_guide_spaced_original_column(records):
    text = format_result(ResultSet(count=1, fields=["original.URN NAME"]), records)
    assert "original.URN NAME (string)" in text
    assert 'Example: name:"Acme Corp"' in text
