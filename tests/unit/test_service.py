"""
Unit tests -- query service: parse -> match -> format, analysis routing.
"""
from src.query.formatter import NO_RESULTS_MESSAGE
from src.query.service import answer, search


# ── Single-record scenario ───────────────────────────────

def test_city_query_finds_acme(acme):
    result = search("city:Atlanta", [acme])
    assert result.count == 1
    assert result.records[0]["name"] == "Acme Corp"


def test_revenue_over_finds_acme(acme):
    result = search("companies with revenue over 45000", [acme])
    assert [r["name"] for r in result.records] == ["Acme Corp"]


def test_who_uses_finds_acme(acme):
    result = search("who uses mq", [acme])
    assert [r["name"] for r in result.records] == ["Acme Corp"]


def test_other_city_finds_nothing(acme):
    assert search("city:Marietta", [acme]).count == 0
    assert answer("city:Marietta", [acme]) == NO_RESULTS_MESSAGE


def test_answer_renders_report(acme):
    text = answer("city:Atlanta", [acme])
    assert "Total customers: 1" in text
    assert "Acme Corp" in text


# ── Directive ────────────────────────────────────────────

def test_show_fields_on_heterogeneous_records(records):
    records.append({"only_here": 1})
    text = answer("show fields", records)
    assert text.startswith("Available fields (")
    assert "only_here (number)" in text


def test_select_where_projection(records):
    text = answer("select name, city where sector Industrial", records)
    assert "  name: Vulcan Steel" in text
    assert "  city: Birmingham" in text
    assert "Revenue 2024:" not in text


def test_projection_summary_uses_full_records(records):
    text = answer("select name where city atlanta", records)
    assert "  name: Acme Corp" in text
    assert "- 2024: $50,000" in text
    assert "- 2023: $40,000" in text
    assert "- Financial Services: 1" in text
    assert "- N/A: 1" not in text


# ── Analysis routing ─────────────────────────────────────

def test_analysis_question_goes_to_llm(records):
    text = answer("analyze top customers", records, mode="mock")
    assert text.startswith("[MOCK]")


def test_analysis_with_bad_provider_is_reported(records):
    text = answer("give me an analysis of customers", records, mode="banana")
    assert text.startswith("Sorry, there was an error")
