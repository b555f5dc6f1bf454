"""
Territory analysis -- reads the uploaded accounts back from Postgres,
builds an aggregate summary and asks the LLM for a written analysis.

Outputs:
  territory_analysis_results.md   the LLM analysis
  territory_analysis_data.json    summary + per-customer export + locations

Run:  python -m src.analytics.territory
"""
from __future__ import annotations

import json
import sys
from collections import Counter, defaultdict
from pathlib import Path
from typing import Any, Iterable, Mapping

from sqlalchemy.exc import SQLAlchemyError

from src.copilot.llm_client import call_llm
from src.core.config import get_settings
from src.core.logging import get_logger
from src.core.utils import percentage
from src.db.executor import execute_readonly, table_columns
from src.query.matcher import to_number

logger = get_logger(__name__)

RESULTS_FILE = "territory_analysis_results.md"
DATA_FILE = "territory_analysis_data.json"

PRODUCT_COLUMNS: tuple[str, ...] = (
    "api_connect", "app_connect_enterprise", "app_connect_professional", "aspera",
    "clearcase_and_clearquest", "cloud_pak_system", "cloud_pak_for_aiops",
    "cloud_pak_for_applications", "cloud_pak_for_integration", "cloud_private",
    "datapower_appliances", "datapower_operations_dashboard", "datapower_software_editions",
    "devops_automation", "devops_heritage", "event_automation", "flexera", "humio",
    "mobile_foundation", "mq", "mq_advanced", "mq_appliances", "ns1",
    "observability_with_instana", "operations_insights", "pure_application",
    "rational_analysis_design_construction", "runtimes", "sevone", "turbonomic_arm",
    "urbancode", "websphere_application_server",
    "websphere_application_server_family_edition",
    "websphere_application_server_network_deployment", "websphere_automation",
    "websphere_extreme_scale", "websphere_hybrid_edition",
    "websphere_service_registry_repository", "workload_automation", "ibm_sw_installs",
)

BASE_COLUMNS: tuple[str, ...] = (
    "urn_name", "total_ibm_rev_2024", "total_ibm_rev_2023", "total_ibm_rev_2022",
    "sector", "location", "prmry_city_name", "prmry_st_prov_name",
    "firmo_le_emp_cnt_number_of_employees", "watsonx_ai", "red_hat_2024",
    "cloud_platform_paas_2024", "automation_2024", "security_2024",
)

ANALYST_SYSTEM_PROMPT = (
    "You are a senior business analyst specializing in sales territory planning "
    "and market analysis. Provide insights in a clear, actionable format with "
    "specific numbers and percentages."
)


# ── Helpers ──────────────────────────────────────────────

def _rev(row: Mapping[str, Any], year: str) -> float:
    return to_number(row.get(f"total_ibm_rev_{year}")) or 0.0


def growth_pct(current: float, previous: float) -> str:
    if not previous:
        return "N/A"
    return f"{(current - previous) / previous * 100:.2f}"


def row_location(row: Mapping[str, Any]) -> str:
    if row.get("location"):
        return str(row["location"])
    parts = [str(row[k]) for k in ("prmry_city_name", "prmry_st_prov_name") if row.get(k)]
    return ", ".join(parts) or "Unknown"


# ── Database ─────────────────────────────────────────────

def fetch_accounts(table: str | None = None) -> tuple[list[dict[str, Any]], list[str]]:
    """All accounts ordered by 2024 revenue, plus the product columns present."""
    table = table or get_settings().accounts_table
    available = set(table_columns(table))
    products = [c for c in PRODUCT_COLUMNS if c in available]
    selected = [c for c in (*BASE_COLUMNS, *products) if c in available]
    logger.info("Selecting %d columns (%d products) from %s", len(selected), len(products), table)

    order = " ORDER BY total_ibm_rev_2024 DESC NULLS LAST" if "total_ibm_rev_2024" in available else ""
    rows = execute_readonly(f"SELECT {', '.join(selected)} FROM {table}{order}")
    return rows, products


# ── Aggregation ──────────────────────────────────────────

def build_summary(rows: list[Mapping[str, Any]], product_columns: Iterable[str]) -> dict[str, Any]:
    """Reduced data sent to the LLM: totals, top 50, sectors, top 20 products."""
    total = len(rows)
    sectors = Counter(r["sector"] for r in rows if r.get("sector"))
    product_counts = [
        (p, sum(1 for r in rows if r.get(p))) for p in product_columns
    ]
    product_counts.sort(key=lambda pc: pc[1], reverse=True)
    return {
        "total_customers": total,
        "total_revenue": {year: sum(_rev(r, year) for r in rows) for year in ("2024", "2023", "2022")},
        "revenue": {
            "top50": [
                {
                    "name": r.get("urn_name"),
                    "revenue_2024": r.get("total_ibm_rev_2024"),
                    "revenue_2023": r.get("total_ibm_rev_2023"),
                    "growth": growth_pct(_rev(r, "2024"), _rev(r, "2023")),
                }
                for r in rows[:50]
            ],
        },
        "sectors": [
            {"sector": s, "count": n, "percentage": percentage(n, total)}
            for s, n in sectors.most_common()
        ],
        "products": {
            "top_products": [
                {"product": p, "customers_count": n, "percentage": percentage(n, total)}
                for p, n in product_counts[:20]
            ],
        },
    }


def customer_export(rows: Iterable[Mapping[str, Any]], product_columns: Iterable[str]) -> list[dict[str, Any]]:
    """Accounts with any revenue, shaped as query-tool records."""
    product_columns = list(product_columns)
    customers = []
    for r in rows:
        if not any(_rev(r, y) > 0 for y in ("2024", "2023", "2022")):
            continue
        customers.append({
            "name": r.get("urn_name"),
            "revenue_2024": r.get("total_ibm_rev_2024"),
            "revenue_2023": r.get("total_ibm_rev_2023"),
            "revenue_2022": r.get("total_ibm_rev_2022"),
            "growth": growth_pct(_rev(r, "2024"), _rev(r, "2023")),
            "sector": r.get("sector"),
            "city": r.get("prmry_city_name"),
            "state": r.get("prmry_st_prov_name"),
            "location": row_location(r),
            "employee_count": r.get("firmo_le_emp_cnt_number_of_employees"),
            "products": {p: True for p in product_columns if r.get(p)},
        })
    return customers


def analyze_by_location(rows: Iterable[Mapping[str, Any]], product_columns: Iterable[str]) -> list[dict[str, Any]]:
    """Revenue, growth, top products and top customers per location."""
    product_columns = list(product_columns)
    groups: dict[str, list[Mapping[str, Any]]] = defaultdict(list)
    for r in rows:
        groups[row_location(r)].append(r)

    locations = []
    for location, members in groups.items():
        revenue_2024 = sum(_rev(r, "2024") for r in members)
        revenue_2023 = sum(_rev(r, "2023") for r in members)
        products = sorted(
            (
                {
                    "product": p,
                    "count": n,
                    "percentage": percentage(n, len(members)),
                }
                for p in product_columns
                for n in [sum(1 for r in members if r.get(p))]
            ),
            key=lambda row: row["count"],
            reverse=True,
        )
        top = sorted(members, key=lambda r: _rev(r, "2024"), reverse=True)[:3]
        locations.append({
            "location": location,
            "customer_count": len(members),
            "revenue_2024": revenue_2024,
            "revenue_2023": revenue_2023,
            "growth": growth_pct(revenue_2024, revenue_2023),
            "top_products": products[:5],
            "top_customers": [{"name": r.get("urn_name"), "revenue": r.get("total_ibm_rev_2024")} for r in top],
        })
    locations.sort(key=lambda loc: loc["revenue_2024"], reverse=True)
    return locations


def build_prompt(summary: Mapping[str, Any]) -> str:
    return (
        "Analyze this customer data and provide key insights:\n"
        f"{json.dumps(summary, indent=2, default=str)}"
    )


# ── Entry point ──────────────────────────────────────────

def run(output_dir: str | Path | None = None, provider: str | None = None) -> str:
    """Fetch, summarise, analyse and write both output files; returns the analysis."""
    out = Path(output_dir or get_settings().output_dir)
    rows, products = fetch_accounts()
    summary = build_summary(rows, products)

    analysis = call_llm(build_prompt(summary), provider=provider, system=ANALYST_SYSTEM_PROMPT, max_tokens=2000)

    out.mkdir(parents=True, exist_ok=True)
    (out / RESULTS_FILE).write_text(analysis, encoding="utf-8")
    (out / DATA_FILE).write_text(json.dumps({
        **summary,
        "customers": customer_export(rows, products),
        "locations": analyze_by_location(rows, products),
    }, indent=2, default=str), encoding="utf-8")
    logger.info("Analysis saved to %s and %s", out / RESULTS_FILE, out / DATA_FILE)
    return analysis


def main() -> int:
    try:
        analysis = run()
    except (SQLAlchemyError, RuntimeError, NotImplementedError) as exc:
        logger.error("Territory analysis failed: %s", exc)
        return 1
    print("\n=== Sales Territory Analysis ===\n")
    print(analysis)
    print(f"\nAnalysis saved to {RESULTS_FILE}")
    print(f"Full customer data saved to {DATA_FILE}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
