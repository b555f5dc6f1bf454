"""
CSV -> JSON conversion of the account universe export.

Writes three files into the output directory:
  territory_analysis_data.json  full analysis document (customers + totals)
  product_mapping.csv           original product name -> clean name, count
  clean_customers.csv           basic customer columns

Run:  python -m src.ingest.convert_csv [input.csv] [--output-dir .]
"""
from __future__ import annotations

import argparse
import json
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd

from src.core.config import get_settings
from src.core.logging import get_logger

logger = get_logger(__name__)

DATA_FILE = "territory_analysis_data.json"
PRODUCT_MAPPING_FILE = "product_mapping.csv"
CLEAN_CUSTOMERS_FILE = "clean_customers.csv"

# Raw CSV column -> customer attribute.  Every other non-empty column
# is a product installed at the account.
TEXT_COLUMNS: dict[str, str] = {
    "URN NAME": "name",
    "Tech Client": "tech_client",
    "Client Type Overwrite": "client_type_overwrite",
    "Cov Name 1H25": "coverage_name",
    "Cov Client Type 1H25": "coverage_client_type",
    "Cov Client Sub Type 1H25": "coverage_client_subtype",
    "BRNCH_DSCR 1H25": "branch_description",
    "SUB_BRNCH_DSCR 1H25": "sub_branch_description",
    "SUB IND DSCR": "sub_industry_description",
    "IND_DSCR": "industry_description",
    "Sector": "sector",
    "IT Spend Estimate": "it_spend_estimate",
    "Company Size": "company_size",
    "Prmry City Name": "city",
    "PRMRY ST PROV NAME": "state",
    "Top Data & AI Business Parter": "top_data_ai_business_partner",
    "Top IT Auto & App Mod Business Parter": "top_it_auto_app_mod_business_partner",
    "Key BP": "key_bp",
}

NUMERIC_COLUMNS: dict[str, str] = {
    "FIRMO LE EMP CNT (Number of Employees)": "employee_count",
    "TOTAL IBM REV 2024": "revenue_2024",
    "TOTAL IBM REV 2023": "revenue_2023",
    "TOTAL IBM REV 2022": "revenue_2022",
}

NON_PRODUCT_COLUMNS = frozenset(TEXT_COLUMNS) | frozenset(NUMERIC_COLUMNS)

CLEANING_RULES = [
    "Removed all special characters including dashes and periods",
    "Converted column names to lowercase with underscores",
    "Parsed numeric values properly (removed all non-digit characters except decimal points)",
    "Created normalized product names for database compatibility",
]

_NON_WORD_RE = re.compile(r"[^\w\s]|[-.]")
_NON_NUMERIC_RE = re.compile(r"[^0-9.]")


# ── Value cleaning ───────────────────────────────────────

def clean_value(value: Any) -> str:
    """Trim and drop every character that is not a word character or space."""
    if value is None or value == "":
        return ""
    return _NON_WORD_RE.sub("", str(value).strip()).strip()


def column_name(value: Any) -> str:
    """``"Cov Name 1H25"`` -> ``"cov_name_1h25"``."""
    if value is None or value == "":
        return ""
    name = _NON_WORD_RE.sub("", str(value).strip().lower())
    name = re.sub(r"\s+", "_", name)
    name = re.sub(r"__+", "_", name)
    return name.strip("_")


def parse_numeric(value: Any) -> float:
    """Keep digits and the decimal point only; empty or unparseable -> 0."""
    if value is None or value == "":
        return 0.0
    cleaned = _NON_NUMERIC_RE.sub("", str(value))
    try:
        return float(cleaned) if cleaned else 0.0
    except ValueError:
        return 0.0


def compute_growth(revenue_2024: float, revenue_2023: float) -> str:
    """Percentage growth with two decimals, ``"Infinity"`` or ``"N/A"``."""
    if revenue_2023 > 0:
        return f"{(revenue_2024 - revenue_2023) / revenue_2023 * 100:.2f}"
    return "Infinity" if revenue_2024 > 0 else "N/A"


# ── Record building ──────────────────────────────────────

def build_customer(row: dict[str, str]) -> dict[str, Any]:
    """Turn one raw CSV row into a customer record."""
    customer: dict[str, Any] = {
        attr: clean_value(row.get(col)) for col, attr in TEXT_COLUMNS.items()
    }
    customer["coverage_name_normalized"] = column_name(row.get("Cov Name 1H25"))
    for col, attr in NUMERIC_COLUMNS.items():
        customer[attr] = parse_numeric(row.get(col))
    customer["growth"] = compute_growth(customer["revenue_2024"], customer["revenue_2023"])
    customer["original"] = dict(row)

    products: dict[str, bool] = {}
    clean_products: dict[str, bool] = {}
    for col, value in row.items():
        if col in NON_PRODUCT_COLUMNS or not col or col.startswith("Unnamed:"):
            continue
        if not str(value).strip():
            continue
        products[col] = True
        clean_products[column_name(col)] = True
    customer["products"] = products
    customer["clean_products"] = clean_products
    return customer


def read_rows(path: str | Path) -> list[dict[str, str]]:
    """Read *path* as strings; blank lines are skipped, blanks stay ``""``."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    return df.to_dict(orient="records")


def build_analysis(customers: list[dict[str, Any]]) -> dict[str, Any]:
    totals = {
        year: sum(c[f"revenue_{year}"] for c in customers)
        for year in ("2024", "2023", "2022")
    }
    counts: dict[str, int] = {}
    for customer in customers:
        for product in customer["products"]:
            counts[product] = counts.get(product, 0) + 1
    top_products = sorted(
        (
            {"product": p, "clean_product_name": column_name(p), "customerCount": n}
            for p, n in counts.items()
        ),
        key=lambda row: row["customerCount"],
        reverse=True,
    )
    growth = (
        f"{(totals['2024'] - totals['2023']) / totals['2023'] * 100:.2f}"
        if totals["2023"] > 0 else "N/A"
    )
    return {
        "totalCustomers": len(customers),
        "totalRevenue": totals,
        "yearOverYearGrowth": {"2023-2024": growth},
        "customers": customers,
        "products": {"topProducts": top_products},
        "metadata": {
            "dataCleaningApplied": True,
            "cleaningRules": CLEANING_RULES,
            "dateProcessed": datetime.now(timezone.utc).isoformat(),
        },
    }


def convert_csv(input_csv: str | Path, output_dir: str | Path = ".") -> dict[str, Any]:
    """Convert *input_csv* and write the three output files into *output_dir*."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    customers = [build_customer(row) for row in read_rows(input_csv)]
    analysis = build_analysis(customers)

    (out / DATA_FILE).write_text(json.dumps(analysis, indent=2), encoding="utf-8")

    pd.DataFrame(
        analysis["products"]["topProducts"],
        columns=["product", "clean_product_name", "customerCount"],
    ).rename(columns={
        "product": "original_name",
        "clean_product_name": "clean_name",
        "customerCount": "customer_count",
    }).to_csv(out / PRODUCT_MAPPING_FILE, index=False)

    basic = ["name", "tech_client", "coverage_name", "sector", "state",
             "revenue_2024", "revenue_2023", "revenue_2022", "growth"]
    pd.DataFrame(customers, columns=basic).to_csv(out / CLEAN_CUSTOMERS_FILE, index=False)

    logger.info(
        "Converted %d customers, %d products, revenue 2024 $%s",
        len(customers), len(analysis["products"]["topProducts"]),
        f"{analysis['totalRevenue']['2024']:,.0f}",
    )
    return analysis


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Convert the account CSV export to JSON.")
    parser.add_argument("input", nargs="?", default=settings.accounts_csv)
    parser.add_argument("--output-dir", default=settings.output_dir)
    args = parser.parse_args(argv)

    try:
        analysis = convert_csv(args.input, args.output_dir)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        logger.error("Conversion failed: %s", exc)
        return 1

    print("Conversion complete! Files saved:")
    print(f"- {DATA_FILE} (full data)")
    print(f"- {PRODUCT_MAPPING_FILE} (product name mapping)")
    print(f"- {CLEAN_CUSTOMERS_FILE} (basic customer info)")
    print(f"Total customers: {analysis['totalCustomers']}")
    print(f"Total revenue 2024: ${analysis['totalRevenue']['2024']:,.0f}")
    print(f"Total products: {len(analysis['products']['topProducts'])}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
