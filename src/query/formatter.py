"""
Result formatter -- renders a ResultSet as a human-readable text report.

Directive results become a field guide; criteria results become a
summary block (totals and breakdowns) followed by one detail entry per
matched record.
"""
from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Mapping

from src.query.aliases import FIELD_DESCRIPTIONS, NUMERIC_FIELDS, ORIGINAL_COLUMNS
from src.query.matcher import ResultSet, location_of, resolve_path, to_number

NO_RESULTS_MESSAGE = "No customers found matching the criteria."
MISSING = "N/A"

_REVENUE_YEARS = ("2024", "2023", "2022")
_BREAKDOWNS: tuple[tuple[str, str], ...] = (
    ("sector", "Sector Breakdown"),
    ("tech_client", "Tech Client Status"),
    ("industry_description", "Industry Breakdown"),
)

_ATTRIBUTE_FOR_COLUMN = {column: name for name, column in ORIGINAL_COLUMNS.items()}


# ── Value formatting ─────────────────────────────────────

def format_currency(value: Any) -> str:
    """``1234567`` -> ``$1,234,567``; non-numeric values render as N/A."""
    number = to_number(value)
    if number is None:
        return MISSING
    if number.is_integer():
        return f"${number:,.0f}"
    return f"${number:,.2f}"


def format_growth(value: Any) -> str:
    number = to_number(value)
    if number is None:
        return MISSING
    return f"{value}%"


def _display(value: Any) -> str:
    if value is None or value == "":
        return MISSING
    return str(value)


def sorted_products(products: Any) -> list[str]:
    """Product names, by descending usage count when the values are counts."""
    if not isinstance(products, Mapping):
        return []
    names = [name for name, flag in products.items() if flag]
    counted = all(
        isinstance(v, (int, float)) and not isinstance(v, bool)
        for v in products.values()
    )
    if counted:
        names.sort(key=lambda n: products[n], reverse=True)
    return names


# ── Field guide ──────────────────────────────────────────

def infer_type(field: str, records: Iterable[Mapping[str, Any]]) -> str:
    if field in NUMERIC_FIELDS:
        return "number"
    for record in records:
        found, value = resolve_path(record, field)
        if not found or value is None:
            continue
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, (int, float)):
            return "number"
        if isinstance(value, Mapping):
            return "object"
        if isinstance(value, list):
            return "list"
        return "string"
    return "unknown"


def example_query(field: str) -> str:
    if " " in field:
        return _spaced_example(field)
    lower = field.lower()
    if "name" in lower:
        return f'{field}:"Acme Corp"'
    if "city" in lower:
        return f"{field}:Atlanta"
    if "state" in lower:
        return f"{field}:Georgia"
    if "sector" in lower:
        return f"{field}:Financial Services"
    if "revenue" in lower:
        return f"{field}:>=100000"
    if "growth" in lower:
        return f"{field}:>=10"
    if "product" in lower:
        return f"{field}:mq"
    return f"{field}:<value>"


def _spaced_example(field: str) -> str:
    # Query tokens cannot contain spaces; point at an attribute that can be queried.
    parent, _, key = field.partition(".")
    if parent in ("products", "clean_products"):
        return f'products:"{key}"'
    attribute = _ATTRIBUTE_FOR_COLUMN.get(key)
    if parent == "original" and attribute:
        return example_query(attribute)
    return "(not queryable: name contains spaces)"


def format_fields(fields: list[str], records: Iterable[Mapping[str, Any]] = ()) -> str:
    records = list(records)
    lines = [f"Available fields ({len(fields)}):", ""]
    for name in fields:
        description = FIELD_DESCRIPTIONS.get(name, "No description available")
        lines.append(f"{name} ({infer_type(name, records)})")
        lines.append(f"  Description: {description}")
        lines.append(f"  Example: {example_query(name)}")
    return "\n".join(lines)


# ── Report ───────────────────────────────────────────────

def breakdown(records: Iterable[Mapping[str, Any]], field: str) -> list[tuple[str, int]]:
    """Count per distinct value, descending; ties keep discovery order."""
    counts = Counter(_display(r.get(field)) for r in records)
    return counts.most_common()


def _summary(records: list[dict[str, Any]]) -> list[str]:
    lines = ["Summary:", f"Total customers: {len(records)}", "", "Revenue:"]
    for year in _REVENUE_YEARS:
        total = sum(to_number(r.get(f"revenue_{year}")) or 0 for r in records)
        lines.append(f"- {year}: {format_currency(total)}")
    for field, title in _BREAKDOWNS:
        lines.append("")
        lines.append(f"{title}:")
        for value, count in breakdown(records, field):
            lines.append(f"- {value}: {count}")
    return lines


def _detail(record: Mapping[str, Any]) -> list[str]:
    products = sorted_products(record.get("products"))
    return [
        _display(record.get("name")),
        f"  Location: {_display(location_of(record))}",
        f"  Branch: {_display(record.get('branch_description'))}",
        f"  Coverage: {_display(record.get('coverage_name'))}",
        f"  Coverage Type: {_display(record.get('coverage_client_type'))}",
        f"  Tech Client: {_display(record.get('tech_client'))}",
        f"  Industry: {_display(record.get('industry_description'))}",
        f"  Sector: {_display(record.get('sector'))}",
        f"  Revenue 2024: {format_currency(record.get('revenue_2024'))}",
        f"  Revenue 2023: {format_currency(record.get('revenue_2023'))}",
        f"  Revenue 2022: {format_currency(record.get('revenue_2022'))}",
        f"  Growth: {format_growth(record.get('growth'))}",
        f"  Products: {', '.join(products) or 'None'}",
    ]


def _projected_detail(record: Mapping[str, Any], projection: list[str]) -> list[str]:
    lines = []
    for name in projection:
        value = record.get(name)
        if name.startswith("revenue_"):
            text = format_currency(value)
        elif name == "growth":
            text = format_growth(value)
        elif isinstance(value, Mapping):
            text = ", ".join(sorted_products(value)) or "None"
        else:
            text = _display(value)
        lines.append(f"  {name}: {text}")
    return lines


def format_result(result: ResultSet, records: Iterable[Mapping[str, Any]] = ()) -> str:
    """Render *result*; *records* (the full collection) feeds the field guide."""
    if result.is_directive:
        return format_fields(result.fields or [], records)
    if not result.records:
        return NO_RESULTS_MESSAGE

    lines = _summary(result.matched or result.records)
    lines += ["", "Customers:"]
    for i, record in enumerate(result.records, 1):
        lines.append("")
        if result.projection:
            lines.append(f"{i}.")
            lines += _projected_detail(record, result.projection)
        else:
            detail = _detail(record)
            lines.append(f"{i}. {detail[0]}")
            lines += detail[1:]
    return "\n".join(lines)
