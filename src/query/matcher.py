"""
Matcher -- evaluates a QueryRequest against the in-memory record collection.

Each criterion is dispatched once to one of a closed set of match
strategies keyed by attribute class:

  numeric   revenue / growth / employees, or any explicit comparison
  name      substring over canonical + original spelling
  city      substring, except "atlanta" which must match exactly
  coverage  substring over canonical + up to two alternate spellings
  products  substring over product names
  location  substring over the synthesised "city, state"
  nested    dotted path, leaf compared with the generic rule
  generic   exact match first, then substring
"""
from __future__ import annotations

import math
import operator as op
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from src.query.aliases import NUMERIC_FIELDS, ORIGINAL_COLUMNS
from src.query.spec import MatchCriterion, QueryRequest
from src.core.logging import get_logger

logger = get_logger(__name__)

Record = Mapping[str, Any]
Strategy = Callable[[Record, MatchCriterion], bool]

_COMPARATORS: dict[str, Callable[[float, float], bool]] = {
    ">=": op.ge,
    ">": op.gt,
    "<=": op.le,
    "<": op.lt,
}

# Canonical attribute -> attributes holding alternate spellings.
_ALTERNATE_FIELDS: dict[str, tuple[str, ...]] = {
    "coverage_name": ("coverage_name_normalized",),
}

# Exact-match-only city values; substring matching them pulls in
# suburbs whose names merely contain the query text.
_EXACT_CITY_VALUES = frozenset({"atlanta"})


# ── Result set ───────────────────────────────────────────

@dataclass
class ResultSet:
    """Matched (possibly projected) records, or the field list of a directive."""
    count: int
    records: list[dict[str, Any]] = field(default_factory=list)
    fields: list[str] | None = None
    projection: list[str] | None = None
    # Unprojected matches; the summary block totals these.
    matched: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_directive(self) -> bool:
        return self.fields is not None


# ── Value helpers ────────────────────────────────────────

def to_number(value: Any) -> float | None:
    """Parse *value* as a number; ``None`` when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace("$", "").replace(",", "").rstrip("%").strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number):
        return None
    return number


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value).strip().lower()


def _contains_any(candidates: Iterable[Any], needle: str) -> bool:
    needle = needle.strip().lower()
    for candidate in candidates:
        text = _text(candidate)
        if text is not None and needle in text:
            return True
    return False


def _original(record: Record, attribute: str) -> Any:
    original = record.get("original")
    column = ORIGINAL_COLUMNS.get(attribute)
    if isinstance(original, Mapping) and column:
        return original.get(column)
    return None


def resolve_path(record: Record, path: str) -> tuple[bool, Any]:
    """Walk a dotted *path* level by level.

    Returns ``(found, value)``; a missing level yields ``(False, None)``.
    A key literally named *path* (as left by a projection) wins.
    """
    if path in record:
        return True, record[path]
    current: Any = record
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return False, None
        current = current[part]
    return True, current


def location_of(record: Record) -> str | None:
    parts = [str(record[k]).strip() for k in ("city", "state") if record.get(k)]
    if parts:
        return ", ".join(parts)
    location = record.get("location")
    return str(location) if location else None


# ── Strategies ───────────────────────────────────────────

def match_numeric(record: Record, criterion: MatchCriterion) -> bool:
    found, stored = resolve_path(record, criterion.field)
    if not found:
        return False
    left = to_number(stored)
    right = to_number(criterion.value)
    if left is None or right is None:
        return False
    compare = _COMPARATORS.get(criterion.operator)
    if compare is None:
        return left == right
    return compare(left, right)


def match_name(record: Record, criterion: MatchCriterion) -> bool:
    return _contains_any((record.get("name"), _original(record, "name")), criterion.value)


def match_city(record: Record, criterion: MatchCriterion) -> bool:
    candidates = (record.get("city"), _original(record, "city"))
    needle = criterion.value.strip().lower()
    if needle in _EXACT_CITY_VALUES:
        return any(_text(c) == needle for c in candidates)
    return _contains_any(candidates, needle)


def match_coverage(record: Record, criterion: MatchCriterion) -> bool:
    candidates = [record.get(criterion.field), _original(record, criterion.field)]
    candidates += [record.get(alt) for alt in _ALTERNATE_FIELDS.get(criterion.field, ())]
    return _contains_any(candidates[:3], criterion.value)


def match_products(record: Record, criterion: MatchCriterion) -> bool:
    names: list[str] = []
    for key in ("products", "clean_products"):
        products = record.get(key)
        if isinstance(products, Mapping):
            names.extend(products.keys())
    return _contains_any(names, criterion.value)


def match_location(record: Record, criterion: MatchCriterion) -> bool:
    return _contains_any((location_of(record),), criterion.value)


def _match_generic_value(stored: Any, value: str) -> bool:
    text = _text(stored)
    if text is None:
        return False
    needle = value.strip().lower()
    if text == needle:
        return True
    return needle in text


def match_nested(record: Record, criterion: MatchCriterion) -> bool:
    found, stored = resolve_path(record, criterion.field)
    if not found:
        return False
    return _match_generic_value(stored, criterion.value)


def match_generic(record: Record, criterion: MatchCriterion) -> bool:
    if criterion.field not in record:
        return False
    return _match_generic_value(record[criterion.field], criterion.value)


STRATEGIES: dict[str, Strategy] = {
    "numeric": match_numeric,
    "name": match_name,
    "city": match_city,
    "coverage": match_coverage,
    "products": match_products,
    "location": match_location,
    "nested": match_nested,
    "generic": match_generic,
}


def strategy_for(criterion: MatchCriterion) -> str:
    """Classify *criterion* into one of the STRATEGIES keys."""
    name = criterion.field
    if criterion.is_comparison or name in NUMERIC_FIELDS:
        return "numeric"
    if name == "name":
        return "name"
    if name == "city":
        return "city"
    if name in ("branch_description", "sub_branch_description", "coverage_name"):
        return "coverage"
    if name in ("products", "clean_products"):
        return "products"
    if name == "location":
        return "location"
    if "." in name:
        return "nested"
    return "generic"


# ── Field listing & projection ───────────────────────────

def list_fields(records: Iterable[Record]) -> list[str]:
    """Sorted attribute names across *records*, nested names dot-joined."""
    names: set[str] = set()
    for record in records:
        if not isinstance(record, Mapping):
            continue
        for key, value in record.items():
            names.add(str(key))
            if isinstance(value, Mapping):
                names.update(f"{key}.{sub}" for sub in value.keys())
    return sorted(names)


def project(record: Record, fields: Iterable[str]) -> dict[str, Any]:
    """Reduce *record* to *fields*; absent attributes are omitted."""
    projected: dict[str, Any] = {}
    for name in fields:
        if name == "location" and "location" not in record:
            value = location_of(record)
            if value is not None:
                projected[name] = value
            continue
        found, value = resolve_path(record, name)
        if found:
            projected[name] = value
    return projected


# ── Public API ───────────────────────────────────────────

def run_query(request: QueryRequest, records: Iterable[Record]) -> ResultSet:
    """Evaluate *request* against *records*; criteria are ANDed."""
    records = list(records)

    if request.directive:
        fields = list_fields(records)
        return ResultSet(count=len(fields), fields=fields)

    checks = [(STRATEGIES[strategy_for(c)], c) for c in request.criteria]
    matched = [
        r for r in records
        if isinstance(r, Mapping) and all(check(r, c) for check, c in checks)
    ]

    if request.projection:
        out = [project(r, request.projection) for r in matched]
    else:
        out = [dict(r) for r in matched]

    logger.info("Matched %d/%d records (%d criteria)", len(out), len(records), len(checks))
    return ResultSet(
        count=len(out),
        records=out,
        projection=request.projection,
        matched=[dict(r) for r in matched],
    )
