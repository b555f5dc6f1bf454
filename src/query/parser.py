"""
Query parser -- converts one line of free-form text into a QueryRequest.

Recognised forms, first match wins:
  1. directive          show fields | fields | list fields
  2. colon form         sector:"Financial Services"
  3. operator form      city = Atlanta, revenue_2024>=100000
  4. bare two tokens    state Georgia
  5. natural language   companies with revenue over 100000, who uses mq, ...
  6. select / where     select name, city where sector Technology
  7. anything else      empty request (matches every record)
"""
from __future__ import annotations

import re
from typing import Iterable

from src.query.aliases import resolve_field
from src.query.spec import COMPARISON_OPERATORS, MatchCriterion, QueryRequest
from src.core.logging import get_logger

logger = get_logger(__name__)

_DIRECTIVES = frozenset({"show fields", "fields", "list fields"})

_COLON_RE = re.compile(r"^([\w.]+)\s*:\s*(.+)$")
_OPERATOR_FORM_RE = re.compile(r"^([\w.]+)\s*(>=|<=|>|<|=)\s*(.+)$")
_OPERATOR_PREFIX_RE = re.compile(r"^(>=|<=|>|<|=)\s*(.+)$")
_TOKEN_RE = re.compile(r'"[^"]*"|\'[^\']*\'|\S+')
_SELECT_WHERE_RE = re.compile(r"\b(?:select|where)\b", re.IGNORECASE)

_SUBJECT = r"^(?:show\s+(?:me\s+)?|list\s+|find\s+)?(?:all\s+)?(?:companies|customers|clients|accounts)"
_OVER = r"(?:over|above|greater\s+than|more\s+than|at\s+least|>=?)"

# ── Natural-language patterns ────────────────────────────
# (pattern, target attribute, kind).  Order matters: earlier, more
# specific patterns must win over later, more general ones.

NL_PATTERNS: tuple[tuple[re.Pattern[str], str, str], ...] = (
    (re.compile(_SUBJECT + r"\s+in\s+(?:the\s+)?(.+?)\s+(?:branch|territory)$", re.I),
     "branch_description", "substring"),
    (re.compile(_SUBJECT + r"\s+in\s+(?:the\s+)?(.+?)\s+coverage$", re.I),
     "coverage_name", "substring"),
    (re.compile(_SUBJECT + r"\s+with\s+(?:2024\s+)?revenue\s+" + _OVER + r"\s*\$?\s*([\d,]+(?:\.\d+)?)$", re.I),
     "revenue_2024", "numeric"),
    (re.compile(_SUBJECT + r"\s+with\s+growth\s+" + _OVER + r"\s*(-?\d+(?:\.\d+)?)\s*%?$", re.I),
     "growth", "numeric"),
    (re.compile(_SUBJECT + r"\s+(?:with|using)\s+(.+?)\s+products?$", re.I),
     "products", "substring"),
    (re.compile(r"^who\s+uses\s+(.+?)\??$", re.I),
     "products", "substring"),
    (re.compile(r"^(?:show\s+(?:me\s+)?|list\s+)?(?:all\s+)?(?:the\s+)?tech\s+clients?\??$", re.I),
     "tech_client", "flag"),
    (re.compile(r"^(?:show\s+(?:me\s+)?|list\s+)?(?!(?:me|all)\s)(.+?)\s+tech\s+clients?$", re.I),
     "tech_client", "substring"),
    (re.compile(_SUBJECT + r"\s+in\s+(?:the\s+)?(.+?)\s+industry$", re.I),
     "industry_description", "substring"),
    (re.compile(_SUBJECT + r"\s+in\s+(?:the\s+)?(.+?)\s+sector$", re.I),
     "sector", "substring"),
    (re.compile(_SUBJECT + r"\s+in\s+(.+?)$", re.I),
     "city", "substring"),
)


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _criterion(field: str, raw_value: str) -> MatchCriterion:
    """Build an equality criterion, honouring a leading operator (``=`` is equality)."""
    value = _strip_quotes(raw_value)
    m = _OPERATOR_PREFIX_RE.match(value)
    if m:
        operator = m.group(1) if m.group(1) in COMPARISON_OPERATORS else "eq"
        return MatchCriterion(field=field, operator=operator, value=_strip_quotes(m.group(2)))
    return MatchCriterion(field=field, operator="eq", value=value)


def _field_or_literal(token: str, known_fields: Iterable[str]) -> str:
    return resolve_field(token, known_fields) or token


# ── Individual forms ─────────────────────────────────────

def _parse_keyed(pattern: re.Pattern[str], line: str, known: list[str]) -> QueryRequest | None:
    m = pattern.match(line)
    if not m:
        return None
    field = _field_or_literal(m.group(1), known)
    return QueryRequest(criteria=[_criterion(field, m.group(2))])


def _parse_operator_form(line: str, known: list[str]) -> QueryRequest | None:
    m = _OPERATOR_FORM_RE.match(line)
    if not m:
        return None
    field = _field_or_literal(m.group(1), known)
    return QueryRequest(criteria=[_criterion(field, m.group(2) + m.group(3))])


def _parse_two_tokens(line: str, known: list[str]) -> QueryRequest | None:
    tokens = line.split()
    if len(tokens) != 2:
        return None
    if any(q in line for q in "\"'") or _SELECT_WHERE_RE.search(line):
        return None
    field = _field_or_literal(tokens[0], known)
    return QueryRequest(criteria=[_criterion(field, tokens[1])])


def _parse_natural_language(line: str) -> QueryRequest | None:
    for pattern, field, kind in NL_PATTERNS:
        m = pattern.match(line)
        if not m:
            continue
        # "flag" patterns carry no value group; they select the "Yes" side.
        value = "yes" if kind == "flag" else _strip_quotes(m.group(1).strip())
        if kind == "numeric":
            criterion = MatchCriterion(field=field, operator=">=", value=value.replace(",", ""))
        else:
            criterion = MatchCriterion(field=field, operator="contains", value=value)
        return QueryRequest(criteria=[criterion])
    return None


def tokenize(line: str) -> list[str]:
    """Split on whitespace outside quoted substrings (quotes are kept)."""
    return _TOKEN_RE.findall(line)


def _parse_select_where(line: str, known: list[str]) -> QueryRequest:
    tokens = tokenize(line)
    projection: list[str] = []
    criteria: list[MatchCriterion] = []
    mode = "criteria"

    i = 0
    while i < len(tokens):
        token = tokens[i]
        lower = token.lower()
        if lower == "select":
            mode = "projection"
        elif lower == "where":
            mode = "criteria"
        elif lower == "from":
            mode = "source"
        elif mode == "projection":
            for part in token.split(","):
                if part.strip():
                    projection.append(_field_or_literal(part, known))
        elif mode == "criteria":
            m = _OPERATOR_FORM_RE.match(token)
            if m:
                field = resolve_field(m.group(1), known)
                if field:
                    criteria.append(_criterion(field, m.group(2) + m.group(3)))
                i += 1
                continue
            field = resolve_field(token, known)
            if field:
                j = i + 1
                if j < len(tokens) and tokens[j].lower() in ("=", ":", "is"):
                    j += 1
                if j + 1 < len(tokens) and tokens[j] in COMPARISON_OPERATORS:
                    criteria.append(_criterion(field, tokens[j] + tokens[j + 1]))
                    i = j + 2
                    continue
                if j < len(tokens):
                    criteria.append(_criterion(field, tokens[j]))
                    i = j + 1
                    continue
        i += 1

    return QueryRequest(criteria=criteria, projection=projection or None)


# ── Public API ───────────────────────────────────────────

def parse_query(text: str, known_fields: Iterable[str] = ()) -> QueryRequest:
    """Parse *text* into a QueryRequest.

    *known_fields* are the attribute names observed in the loaded records;
    they let tokens such as ``sub_branch_description`` resolve even though
    they are not in the alias table.  Unparseable input yields an empty
    request, never an error.
    """
    line = text.strip()
    known = list(known_fields)

    if line.lower() in _DIRECTIVES:
        request = QueryRequest(directive=True)
    else:
        request = (
            _parse_keyed(_COLON_RE, line, known)
            or _parse_operator_form(line, known)
            or _parse_two_tokens(line, known)
            or _parse_natural_language(line)
            or _parse_select_where(line, known)
        )

    logger.debug("Parsed %r -> %s", line, request.model_dump_json())
    return request
