"""
AI analysis of the customer collection.

Questions containing "analyze" / "analysis" are answered by the LLM
rather than the query engine.  The relevant slice of the data (a city,
the customer list, sectors or products) is selected first and split into
chunks small enough for one prompt each; per-chunk insights are then
folded together with a final summary call.
"""
from __future__ import annotations

import json
import re
from collections import defaultdict
from typing import Any, Iterable, Mapping

from src.copilot.llm_client import call_llm
from src.core.logging import get_logger
from src.core.utils import chunked
from src.query.matcher import location_of, to_number

logger = get_logger(__name__)

MAX_PROMPT_CHARS = 4000  # roughly 1000 tokens
TOP_N = 50

ANALYST_SYSTEM_PROMPT = "Analyze customer sales data. Be concise and focus on key metrics."
SUMMARY_SYSTEM_PROMPT = "Summarize the key findings concisely."
DATA_TOO_LARGE = "Error: Data too large. Please try a more specific query."
ANALYSIS_FAILED = (
    "Sorry, there was an error processing your question. "
    "Please try a more specific query."
)

_ANALYSIS_RE = re.compile(r"\banaly(?:ze|se|sis)\b", re.IGNORECASE)
_CITY_WORD_RE = re.compile(r"\b(?:city|location|in)\b", re.IGNORECASE)
_CITY_RE = re.compile(r"\b(?:in|at|from)\s+([a-z\s]+)(?:\s|$)", re.IGNORECASE)

_CHUNK_LABELS = {
    "city_overview": "Cities",
    "city_customers": "Customers",
    "customer_analysis": "Customers",
    "top_customers": "Customers",
    "fastest_growing": "Customers",
    "sector_analysis": "Sectors",
    "product_analysis": "Products",
}

_SLIM_KEYS = (
    "name", "city", "sector", "location", "revenue_2024",
    "growth", "customer_count", "total_revenue", "product_count",
)


def wants_analysis(question: str) -> bool:
    """True when the question explicitly asks for an AI analysis."""
    return bool(_ANALYSIS_RE.search(question))


# ── Data selection ───────────────────────────────────────

def _revenue(record: Mapping[str, Any], year: str = "2024") -> float:
    return to_number(record.get(f"revenue_{year}")) or 0.0


def revenue_totals(records: Iterable[Mapping[str, Any]]) -> dict[str, float]:
    records = list(records)
    return {year: sum(_revenue(r, year) for r in records) for year in ("2024", "2023", "2022")}


def customer_summary(record: Mapping[str, Any]) -> dict[str, Any]:
    products = record.get("products")
    return {
        "name": record.get("name"),
        "revenue_2024": record.get("revenue_2024"),
        "revenue_2023": record.get("revenue_2023"),
        "revenue_2022": record.get("revenue_2022"),
        "growth": record.get("growth"),
        "sector": record.get("sector"),
        "location": location_of(record),
        "products": list(products) if isinstance(products, Mapping) else [],
    }


def make_chunks(items: list[Any], size: int = 10, context: dict[str, Any] | None = None) -> list[dict[str, Any]]:
    """Split *items* into prompt-sized chunks carrying their position."""
    total = (len(items) + size - 1) // size
    chunks = []
    for n, part in enumerate(chunked(items, size)):
        start = n * size
        chunks.append({
            **(context or {}),
            "data": part,
            "chunk_info": {
                "current": n + 1,
                "total": total,
                "start": start + 1,
                "end": start + len(part),
                "total_items": len(items),
            },
        })
    return chunks


def _by_revenue(records: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    return sorted(records, key=_revenue, reverse=True)


def relevant_data(records: list[Mapping[str, Any]], question: str) -> dict[str, Any]:
    """Select and chunk the part of *records* the question is about."""
    q = question.lower()
    data: dict[str, Any] = {
        "total_customers": len(records),
        "total_revenue": revenue_totals(records),
    }

    if _CITY_WORD_RE.search(q):
        groups: dict[str, list[Mapping[str, Any]]] = defaultdict(list)
        for record in records:
            city = str(record.get("city") or "").strip().upper()
            if city:
                groups[city].append(record)

        m = _CITY_RE.search(q)
        city = m.group(1).strip().upper() if m else ""
        if city and city in groups:
            members = groups[city]
            context = {
                "type": "city_customers",
                "city": city,
                "customer_count": len(members),
                "total_revenue": revenue_totals(members),
            }
            customers = [customer_summary(r) for r in _by_revenue(members)]
            data["chunks"] = make_chunks(customers, 10, context)
        else:
            overview = sorted(
                (
                    {"city": c, "customer_count": len(m), "total_revenue": revenue_totals(m)}
                    for c, m in groups.items()
                ),
                key=lambda row: row["total_revenue"]["2024"],
                reverse=True,
            )
            data["chunks"] = make_chunks(overview, 10, {"type": "city_overview"})

    elif "customer" in q or "client" in q:
        with_revenue = [r for r in records if _revenue(r) > 0]
        context = {
            "type": "customer_analysis",
            "total_customers": len(with_revenue),
            "total_revenue": revenue_totals(with_revenue),
        }
        if "top" in q or "largest" in q:
            top = [customer_summary(r) for r in _by_revenue(with_revenue)[:TOP_N]]
            data["chunks"] = make_chunks(top, 10, {**context, "type": "top_customers"})
        elif "growth" in q:
            growing = [r for r in with_revenue if to_number(r.get("growth")) is not None]
            growing.sort(key=lambda r: to_number(r.get("growth")), reverse=True)
            fastest = [customer_summary(r) for r in growing[:TOP_N]]
            data["chunks"] = make_chunks(fastest, 10, {**context, "type": "fastest_growing"})
        else:
            data["chunks"] = make_chunks([customer_summary(r) for r in with_revenue], 10, context)

    elif "sector" in q or "industry" in q:
        groups = defaultdict(list)
        for record in records:
            if record.get("sector"):
                groups[record["sector"]].append(record)
        sectors = [
            {
                "sector": sector,
                "customer_count": len(members),
                "total_revenue": revenue_totals(members),
                "customers": [customer_summary(r) for r in _by_revenue(members)],
            }
            for sector, members in groups.items()
        ]
        data["chunks"] = make_chunks(sectors, 5, {"type": "sector_analysis"})

    elif any(word in q for word in ("product", "software", "websphere", "mq")):
        with_products = [
            {**customer_summary(r), "product_count": len(r["products"])}
            for r in records
            if isinstance(r.get("products"), Mapping) and r["products"]
        ]
        with_products.sort(key=lambda row: row["product_count"], reverse=True)
        data["chunks"] = make_chunks(
            with_products, 10,
            {"type": "product_analysis", "total_customers_with_products": len(with_products)},
        )

    return data


# ── Prompting ────────────────────────────────────────────

def _slim(item: Mapping[str, Any]) -> dict[str, Any]:
    return {k: item[k] for k in _SLIM_KEYS if k in item}


def build_chunk_prompt(chunk: Mapping[str, Any]) -> str:
    info = chunk["chunk_info"]
    payload = json.dumps([_slim(d) for d in chunk["data"]], default=str)
    label = _CHUNK_LABELS.get(chunk.get("type", ""))
    if label:
        prompt = f"{label} ({info['start']}-{info['end']}/{info['total_items']}): {payload}"
    else:
        prompt = payload
    if len(prompt) > MAX_PROMPT_CHARS:
        prompt = prompt[:MAX_PROMPT_CHARS] + "..."
    return prompt


def _analyze_chunks(question: str, chunks: list[dict[str, Any]], provider: str | None) -> str:
    answer = ""
    for i, chunk in enumerate(chunks):
        previous = f"\nPrevious insights:{answer[:500]}" if answer else ""
        chunk_answer = call_llm(
            f"Q: {question}\n{build_chunk_prompt(chunk)}{previous}",
            provider=provider,
            system=ANALYST_SYSTEM_PROMPT,
        )
        if len(chunks) == 1 or i == 0:
            answer = chunk_answer
        elif i == len(chunks) - 1:
            answer = call_llm(
                f"Combine these insights:\n1. {answer[:750]}\n2. {chunk_answer}",
                provider=provider,
                system=SUMMARY_SYSTEM_PROMPT,
            )
        else:
            answer += "\n" + chunk_answer
    return answer


def analyze(records: list[Mapping[str, Any]], question: str, provider: str | None = None) -> str:
    """Answer *question* with an LLM-written analysis of the relevant data.

    Never raises: provider or network failures come back as a short
    apology the user can act on.
    """
    data = relevant_data(records, question)
    chunks = data.get("chunks")
    try:
        if chunks:
            logger.info("Analyzing %d chunk(s) of type %s", len(chunks), chunks[0].get("type"))
            return _analyze_chunks(question, chunks, provider)

        payload = json.dumps(data, default=str)
        if len(payload) > MAX_PROMPT_CHARS:
            return DATA_TOO_LARGE
        return call_llm(f"Q: {question}\nData: {payload}", provider=provider, system=ANALYST_SYSTEM_PROMPT)
    except Exception as exc:
        logger.warning("AI analysis failed: %s", exc)
        return ANALYSIS_FAILED
