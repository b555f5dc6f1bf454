"""
Query service -- orchestrates parse -> match -> format for one input line.

Lines asking for an analysis are handed to the AI analyst instead.
"""
from __future__ import annotations

from typing import Any, Mapping, Sequence

from src.copilot.analyst import analyze, wants_analysis
from src.query.formatter import format_result
from src.query.matcher import ResultSet, list_fields, run_query
from src.query.parser import parse_query
from src.core.logging import get_logger
from src.core.utils import Stopwatch

logger = get_logger(__name__)


def search(question: str, records: Sequence[Mapping[str, Any]]) -> ResultSet:
    """Parse *question* and evaluate it against *records*."""
    request = parse_query(question, known_fields=list_fields(records))
    return run_query(request, records)


def answer(question: str, records: Sequence[Mapping[str, Any]], mode: str | None = None) -> str:
    """End-to-end: one query line -> report text.

    Parameters
    ----------
    question : str
        The raw input line.
    records : sequence of dict
        The loaded record collection (never modified).
    mode : str, optional
        LLM provider for analysis questions ("mock", "openai",
        "anthropic"); defaults to the configured provider.
    """
    question = question.strip()
    with Stopwatch() as sw:
        if wants_analysis(question):
            text = analyze(list(records), question, provider=mode)
            kind = "analysis"
        else:
            text = format_result(search(question, records), records)
            kind = "query"
    logger.info("Answered %s | question=%s | %dms", kind, question[:80], sw.elapsed_ms)
    return text
