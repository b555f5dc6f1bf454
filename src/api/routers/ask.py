"""POST /ask -- answer one query line against the loaded records."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.api.deps import loaded_records
from src.core.logging import get_logger
from src.query.service import answer

logger = get_logger(__name__)
router = APIRouter()


class AskRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=500, description="Query line, e.g. 'city:Atlanta'")
    mode: str | None = Field(None, description="mock | openai | anthropic (analysis questions only)")


class AskResponse(BaseModel):
    question: str
    answer: str


@router.post("", response_model=AskResponse)
def ask_endpoint(req: AskRequest, records: list[dict[str, Any]] = Depends(loaded_records)):
    """Query line -> report text (or AI analysis for 'analyze ...' lines)."""
    try:
        text = answer(req.question, records, mode=req.mode)
    except Exception as exc:
        logger.exception("Query failed")
        raise HTTPException(status_code=500, detail=str(exc))
    return AskResponse(question=req.question, answer=text)
