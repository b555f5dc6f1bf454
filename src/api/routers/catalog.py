"""
GET /fields, GET /fields/detail -- attribute names available for querying.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.deps import loaded_records
from src.query.aliases import FIELD_DESCRIPTIONS
from src.query.formatter import example_query, infer_type
from src.query.matcher import list_fields

router = APIRouter()


class FieldItem(BaseModel):
    name: str
    type: str
    description: str | None = None
    example: str


@router.get("/fields")
def list_fields_endpoint(records: list[dict[str, Any]] = Depends(loaded_records)) -> dict:
    """Sorted attribute names of the loaded records (one nested level)."""
    return {"fields": list_fields(records)}


@router.get("/fields/detail", response_model=list[FieldItem])
def list_fields_detail(records: list[dict[str, Any]] = Depends(loaded_records)) -> list[FieldItem]:
    """Attribute names with inferred type, description and an example query."""
    return [
        FieldItem(
            name=f,
            type=infer_type(f, records),
            description=FIELD_DESCRIPTIONS.get(f),
            example=example_query(f),
        )
        for f in list_fields(records)
    ]
