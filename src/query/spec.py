"""
QueryRequest -- the structured intermediate representation between a
raw query line and the matcher.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

Operator = Literal["eq", "contains", ">=", ">", "<=", "<"]

COMPARISON_OPERATORS: tuple[str, ...] = (">=", ">", "<=", "<")


class MatchCriterion(BaseModel):
    """One (attribute, operator, value) test applied to a record."""

    field: str = Field(..., description="Canonical or dotted attribute name")
    operator: Operator = Field("eq", description="eq | contains | >= | > | <= | <")
    value: str = Field(..., description="Target value, never type-coerced by the parser")

    @property
    def is_comparison(self) -> bool:
        return self.operator in COMPARISON_OPERATORS


class QueryRequest(BaseModel):
    """Parsed representation of one query line."""

    directive: bool = Field(False, description="True for a 'show fields' request")
    criteria: list[MatchCriterion] = Field(default_factory=list)
    projection: list[str] | None = Field(
        None,
        description="Attributes to keep in the output; None means the full record",
    )

    @field_validator("projection")
    @classmethod
    def _normalise_projection(cls, v: list[str] | None) -> list[str] | None:
        # Repeats collapse to the first mention; empty means the full record.
        return list(dict.fromkeys(v)) if v else None
