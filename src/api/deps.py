"""
Shared FastAPI dependencies.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any

from fastapi import HTTPException

from src.core.config import get_settings
from src.query.loader import DataLoadError, load_records


@lru_cache
def get_records() -> list[dict[str, Any]]:
    """The record collection, loaded once per process from ``data_path``."""
    return load_records(get_settings().data_path)


def loaded_records() -> list[dict[str, Any]]:
    """Request dependency; an unloadable data file is a 503."""
    try:
        return get_records()
    except DataLoadError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
