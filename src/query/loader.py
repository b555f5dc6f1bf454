"""
Loads the converted territory JSON into the in-memory record collection.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from src.core.logging import get_logger

logger = get_logger(__name__)


class DataLoadError(RuntimeError):
    """The record collection could not be loaded; the session cannot start."""


def load_records(path: str | Path) -> list[dict[str, Any]]:
    """Read *path* and return its customer records.

    Accepts either the analysis document written by ``convert_csv``
    (an object with a ``customers`` list) or a bare list of records.

    Raises
    ------
    DataLoadError
        If the file is missing, is not valid JSON, or holds no record list.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise DataLoadError(f"Data file not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise DataLoadError(f"Could not read {path}: {exc}") from exc

    records = raw.get("customers") if isinstance(raw, dict) else raw
    if not isinstance(records, list):
        raise DataLoadError(f"{path} does not contain a list of customer records")

    records = [r for r in records if isinstance(r, dict)]
    logger.info("Loaded %d records from %s", len(records), path)
    return records
