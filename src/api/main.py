"""
HTTP surface for the query tool.

  GET  /health         liveness
  POST /ask            one query line -> report text
  GET  /fields         queryable attribute names
  GET  /fields/detail  names with type, description and an example query

The record collection is loaded once at startup from ``data_path``;
when it cannot be loaded the app still starts and data endpoints
answer 503.

Run:  uvicorn src.api.main:app --port 8000
"""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.deps import get_records
from src.api.routers import ask, catalog
from src.core.logging import get_logger
from src.query.loader import DataLoadError

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        logger.info("Preloaded %d customer records", len(get_records()))
    except DataLoadError as exc:
        logger.warning("Starting without data: %s", exc)
    yield


app = FastAPI(
    title="Sales Territory Copilot",
    version="0.1.0",
    description="Plain-language queries and AI analysis over customer territory data",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(ask.router, prefix="/ask", tags=["Query"])
app.include_router(catalog.router, tags=["Catalog"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
