"""
Settings for the territory tools, read from the environment or a
``.env`` file at the project root.

Every script (conversion, upload, analysis, query CLI, API) goes through
``get_settings()`` so a single ``.env`` drives the whole pipeline.
"""
from __future__ import annotations

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

_ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseSettings):
    # ── Data files ───────────────────────────────────────
    accounts_csv: str = "BPS Accounts - US Hub 07. AL-GA-MS Acct Universe 1Q25 Feb (1).csv"
    data_path: str = "territory_analysis_data.json"
    output_dir: str = "."

    # ── Supabase Postgres ────────────────────────────────
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_sslmode: str = "prefer"  # "require" for hosted Supabase
    accounts_table: str = "bps_accounts"
    query_timeout_ms: int = 30_000

    # ── Batch upload ─────────────────────────────────────
    upload_batch_size: int = 100
    upload_max_retries: int = 3
    upload_retry_delay: float = 2.0  # seconds; doubled for network errors
    upload_progress_file: str = "upload_progress.json"

    # ── LLM ──────────────────────────────────────────────
    llm_provider: str = "mock"  # mock | openai | anthropic
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-haiku-20240307"
    llm_temperature: float = 0.7

    # ── App ──────────────────────────────────────────────
    api_port: int = 8000
    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
            f"?sslmode={self.postgres_sslmode}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
