"""
Configuration settings for the domain ingestion pipeline.

Uses Pydantic Settings to load environment variables for the record store
connection, the registrar lookup credentials, sampling/batching defaults and
logging. A `.env` file in the working directory is honoured.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("domain_ingest", alias="DB_NAME")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Registrar lookup
    godaddy_base_url: Optional[str] = Field(None, alias="GODADDY_BASE_URL")
    godaddy_api_key: Optional[str] = Field(None, alias="GODADDY_API_KEY")
    godaddy_api_secret: Optional[str] = Field(None, alias="GODADDY_API_SECRET")
    godaddy_timeout_seconds: float = Field(15.0, alias="GODADDY_TIMEOUT_SECONDS")
    lookup_backend: Literal["auto", "godaddy", "mock"] = Field("auto", alias="LOOKUP_BACKEND")

    # Record store
    store_backend: Literal["postgres", "memory"] = Field("postgres", alias="STORE_BACKEND")
    upsert_mode: Literal["two_step", "atomic"] = Field("two_step", alias="UPSERT_MODE")

    # Ingestion defaults
    ingest_accepted_tld: str = Field(".com", alias="INGEST_ACCEPTED_TLD")
    ingest_sample_window: int = Field(200, alias="INGEST_SAMPLE_WINDOW")
    ingest_max_selected: int = Field(20, alias="INGEST_MAX_SELECTED")
    ingest_delete_source: bool = Field(True, alias="INGEST_DELETE_SOURCE")
    lookup_concurrency: int = Field(3, alias="LOOKUP_CONCURRENCY")
    lookup_chunk_delay_seconds: float = Field(1.0, alias="LOOKUP_CHUNK_DELAY_SECONDS")

    # Valuation
    valuation_rules_path: Optional[Path] = Field(None, alias="VALUATION_RULES_PATH")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def has_godaddy_credentials(self) -> bool:
        return bool(self.godaddy_base_url and self.godaddy_api_key and self.godaddy_api_secret)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
