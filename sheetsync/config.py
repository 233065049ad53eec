"""
sheetsync Configuration
=======================
Environment-aware settings using pydantic-settings.
Loads from environment variables or .env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "dev"

    # Google Sheets (service account, read-only)
    google_service_account_email: str = ""
    google_service_account_private_key: str = ""
    google_sheets_api_url: str = "https://sheets.googleapis.com/v4/spreadsheets"

    # Defaults for CLI runs
    google_spreadsheet_id: str = ""
    tenant_id: str = ""

    # Supabase
    supabase_url: str = ""
    supabase_service_key: str = ""

    # Store limits
    batch_size: int = 1000
    page_size: int = 1000
    delete_batch_size: int = 500

    # Source HTTP settings
    max_retries: int = 3
    request_timeout: int = 60
    fetch_workers: int = 8

    # 'tenant' keeps one last-sync row per user, 'global' a single shared row
    sync_metadata_scope: Literal["tenant", "global"] = "tenant"

    @field_validator("google_service_account_private_key")
    @classmethod
    def unescape_private_key(cls, value: str) -> str:
        # Keys pasted into .env files usually carry literal "\n" sequences
        return value.replace("\\n", "\n")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class ConfigurationError(Exception):
    """Required credentials or identifiers are missing; nothing can be synced."""
