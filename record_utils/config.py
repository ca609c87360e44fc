"""
Configuration settings for record-utils.

Uses Pydantic Settings to load environment variables for the record store
connection, logging, and the platform conventions the accessor relies on
(unique-key field, business-key field, well-known field names).
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("record_utils", alias="DB_NAME")
    db_schema: str = Field("public", alias="DB_SCHEMA")
    db_statement_timeout_ms: int = Field(5_000, alias="DB_STATEMENT_TIMEOUT_MS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Record store backend
    store_backend: str = Field("postgres", alias="STORE_BACKEND")
    store_fixture_path: Optional[str] = Field(None, alias="STORE_FIXTURE_PATH")

    # Record conventions
    key_field: str = Field("sys_id", alias="RECORD_KEY_FIELD")
    key_length: int = Field(32, alias="RECORD_KEY_LENGTH")
    business_key_field: str = Field("number", alias="RECORD_BUSINESS_KEY_FIELD")
    short_text_field: str = Field("short_description", alias="RECORD_SHORT_TEXT_FIELD")
    display_fields_csv: str = Field("number,name,user_name", alias="RECORD_DISPLAY_FIELDS")

    # User interactions
    interaction_table: str = Field("interaction", alias="INTERACTION_TABLE")
    interaction_user_field: str = Field("opened_for", alias="INTERACTION_USER_FIELD")
    user_table: str = Field("sys_user", alias="USER_TABLE")
    user_key_field: str = Field("user_name", alias="USER_KEY_FIELD")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def display_fields(self) -> List[str]:
        """Ordered candidate columns for a record's overall display value."""
        return [part.strip() for part in self.display_fields_csv.split(",") if part.strip()]

    @field_validator("store_backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        backend = value.strip().lower()
        if backend not in ("postgres", "memory"):
            raise ValueError(f"Unknown store backend '{value}'. Expected 'postgres' or 'memory'.")
        return backend


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
