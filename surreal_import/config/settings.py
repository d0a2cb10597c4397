"""Unified configuration settings for the importer.

This module provides a centralized Settings class using Pydantic BaseSettings
for loading and validating all environment variables.

All configuration should be accessed through this module:
    from surreal_import.config.settings import get_settings
    settings = get_settings()
"""

from pathlib import Path
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> List[str]:
    """Split a comma-separated string into a list."""
    return [item.strip() for item in value.split(",") if item.strip()]


class IndexSetting(BaseModel):
    """One index declaration as read from CSV_INDEXES."""

    name: str
    fields: str
    unique: bool = False


class Settings(BaseSettings):
    """Importer settings loaded from environment variables.

    Uses pydantic BaseSettings to automatically load from .env file
    and validate configuration values.

    Environment variables can be set in .env file or system environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==================== SurrealDB Configuration ====================
    surrealdb_url: str = Field(
        default="ws://127.0.0.1:8000/rpc",
        description="SurrealDB WebSocket URL"
    )
    surrealdb_namespace: str = Field(
        default="test",
        description="SurrealDB namespace"
    )
    surrealdb_database: str = Field(
        default="test",
        description="SurrealDB database name"
    )
    surrealdb_user: str = Field(
        default="root",
        description="SurrealDB username"
    )
    surrealdb_pass: str = Field(
        default="root",
        description="SurrealDB password"
    )

    # ==================== Source Files ====================
    data_dir: Path = Field(
        default=None,
        validate_default=True,
        description="Directory scanned (non-recursively) for delimited files"
    )
    file_extensions: str = Field(
        default=".csv",
        description="Comma-separated list of recognized file extensions"
    )
    csv_delimiter: str = Field(
        default="",
        description="Fixed field delimiter; empty means auto-detect per file"
    )
    delimiter_sample_lines: int = Field(
        default=10,
        description="Number of leading lines inspected by the delimiter detector"
    )

    # ==================== Target Tables ====================
    csv_import_tablename: str = Field(
        default="",
        description="Target table for every file; empty means one table per file"
    )
    clear_table_before_insert: bool = Field(
        default=False,
        description="DELETE all rows of the target table before importing a file"
    )
    csv_indexes: List[IndexSetting] = Field(
        default_factory=list,
        description="JSON list of {name, fields, unique} index declarations"
    )

    # ==================== Record Augmentation ====================
    inject_source_field: bool = Field(
        default=True,
        description="Add the originating file name to every record"
    )
    source_field: str = Field(
        default="_source",
        description="Field name holding the originating file name"
    )
    compute_checksum: bool = Field(
        default=False,
        description="Compute a content hash for every record"
    )
    checksum_algorithm: str = Field(
        default="sha256",
        description="hashlib algorithm used for the record checksum"
    )
    checksum_field: str = Field(
        default="_sha",
        description="Field name holding the record checksum"
    )
    store_checksum_field: bool = Field(
        default=True,
        description="Embed the checksum as a visible field"
    )
    checksum_as_id: bool = Field(
        default=False,
        description="Use the checksum as the record id (deduplicates re-imports)"
    )

    # ==================== Throughput & Display ====================
    max_in_flight: int = Field(
        default=20,
        description="Maximum number of unsettled inserts per file"
    )
    read_chunk_size: int = Field(
        default=512 * 1024,
        description="Read buffer size in bytes"
    )
    status_refresh_interval: float = Field(
        default=0.05,
        description="Seconds between status line refreshes"
    )
    precount_records: bool = Field(
        default=True,
        description="Count records of every file before inserting"
    )
    bell_between_files: bool = Field(
        default=True,
        description="Ring the terminal bell after each imported file"
    )

    @field_validator("data_dir", mode="before")
    @classmethod
    def set_default_data_dir(cls, v):
        """Default to ./data relative to the working directory."""
        if v is None or v == "":
            return Path("data")
        return Path(v)

    @field_validator("checksum_algorithm")
    @classmethod
    def normalize_algorithm(cls, v: str) -> str:
        return v.strip().lower()

    # ==================== Computed Properties ====================

    @property
    def file_extensions_list(self) -> List[str]:
        """Get recognized extensions as a list."""
        return _split_csv(self.file_extensions)

    @property
    def table_override(self) -> Optional[str]:
        return self.csv_import_tablename or None

    @property
    def delimiter_override(self) -> Optional[str]:
        # "\t" in a .env file arrives as a literal backslash-t
        if self.csv_delimiter == "\\t":
            return "\t"
        return self.csv_delimiter or None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern).

    Returns:
        Settings instance loaded from environment variables.

    Example:
        from surreal_import.config.settings import get_settings

        settings = get_settings()
        print(settings.surrealdb_url)
    """
    return Settings()
