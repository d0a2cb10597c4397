"""Value types shared by the ingestion components."""

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from surreal_import.config.settings import Settings

# Declaration order is the tie-break priority for delimiter detection
DELIMITER_CANDIDATES: Tuple[str, ...] = (",", ";", "\t", "|")


class IngestionConfigError(Exception):
    """Raised when import options are inconsistent."""
    pass


@dataclass(frozen=True)
class IndexDefinition:
    """An index declared on every target table before the import."""
    name: str
    fields: str
    unique: bool = False


@dataclass
class SourceFile:
    """One delimited file of the dataset.

    estimated_entry_count is None when pre-counting is disabled; it is
    back-filled from the records read once the file has been ingested.
    """
    path: Path
    delimiter: str = ","
    estimated_entry_count: Optional[int] = None

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class IngestOptions:
    """Validated options consumed by the orchestrator and the pipeline."""
    table_override: Optional[str] = None
    delimiter_override: Optional[str] = None
    delimiter_sample_lines: int = 10
    inject_source_field: bool = True
    source_field: str = "_source"
    compute_checksum: bool = False
    checksum_algorithm: str = "sha256"
    checksum_field: str = "_sha"
    store_checksum_field: bool = True
    checksum_as_id: bool = False
    clear_table_before_insert: bool = False
    max_in_flight: int = 20
    read_chunk_size: int = 512 * 1024
    status_refresh_interval: float = 0.05
    precount_records: bool = True
    bell_between_files: bool = False
    file_extensions: Tuple[str, ...] = (".csv",)
    indexes: Tuple[IndexDefinition, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.checksum_as_id and not self.compute_checksum:
            raise IngestionConfigError(
                "checksum_as_id requires compute_checksum to be enabled"
            )
        if self.compute_checksum:
            if self.checksum_algorithm not in hashlib.algorithms_available:
                raise IngestionConfigError(
                    f"Unknown checksum algorithm: {self.checksum_algorithm!r}"
                )
            if self.checksum_algorithm.startswith("shake_"):
                # shake digests need an explicit length
                raise IngestionConfigError(
                    f"Variable-length algorithm not supported: {self.checksum_algorithm!r}"
                )
        if self.max_in_flight < 1:
            raise IngestionConfigError("max_in_flight must be at least 1")
        if self.read_chunk_size < 1:
            raise IngestionConfigError("read_chunk_size must be at least 1")
        if self.delimiter_sample_lines < 1:
            raise IngestionConfigError("delimiter_sample_lines must be at least 1")
        if self.status_refresh_interval <= 0:
            raise IngestionConfigError("status_refresh_interval must be positive")
        if self.delimiter_override is not None and len(self.delimiter_override) != 1:
            raise IngestionConfigError(
                f"Delimiter must be a single character, got {self.delimiter_override!r}"
            )
        if not self.file_extensions:
            raise IngestionConfigError("At least one file extension is required")

    def table_for(self, source: SourceFile) -> str:
        """Return the target table for a file (override or file stem)."""
        return self.table_override or source.path.stem

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "IngestOptions":
        """Build options from Settings, applying CLI overrides."""
        values = dict(
            table_override=settings.table_override,
            delimiter_override=settings.delimiter_override,
            delimiter_sample_lines=settings.delimiter_sample_lines,
            inject_source_field=settings.inject_source_field,
            source_field=settings.source_field,
            compute_checksum=settings.compute_checksum,
            checksum_algorithm=settings.checksum_algorithm,
            checksum_field=settings.checksum_field,
            store_checksum_field=settings.store_checksum_field,
            checksum_as_id=settings.checksum_as_id,
            clear_table_before_insert=settings.clear_table_before_insert,
            max_in_flight=settings.max_in_flight,
            read_chunk_size=settings.read_chunk_size,
            status_refresh_interval=settings.status_refresh_interval,
            precount_records=settings.precount_records,
            bell_between_files=settings.bell_between_files,
            file_extensions=tuple(settings.file_extensions_list),
            indexes=tuple(
                IndexDefinition(name=i.name, fields=i.fields, unique=i.unique)
                for i in settings.csv_indexes
            ),
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
