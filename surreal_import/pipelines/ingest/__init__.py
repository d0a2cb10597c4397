"""Streaming CSV ingestion into SurrealDB.

Main Functions:
- run_import: Import every delimited file of a directory
- ingest_file: Import a single planned file
- plan_dataset: Detect delimiters and pre-count records

Components:
- delimiter: Delimiter fingerprinting from leading lines
- counter: Line-terminator pre-scan for progress denominators
- source: Header-driven record source with malformed-row accounting
- checksum: Content hash and checksum-as-identity
- pipeline: Bounded ingestion pipeline (max_in_flight unsettled writes)
- tracker: Job/file progress state and status line rendering
- status: Status sinks and the periodic refresh task
- service: Orchestration over the file set

Usage:
    from surreal_import.pipelines.ingest import IngestOptions, run_import

    async with get_surrealdb_connection() as db:
        result = await run_import(db, Path("data"), IngestOptions())

    print(result.message)
"""

from .models import (
    DELIMITER_CANDIDATES,
    IndexDefinition,
    IngestOptions,
    IngestionConfigError,
    SourceFile,
)
from .delimiter import detect_delimiter, detect_from_lines
from .counter import LineCounter, count_lines, count_lines_async, scan_file
from .checksum import assign_checksum, record_checksum
from .source import RecordSource, RecordSourceError, SourceRecord, normalize_header
from .tracker import IngestionStatus, ProgressState, ProgressTracker
from .status import (
    ConsoleStatusSink,
    NullStatusSink,
    RecordingStatusSink,
    StatusSink,
    StatusTicker,
    format_duration,
)
from .pipeline import IngestionPipeline, PipelineState, RecordStore, StoreWriteError
from .service import (
    FileIngestionError,
    FileResult,
    IngestionResult,
    discover_source_files,
    ingest_file,
    plan_dataset,
    run_import,
)

__all__ = [
    # Main service functions
    "run_import",
    "ingest_file",
    "plan_dataset",
    "discover_source_files",
    "IngestionResult",
    "FileResult",
    "FileIngestionError",
    # Models
    "DELIMITER_CANDIDATES",
    "IndexDefinition",
    "IngestOptions",
    "IngestionConfigError",
    "SourceFile",
    # Planning
    "detect_delimiter",
    "detect_from_lines",
    "LineCounter",
    "count_lines",
    "count_lines_async",
    "scan_file",
    # Records
    "RecordSource",
    "RecordSourceError",
    "SourceRecord",
    "normalize_header",
    "assign_checksum",
    "record_checksum",
    # Pipeline
    "IngestionPipeline",
    "PipelineState",
    "RecordStore",
    "StoreWriteError",
    # Progress
    "IngestionStatus",
    "ProgressState",
    "ProgressTracker",
    "ConsoleStatusSink",
    "NullStatusSink",
    "RecordingStatusSink",
    "StatusSink",
    "StatusTicker",
    "format_duration",
]
