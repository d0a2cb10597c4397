"""Bulk CSV import orchestration.

Finds the delimited files of one directory, plans them (delimiter and
record count), then imports them one file at a time. Concurrency only
exists inside a file's record stream. The first file that fails aborts
the whole job after its partial counts have been logged.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from rich.console import Console

from surreal_import.logging_config import get_logger
from surreal_import.pipelines.schema.setup import prepare_table
from .counter import scan_file
from .delimiter import detect_delimiter
from .models import IngestOptions, SourceFile
from .pipeline import IngestionPipeline, RecordStore
from .status import NullStatusSink, StatusSink, StatusTicker, format_count, format_duration
from .tracker import IngestionStatus, ProgressState, ProgressTracker

logger = get_logger(name=__name__)


class FileIngestionError(Exception):
    """Raised when a file could not be imported; aborts the job.

    Carries the partial counts reached for the file and for the job.
    """

    def __init__(self, source_file: SourceFile, file_state: ProgressState, job_state: ProgressState, cause: BaseException):
        self.source_file = source_file
        self.file_state = file_state
        self.job_state = job_state
        self.cause = cause
        super().__init__(f"Failed to import {source_file.name}: {cause}")


@dataclass
class FileResult:
    """Outcome of one imported file."""
    file_name: str
    table: str
    delimiter: str
    state: ProgressState

    def to_dict(self) -> dict:
        return {
            "file_name": self.file_name,
            "table": self.table,
            "delimiter": self.delimiter,
            **self.state.to_dict(),
        }


@dataclass
class IngestionResult:
    """Result of an import job."""
    success: bool
    message: str
    job: ProgressState
    files: List[FileResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "job": self.job.to_dict(),
            "files": [f.to_dict() for f in self.files],
        }


@dataclass
class JobContext:
    """State owned by one job invocation and threaded into each file."""
    options: IngestOptions
    sink: StatusSink
    console: Console
    job: ProgressState
    tracker: ProgressTracker
    files: List[SourceFile] = field(default_factory=list)
    results: List[FileResult] = field(default_factory=list)


def discover_source_files(directory: Path, extensions: Iterable[str]) -> List[Path]:
    """List files in directory whose extension is recognized.

    Not recursive. Sorted by name so runs are repeatable.
    """
    if not directory.is_dir():
        raise FileNotFoundError(f"Data directory not found: {directory}")
    wanted = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions}
    return sorted(
        (p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in wanted),
        key=lambda p: p.name,
    )


async def plan_dataset(
    paths: List[Path],
    options: IngestOptions,
    sink: Optional[StatusSink] = None,
) -> List[SourceFile]:
    """Build the Dataset: delimiter and (optionally) record count per file.

    Files are scanned one after another to bound peak resource use. Any
    read failure propagates before a single write is attempted.
    """
    dataset: List[SourceFile] = []
    for path in paths:
        delimiter = options.delimiter_override or detect_delimiter(path, options.delimiter_sample_lines)
        source_file = SourceFile(path=path, delimiter=delimiter)

        if options.precount_records:
            counter = await scan_file(
                path,
                chunk_size=options.read_chunk_size,
                sink=sink,
                refresh_interval=options.status_refresh_interval,
            )
            source_file.estimated_entry_count = counter.record_estimate()
            logger.info(
                f"Found {format_count(source_file.estimated_entry_count)} records in {path.name} "
                f"(delimiter={delimiter!r})"
            )
        dataset.append(source_file)
    return dataset


def _job_target(dataset: List[SourceFile]) -> Optional[int]:
    counts = [f.estimated_entry_count for f in dataset]
    if any(c is None for c in counts):
        return None
    return sum(counts)


async def ingest_file(db: RecordStore, source_file: SourceFile, ctx: JobContext) -> FileResult:
    """Set up the target table and run the pipeline for one file.

    Raises:
        FileIngestionError: On any failure, after logging partial counts.
    """
    options = ctx.options
    table = options.table_for(source_file)
    file_state = ProgressState(target_total=source_file.estimated_entry_count)
    ctx.tracker.start_file(source_file.name, file_state)
    logger.info(f"Importing {source_file.name} into table {table}")

    pipeline = IngestionPipeline(db, table, source_file, options, file_state, ctx.job)
    try:
        await prepare_table(db, table, options.indexes, clear=options.clear_table_before_insert)
        async with StatusTicker(ctx.sink, ctx.tracker.render, options.status_refresh_interval):
            await pipeline.run()
    except Exception as e:
        ctx.tracker.finish_file(IngestionStatus.FAILED)
        logger.error(
            f"Failed to complete import of {source_file.name}: inserted "
            f"{format_count(file_state.submitted)} of {format_count(file_state.target_total)} rows "
            f"in {format_duration(file_state.elapsed())}; job total "
            f"{format_count(ctx.job.submitted)}"
        )
        raise FileIngestionError(source_file, file_state, ctx.job, e) from e

    if source_file.estimated_entry_count is None:
        source_file.estimated_entry_count = pipeline.source.read + pipeline.source.skipped
    ctx.tracker.finish_file(IngestionStatus.COMPLETED)
    ctx.console.print(ctx.tracker.file_summary())
    if file_state.target_total is not None and file_state.submitted < file_state.target_total:
        logger.info(
            f"{source_file.name}: {file_state.target_total - file_state.submitted} counted lines "
            f"were not imported ({file_state.skipped} malformed, "
            f"{file_state.duplicates} duplicates, rest blank)"
        )

    result = FileResult(source_file.name, table, source_file.delimiter, file_state)
    ctx.results.append(result)
    return result


async def run_import(
    db: RecordStore,
    data_dir: Path,
    options: IngestOptions,
    sink: Optional[StatusSink] = None,
    console: Optional[Console] = None,
) -> IngestionResult:
    """Import every recognized file of data_dir into SurrealDB.

    Args:
        db: Connected SurrealDB client.
        data_dir: Directory holding the delimited files.
        options: Validated import options.
        sink: Receives the status line; defaults to discarding it.
        console: Where per-file summaries are printed.

    Returns:
        IngestionResult with per-file and job counts.

    Raises:
        FileIngestionError: The first file that failed; earlier files
            stay imported.
    """
    sink = sink or NullStatusSink()
    console = console or Console(stderr=True)
    job = ProgressState()
    ctx = JobContext(
        options=options,
        sink=sink,
        console=console,
        job=job,
        tracker=ProgressTracker(job),
    )

    logger.info(f"Finding files in {data_dir}")
    paths = discover_source_files(data_dir, options.file_extensions)
    logger.info(f"Found {len(paths)} file(s) with extension(s) {', '.join(options.file_extensions)}")
    if not paths:
        job.stop()
        return IngestionResult(success=True, message="No files to import", job=job)

    ctx.files = await plan_dataset(paths, options, sink)
    job.target_total = _job_target(ctx.files)
    if job.target_total is not None:
        logger.info(f"Job total: {format_count(job.target_total)} records in {len(ctx.files)} file(s)")

    for source_file in ctx.files:
        await ingest_file(db, source_file, ctx)
        if options.bell_between_files:
            console.bell()

    job.stop()
    if job.target_total is None:
        job.target_total = _job_target(ctx.files)

    message = (
        f"Imported {format_count(job.submitted)} records from {len(ctx.results)} file(s) "
        f"in {format_duration(job.elapsed())}"
    )
    if job.skipped:
        message += f", skipped {format_count(job.skipped)} malformed rows"
    if job.duplicates:
        message += f", {format_count(job.duplicates)} duplicates already imported"
    logger.info(message)
    return IngestionResult(success=True, message=message, job=job, files=ctx.results)
