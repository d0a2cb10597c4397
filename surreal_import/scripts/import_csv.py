"""Import delimited text files into SurrealDB.

Standalone CLI script that loads every CSV file of one directory into
SurrealDB, one table per file (or a single table with --table), showing
a progress line with rate and ETA while each file is imported.

Usage:
    python -m surreal_import.scripts.import_csv
    python -m surreal_import.scripts.import_csv --data-dir ./data --table readings

Connection settings and import options are read from the environment or
.env (see surreal_import.config.settings). Flags override them.

Exit status is 0 when every file was imported and 1 on any failure.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console

# ---------------------------------------------------------------------------
# Logging – configure early so every import below gets the right level
# ---------------------------------------------------------------------------
from surreal_import.logging_config import configure_logging, get_logger

logger = get_logger(name=__name__)

from surreal_import.config.settings import Settings, get_settings  # noqa: E402
from surreal_import.config.surrealdb import (  # noqa: E402
    SurrealDBConnectionError,
    get_surrealdb_connection,
)
from surreal_import.pipelines.ingest import (  # noqa: E402
    ConsoleStatusSink,
    FileIngestionError,
    IngestionConfigError,
    IngestionResult,
    IngestOptions,
    format_duration,
    run_import,
)


# ---------------------------------------------------------------------------
# Main orchestration
# ---------------------------------------------------------------------------

async def run(settings: Settings, options: IngestOptions, data_dir: Path, console: Console) -> IngestionResult:
    """Connect, import, disconnect."""
    console.print(f"[bright_black]Connecting to Surreal at {settings.surrealdb_url}…[/bright_black]")
    async with get_surrealdb_connection(settings) as db:
        with ConsoleStatusSink(console) as sink:
            return await run_import(db, data_dir, options, sink=sink, console=console)


def print_failure(console: Console, exc: FileIngestionError) -> None:
    file_state = exc.file_state
    job_state = exc.job_state
    pct = file_state.progress()
    console.print(
        f"Failed to complete import of [red]{exc.source_file.name}[/red]: inserted "
        f"[green]{file_state.submitted:,}[/green] rows of "
        f"[cyan]{file_state.target_total if file_state.target_total is not None else '?'}[/cyan] total"
        + (f" [blue]{pct * 100:.2f}%[/blue]" if pct is not None else "")
        + f" in [yellow]{format_duration(file_state.elapsed())}[/yellow]"
    )
    console.print(
        f"Bulk insertion job [red]FAILED[/red]. Inserted [green]{job_state.submitted:,}[/green] "
        f"records in [yellow]{format_duration(job_state.elapsed())}[/yellow]"
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m surreal_import.scripts.import_csv",
        description="Bulk-load delimited text files into SurrealDB.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory containing the files to import. Defaults to DATA_DIR from .env.",
    )
    parser.add_argument(
        "--table",
        type=str,
        default=None,
        help="Import every file into this table instead of one table per file.",
    )
    parser.add_argument(
        "--max-in-flight",
        type=int,
        default=None,
        help="Maximum number of unsettled inserts per file.",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        default=None,
        help="Delete existing rows of each target table before importing.",
    )
    parser.add_argument(
        "--no-precount",
        action="store_true",
        default=False,
        help="Skip the record pre-scan (no percentage or ETA).",
    )
    parser.add_argument(
        "--checksum-as-id",
        action="store_true",
        default=False,
        help="Compute a record checksum and use it as the record id.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable DEBUG-level logging.",
    )
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace, settings: Settings) -> IngestOptions:
    overrides = {
        "table_override": args.table,
        "max_in_flight": args.max_in_flight,
        "clear_table_before_insert": args.clear,
    }
    if args.no_precount:
        overrides["precount_records"] = False
    if args.checksum_as_id:
        overrides["compute_checksum"] = True
        overrides["checksum_as_id"] = True
    return IngestOptions.from_settings(settings, **overrides)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    if args.verbose:
        os.environ["LOG_LEVEL"] = "DEBUG"
    configure_logging()
    console = Console(stderr=True)

    try:
        settings = get_settings()
        options = build_options(args, settings)
    except (ValidationError, IngestionConfigError) as exc:
        logger.error("Invalid configuration: {}", exc)
        sys.exit(1)

    data_dir = (args.data_dir or settings.data_dir).resolve()
    if not data_dir.is_dir():
        logger.error("Data directory does not exist: {}", data_dir)
        sys.exit(1)

    logger.info("Starting import from {}", data_dir)

    try:
        result = asyncio.run(run(settings, options, data_dir, console))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(130)
    except SurrealDBConnectionError as exc:
        logger.error("Could not open a SurrealDB session: {}", exc)
        sys.exit(1)
    except FileIngestionError as exc:
        logger.error("Import aborted: {}", exc)
        print_failure(console, exc)
        sys.exit(1)
    except Exception as exc:
        logger.error("Import failed: {}", exc)
        sys.exit(1)

    console.print(f"[green]{result.message}[/green]")


if __name__ == "__main__":
    main()
