"""Ingestion Progress Tracker.

This module keeps counters and timers at job and file scope and renders
the status line shown while a file is being imported. The pipeline owns
the counters; the tracker only reads them.
"""

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from surreal_import.logging_config import get_logger
from .status import format_count, format_duration

logger = get_logger(name=__name__)


class IngestionStatus(str, Enum):
    """Ingestion status values."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ProgressState:
    """Counters and timer for one scope (a file or the whole job).

    submitted only ever grows. target_total stays None while unknown.
    duplicates counts inserts the store rejected as already imported.
    """
    submitted: int = 0
    skipped: int = 0
    duplicates: int = 0
    target_total: Optional[int] = None
    start_time: float = field(default_factory=time.monotonic)
    end_time: Optional[float] = None

    def elapsed(self) -> float:
        """Seconds since start, frozen once stopped."""
        return (self.end_time if self.end_time is not None else time.monotonic()) - self.start_time

    def progress(self) -> Optional[float]:
        """Fraction submitted/target, or None when the target is unknown."""
        if not self.target_total:
            return None
        return self.submitted / self.target_total

    def rate(self) -> float:
        """Submitted records per second."""
        elapsed = self.elapsed()
        if elapsed <= 0:
            return 0.0
        return self.submitted / elapsed

    def eta(self) -> Optional[float]:
        """Linear estimate of the remaining seconds.

        First-order only: noisy early in a file.
        """
        progress = self.progress()
        if not progress:
            return None
        return max(self.elapsed() * (1 / progress - 1), 0.0)

    def stop(self) -> None:
        if self.end_time is None:
            self.end_time = time.monotonic()

    def to_dict(self) -> Dict:
        """Convert state to dictionary for reporting."""
        progress = self.progress()
        return {
            "submitted": self.submitted,
            "skipped": self.skipped,
            "duplicates": self.duplicates,
            "target_total": self.target_total,
            "percentage": progress * 100 if progress is not None else None,
            "elapsed_seconds": self.elapsed(),
            "rate": self.rate(),
        }


class ProgressTracker:
    """Read-only observer over job and file ProgressState.

    Renders the fixed-format status line:
        [job(file)] bar pct submitted/target rows rate/s eta remaining
    followed, while a file is active, by the job scope:
        | job submitted/target pct eta remaining
    """

    def __init__(self, job: ProgressState, bar_width: int = 40):
        self.job = job
        self.bar_width = bar_width
        self.file: Optional[ProgressState] = None
        self.file_name: Optional[str] = None
        self.status = IngestionStatus.PENDING

    def start_file(self, file_name: str, state: ProgressState) -> None:
        self.file_name = file_name
        self.file = state
        self.status = IngestionStatus.RUNNING

    def finish_file(self, status: IngestionStatus = IngestionStatus.COMPLETED) -> None:
        """Stop the file timer and surface any counting discrepancy."""
        self.status = status
        if self.file is None:
            return
        self.file.stop()
        self.check_consistency()

    def check_consistency(self) -> bool:
        """Warn when more records were submitted than were counted."""
        state = self.file
        if state is None or state.target_total is None:
            return True
        if state.submitted > state.target_total:
            logger.warning(
                f"{self.file_name}: submitted {state.submitted} records but pre-count "
                f"found {state.target_total}; the line count is wrong for this file"
            )
            return False
        return True

    def _bar(self, progress: Optional[float]) -> str:
        filled = math.ceil(min(max(progress or 0.0, 0.0), 1.0) * self.bar_width)
        return (
            "[cyan]" + "━" * filled + "[/cyan]"
            + "[bright_black]" + "━" * (self.bar_width - filled) + "[/bright_black]"
        )

    def render(self) -> str:
        """Build the status line for the current file."""
        state = self.file or self.job
        progress = state.progress()
        eta = state.eta()
        pct = f"{progress * 100:.2f}%" if progress is not None else "--.--%"
        line = " ".join([
            f"\\[[yellow]{format_duration(self.job.elapsed())}"
            f"({format_duration(state.elapsed())})[/yellow]]",
            self._bar(progress),
            f"[blue]{pct}[/blue]",
            f"[green]{format_count(state.submitted)}[/green]/"
            f"[cyan]{format_count(state.target_total)}[/cyan] rows",
            f"[red]{int(state.rate())}/s[/red]",
            "eta",
            format_duration(eta) if eta is not None else "--",
        ])
        if self.file is not None:
            line += " " + self._job_segment()
        return line

    def _job_segment(self) -> str:
        progress = self.job.progress()
        eta = self.job.eta()
        pct = f"{progress * 100:.2f}%" if progress is not None else "--.--%"
        return " ".join([
            "| job",
            f"[green]{format_count(self.job.submitted)}[/green]/"
            f"[cyan]{format_count(self.job.target_total)}[/cyan]",
            f"[blue]{pct}[/blue]",
            "eta",
            format_duration(eta) if eta is not None else "--",
        ])

    def file_summary(self) -> str:
        """Final line for a settled file."""
        state = self.file
        if state is None:
            return ""
        progress = state.progress()
        pct = f"{progress * 100:.2f}%" if progress is not None else "n/a"
        line = (
            f"Imported [green]{format_count(state.submitted)}[/green] of "
            f"[cyan]{format_count(state.target_total)}[/cyan] "
            f"[blue]({pct})[/blue] records from \"[cyan]{self.file_name}[/cyan]\" "
            f"in [yellow]{format_duration(state.elapsed())}[/yellow]"
        )
        if state.skipped:
            line += f", skipped [red]{format_count(state.skipped)}[/red] malformed rows"
        if state.duplicates:
            line += f", [yellow]{format_count(state.duplicates)}[/yellow] duplicates"
        return line

    def get_progress(self) -> Dict:
        """Get current progress for reporting."""
        return {
            "status": self.status.value,
            "file_name": self.file_name,
            "file": self.file.to_dict() if self.file else None,
            "job": self.job.to_dict(),
        }
