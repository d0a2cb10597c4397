"""Status sinks and the periodic refresh task.

The sink is a single mutable text field. The ticker re-renders it on a
timer, so rendering cost is independent of the ingestion rate.
"""

import asyncio
from typing import Callable, List, Optional, Protocol

from rich.console import Console
from rich.status import Status

from surreal_import.logging_config import get_logger

logger = get_logger(name=__name__)


def format_duration(seconds: float) -> str:
    """Render a duration as "[Hh ]Mm S.ts", e.g. "1h 2m 3.4s"."""
    if seconds < 0:
        seconds = 0.0
    millis = int(seconds * 1000)
    tenths = (millis % 1000) // 100
    secs = (millis // 1000) % 60
    minutes = (millis // 60_000) % 60
    hours = millis // 3_600_000
    prefix = f"{hours}h " if hours else ""
    return f"{prefix}{minutes}m {secs}.{tenths}s"


def format_count(value: Optional[int]) -> str:
    if value is None:
        return "?"
    return f"{value:,}"


class StatusSink(Protocol):
    """Anything that accepts status text."""

    def update(self, text: str) -> None:
        ...


class NullStatusSink:
    """Discards status text (non-interactive runs)."""

    def update(self, text: str) -> None:
        pass


class RecordingStatusSink:
    """Keeps every rendered status line; used by tests."""

    def __init__(self):
        self.lines: List[str] = []

    def update(self, text: str) -> None:
        self.lines.append(text)

    @property
    def last(self) -> Optional[str]:
        return self.lines[-1] if self.lines else None


class ConsoleStatusSink:
    """Spinner line on a rich Console.

    Usage:
        with ConsoleStatusSink(console) as sink:
            sink.update("working")
    """

    def __init__(self, console: Optional[Console] = None, spinner: str = "dots"):
        self.console = console or Console()
        self.spinner = spinner
        self._status: Optional[Status] = None

    def __enter__(self):
        self._status = self.console.status("", spinner=self.spinner)
        self._status.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def update(self, text: str) -> None:
        if self._status is not None:
            self._status.update(text)

    def stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


class StatusTicker:
    """Scheduled task pushing render() into a sink every interval seconds.

    Used as an async context manager; leaving the block cancels the task
    and pushes one last render so the sink shows final counts.
    """

    def __init__(self, sink: StatusSink, render: Callable[[], str], interval: float = 0.05):
        self.sink = sink
        self.render = render
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    async def _run(self) -> None:
        while True:
            self.refresh()
            await asyncio.sleep(self.interval)

    def refresh(self) -> None:
        try:
            self.sink.update(self.render())
        except Exception as e:
            # cosmetic only, never allowed to break ingestion
            logger.debug(f"Status refresh failed: {e}")

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.refresh()

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
