"""Record pre-scan: counts line terminators to size the progress bar.

A CRLF pair counts as one terminator, as does a lone CR or a lone LF.
Callers subtract one for the header line.
"""

import asyncio
import codecs
from pathlib import Path
from typing import Optional

from surreal_import.logging_config import get_logger
from .status import StatusSink, StatusTicker, format_count

logger = get_logger(name=__name__)

DEFAULT_CHUNK_SIZE = 512 * 1024


class LineCounter:
    """Streaming line-terminator counter with O(chunk) memory.

    bytes_read and lines are readable while count() runs in a worker
    thread, which is what the status ticker displays.
    """

    def __init__(self, path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.path = path
        self.chunk_size = chunk_size
        self.bytes_read = 0
        self.lines = 0
        self.total_bytes = 0
        self.unterminated_tail = False

    def count(self) -> int:
        """Scan the whole file and return its terminator count."""
        self.total_bytes = self.path.stat().st_size
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending_cr = False

        with open(self.path, "rb") as f:
            while True:
                chunk = f.read(self.chunk_size)
                if not chunk:
                    break
                self.bytes_read += len(chunk)
                text = decoder.decode(chunk)
                if not text:
                    continue
                # CRLF split across chunks: the CR was already counted
                if pending_cr and text[0] == "\n":
                    self.lines -= 1
                self.lines += text.count("\n") + text.count("\r") - text.count("\r\n")
                pending_cr = text[-1] == "\r"
                self.unterminated_tail = text[-1] not in "\r\n"

            tail = decoder.decode(b"", final=True)
            self.lines += tail.count("\n") + tail.count("\r") - tail.count("\r\n")
            if tail:
                self.unterminated_tail = True

        return self.lines

    def record_estimate(self) -> int:
        """Data rows implied by the scan: lines minus the header row.

        A last line without a terminator still holds a row.
        """
        lines = self.lines + (1 if self.unterminated_tail else 0)
        return max(lines - 1, 0)

    def describe(self) -> str:
        pct = (self.bytes_read / self.total_bytes * 100) if self.total_bytes else 0.0
        return (
            f"Counting records in [cyan]{self.path.name}[/cyan] "
            f"[green]{format_count(self.lines)}[/green] lines "
            f"[blue]{pct:.1f}%[/blue]"
        )


def count_lines(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Return the number of line terminators in a file."""
    return LineCounter(path, chunk_size).count()


async def scan_file(
    path: Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    sink: Optional[StatusSink] = None,
    refresh_interval: float = 0.05,
) -> LineCounter:
    """Count terminators off the event loop, refreshing sink on a timer.

    The scan runs in a worker thread; the ticker only reads its counters,
    so a slow sink never slows the scan.
    """
    counter = LineCounter(path, chunk_size)
    if sink is None:
        await asyncio.to_thread(counter.count)
    else:
        async with StatusTicker(sink, counter.describe, refresh_interval):
            await asyncio.to_thread(counter.count)
    logger.debug(f"Counted {counter.lines} line terminators in {path.name}")
    return counter


async def count_lines_async(
    path: Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    sink: Optional[StatusSink] = None,
    refresh_interval: float = 0.05,
) -> int:
    counter = await scan_file(path, chunk_size, sink, refresh_interval)
    return counter.lines
