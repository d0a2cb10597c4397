"""Bounded ingestion pipeline.

One pipeline instance imports one file:

    IDLE -> STREAMING -> DRAINING -> SETTLED

While streaming, each record is augmented (source field, checksum,
identity) and handed to store.insert as its own task. A semaphore sized
to max_in_flight is acquired before every submission and released when
the write settles, so the number of unsettled writes never exceeds the
cap. Reading stops as soon as any write fails; the writes already in
flight are allowed to settle and the first failure is raised.

The file is read in batches of READ_BATCH_SIZE records on a worker
thread so buffer refills never block the event loop.

With checksum_as_id, an insert rejected because the id already exists
is a deduplicated record, not a failure: it is counted in duplicates.
"""

import asyncio
from enum import Enum
from itertools import islice
from typing import Any, Dict, Optional, Protocol, Set

from surreal_import.logging_config import get_logger
from .checksum import assign_checksum
from .models import IngestOptions, SourceFile
from .source import RecordSource, SourceRecord
from .tracker import ProgressState

logger = get_logger(name=__name__)

# Records pulled from the file per worker-thread hop
READ_BATCH_SIZE = 256

# SurrealDB's rejection of an insert whose record id is taken
DUPLICATE_ID_MESSAGE = "already exists"


class RecordStore(Protocol):
    """The part of the SurrealDB client the importer relies on."""

    async def insert(self, table: str, data: Dict[str, Any]) -> Any:
        ...

    async def query(self, query: str, vars: Optional[Dict[str, Any]] = None) -> Any:
        ...


class PipelineState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    DRAINING = "draining"
    SETTLED = "settled"


class StoreWriteError(Exception):
    """Raised when an insert fails; fatal to the file being imported."""

    def __init__(self, table: str, file_name: str, line_number: int, cause: BaseException):
        self.table = table
        self.file_name = file_name
        self.line_number = line_number
        self.cause = cause
        super().__init__(
            f"Insert into {table} failed for {file_name}:{line_number}: {cause}"
        )


class IngestionPipeline:
    """Streams one SourceFile into a table under a concurrency cap.

    file_state and job_state are owned by the caller; the pipeline only
    increments them. submitted counts writes that settled successfully.
    """

    def __init__(
        self,
        store: RecordStore,
        table: str,
        source_file: SourceFile,
        options: IngestOptions,
        file_state: ProgressState,
        job_state: ProgressState,
        source: Optional[RecordSource] = None,
    ):
        self.store = store
        self.table = table
        self.source_file = source_file
        self.options = options
        self.file_state = file_state
        self.job_state = job_state
        self.source = source or RecordSource(
            source_file.path,
            delimiter=source_file.delimiter,
            chunk_size=options.read_chunk_size,
        )

        self.state = PipelineState.IDLE
        self.outstanding: Set[asyncio.Task] = set()
        self.in_flight = 0
        self.peak_in_flight = 0
        self._slots: Optional[asyncio.Semaphore] = None
        self._failure: Optional[StoreWriteError] = None

    def augment(self, record: SourceRecord) -> Dict[str, Any]:
        """Add the source field and checksum/identity to a record in place."""
        data = record.fields
        if self.options.inject_source_field:
            data[self.options.source_field] = self.source_file.name
        return assign_checksum(data, self.options)

    def is_duplicate(self, error: Exception) -> bool:
        return self.options.checksum_as_id and DUPLICATE_ID_MESSAGE in str(error)

    async def _write(self, line_number: int, data: Dict[str, Any]) -> None:
        try:
            await self.store.insert(self.table, data)
        except Exception as e:
            if self.is_duplicate(e):
                self.file_state.duplicates += 1
                self.job_state.duplicates += 1
                logger.debug(f"Duplicate record at {self.source_file.name}:{line_number}: {e}")
            elif self._failure is None:
                self._failure = StoreWriteError(self.table, self.source_file.name, line_number, e)
                self._failure.__cause__ = e
                logger.error(f"Insert failed at {self.source_file.name}:{line_number}: {e}")
        else:
            self.file_state.submitted += 1
            self.job_state.submitted += 1
        finally:
            self.in_flight -= 1
            self._slots.release()

    def _settle(self, task: asyncio.Task) -> None:
        self.outstanding.discard(task)

    def _submit(self, record: SourceRecord) -> None:
        data = self.augment(record)
        task = asyncio.create_task(self._write(record.line_number, data))
        self.outstanding.add(task)
        task.add_done_callback(self._settle)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)

    async def _stream(self) -> None:
        rows = iter(self.source)
        try:
            while self._failure is None:
                batch = await asyncio.to_thread(list, islice(rows, READ_BATCH_SIZE))
                if not batch:
                    break
                for record in batch:
                    await self._slots.acquire()
                    if self._failure is not None:
                        self._slots.release()
                        break
                    self._submit(record)
                    # let the new write start and surface an immediate failure
                    await asyncio.sleep(0)
                    if self._failure is not None:
                        break
        finally:
            # a cancelled batch read may still be running on its thread
            if not rows.gi_running:
                rows.close()

    async def drain(self) -> None:
        """Wait until every submitted write has settled.

        Loops over fresh snapshots so writes added while waiting are
        awaited too.
        """
        while True:
            pending = [t for t in self.outstanding if not t.done()]
            if not pending:
                break
            await asyncio.gather(*pending, return_exceptions=True)
        self.outstanding.clear()

    async def run(self) -> ProgressState:
        """Import the whole file and return its final ProgressState.

        Raises:
            StoreWriteError: If any insert failed; raised after draining.
            RecordSourceError: If the header row is unusable.
        """
        if self.state is not PipelineState.IDLE:
            raise RuntimeError(f"Pipeline for {self.source_file.name} already ran")

        self._slots = asyncio.Semaphore(self.options.max_in_flight)
        self.state = PipelineState.STREAMING
        logger.debug(
            f"Streaming {self.source_file.name} into {self.table} "
            f"(delimiter={self.source_file.delimiter!r}, max_in_flight={self.options.max_in_flight})"
        )

        try:
            await self._stream()
        finally:
            self.state = PipelineState.DRAINING
            await self.drain()
            self.file_state.skipped += self.source.skipped
            self.job_state.skipped += self.source.skipped
            self.state = PipelineState.SETTLED

        if self._failure is not None:
            raise self._failure

        logger.debug(
            f"Settled {self.source_file.name}: submitted={self.file_state.submitted} "
            f"skipped={self.file_state.skipped} peak_in_flight={self.peak_in_flight}"
        )
        return self.file_state
