"""Shared fixtures: temporary CSV files, an in-memory store, log capture."""

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from loguru import logger

from surreal_import.pipelines.ingest import RecordingStatusSink


class FakeStore:
    """In-memory stand-in for the SurrealDB client.

    latency: seconds (or a callable of the attempt number) each insert
        waits before settling.
    fail_on: predicate (attempt, data) -> bool; matching inserts raise
        before any waiting.
    unique_ids: reject an insert whose "id" was already taken, the way
        SurrealDB does.
    """

    def __init__(
        self,
        latency: Any = 0.0,
        fail_on: Optional[Callable[[int, Dict[str, Any]], bool]] = None,
        fail_query: Optional[str] = None,
        unique_ids: bool = False,
    ):
        self.latency = latency
        self.fail_on = fail_on
        self.fail_query = fail_query
        self.unique_ids = unique_ids
        self.taken_ids: set = set()
        self.inserted: List[Tuple[str, Dict[str, Any]]] = []
        self.settle_order: List[int] = []
        self.queries: List[str] = []
        self.attempts = 0
        self.in_flight = 0
        self.peak_in_flight = 0

    async def insert(self, table: str, data: Dict[str, Any]) -> Any:
        self.attempts += 1
        attempt = self.attempts
        if self.fail_on is not None and self.fail_on(attempt, data):
            raise RuntimeError(f"insert rejected (attempt {attempt})")
        if self.unique_ids and "id" in data:
            if data["id"] in self.taken_ids:
                raise RuntimeError(f"Database record `{table}:{data['id']}` already exists")
            self.taken_ids.add(data["id"])

        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            delay = self.latency(attempt) if callable(self.latency) else self.latency
            await asyncio.sleep(delay)
            self.inserted.append((table, dict(data)))
            self.settle_order.append(attempt)
            return [data]
        finally:
            self.in_flight -= 1

    async def query(self, query: str, vars: Optional[Dict[str, Any]] = None) -> Any:
        if self.fail_query is not None and self.fail_query in query:
            raise RuntimeError(f"query rejected: {query}")
        self.queries.append(query)
        return []

    def ids(self) -> List[Any]:
        return [data.get("id") for _, data in self.inserted]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def status_sink():
    return RecordingStatusSink()


@pytest.fixture
def write_csv(tmp_path: Path):
    """Write text to a file under tmp_path and return its path."""

    def _write(name: str, content: str, newline: str = "") -> Path:
        path = tmp_path / name
        with open(path, "w", encoding="utf-8", newline=newline) as f:
            f.write(content)
        return path

    return _write


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages: List[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def store_factory():
    """Build a FakeStore with custom latency or failures."""
    return FakeStore
