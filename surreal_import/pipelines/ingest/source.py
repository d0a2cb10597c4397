"""Record source: lazy, finite, non-restartable stream of CSV records."""

import csv
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from surreal_import.logging_config import get_logger

logger = get_logger(name=__name__)

_UNDERSCORE_WORD = re.compile(r"_([a-z])")

# Stands in for bytes that are not valid UTF-8
REPLACEMENT_CHAR = "\ufffd"


class RecordSourceError(Exception):
    """Raised when a file's header cannot be turned into field names."""
    pass


def normalize_header(name: str) -> str:
    """Lower-case a column name and camel-case underscore-joined words.

    Example: "PARAMETER_DESC" -> "parameterDesc"
    """
    return _UNDERSCORE_WORD.sub(lambda m: m.group(1).upper(), name.strip().lower())


@dataclass
class SourceRecord:
    """A parsed row and the line it started on."""
    line_number: int
    fields: Dict[str, str]


class RecordSource:
    """Reads a delimited file row by row.

    The header row provides the field names. Rows whose field count does
    not match the header, and rows the tokenizer rejects, are skipped and
    counted. Bytes that are not valid UTF-8 decode as U+FFFD; such rows
    are kept and counted in replaced. Pulling from the iterator is the
    only flow control: nothing is read ahead of the consumer beyond the
    read buffer.

    Usage:
        source = RecordSource(path, delimiter=";")
        for record in source:
            ...
        print(source.read, source.skipped)
    """

    def __init__(self, path: Path, delimiter: str = ",", chunk_size: int = 512 * 1024):
        self.path = path
        self.delimiter = delimiter
        self.chunk_size = chunk_size
        self.headers: Optional[List[str]] = None
        self.read = 0
        self.skipped = 0
        self.replaced = 0
        self._consumed = False

    def _read_headers(self, reader) -> List[str]:
        try:
            raw = next(reader)
        except StopIteration:
            raise RecordSourceError(f"{self.path.name} is empty, no header row")
        except csv.Error as e:
            raise RecordSourceError(f"Unreadable header in {self.path.name}: {e}") from e

        headers = [normalize_header(h) for h in raw]
        duplicates = sorted({h for h in headers if headers.count(h) > 1})
        if duplicates:
            raise RecordSourceError(
                f"Duplicate column names in {self.path.name}: {', '.join(duplicates)}"
            )
        return headers

    def __iter__(self) -> Iterator[SourceRecord]:
        if self._consumed:
            raise RecordSourceError(f"Record source for {self.path.name} was already consumed")
        self._consumed = True

        with open(
            self.path,
            "r",
            encoding="utf-8-sig",
            errors="replace",
            newline="",
            buffering=self.chunk_size,
        ) as f:
            reader = csv.reader(f, delimiter=self.delimiter)
            self.headers = self._read_headers(reader)
            width = len(self.headers)

            while True:
                line_number = reader.line_num + 1
                try:
                    row = next(reader)
                except StopIteration:
                    break
                except csv.Error as e:
                    self.skipped += 1
                    logger.warning(f"Skipping malformed row at {self.path.name}:{line_number}: {e}")
                    continue

                if not row:
                    continue
                if len(row) != width:
                    self.skipped += 1
                    logger.warning(
                        f"Skipping row at {self.path.name}:{line_number}: "
                        f"expected {width} fields, got {len(row)}"
                    )
                    continue

                if REPLACEMENT_CHAR in "".join(row):
                    self.replaced += 1
                    logger.warning(
                        f"Undecodable bytes replaced at {self.path.name}:{line_number}"
                    )

                self.read += 1
                yield SourceRecord(line_number, dict(zip(self.headers, row)))
