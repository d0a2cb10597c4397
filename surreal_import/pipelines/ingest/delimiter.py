"""Delimiter fingerprinting from a sample of leading lines."""

from collections import Counter
from itertools import islice
from pathlib import Path
from typing import Iterable, Sequence

from surreal_import.logging_config import get_logger
from .models import DELIMITER_CANDIDATES

logger = get_logger(name=__name__)

DEFAULT_SAMPLE_LINES = 10


def pick_line_delimiter(line: str, candidates: Sequence[str] = DELIMITER_CANDIDATES) -> str:
    """Return the candidate occurring most often in a line.

    max() keeps the first of equal counts, so ties resolve in declaration
    order. A line with no candidate at all resolves to the first one.
    """
    return max(candidates, key=line.count)


def detect_from_lines(lines: Iterable[str], candidates: Sequence[str] = DELIMITER_CANDIDATES) -> str:
    """Return the mode of the per-line picks, ties broken by first seen."""
    votes = Counter(pick_line_delimiter(line, candidates) for line in lines)
    if not votes:
        return candidates[0]
    # most_common is stable, so equal counts keep insertion order
    return votes.most_common(1)[0][0]


def detect_delimiter(path: Path, sample_lines: int = DEFAULT_SAMPLE_LINES) -> str:
    """Infer the field separator of a delimited file.

    Reads at most sample_lines lines. Universal newline mode normalizes
    CRLF and LF endings. Open errors propagate to the caller.
    """
    with open(path, "r", encoding="utf-8-sig", errors="replace") as f:
        sample = list(islice(f, sample_lines))

    delimiter = detect_from_lines(sample)
    logger.debug(f"Detected delimiter {delimiter!r} in {path.name} from {len(sample)} lines")
    return delimiter
