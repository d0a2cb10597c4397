"""Content checksum and checksum-as-identity assignment.

Records are serialized with orjson in insertion (column) order. Two
records holding the same values under a different field order hash
differently; column order is part of the content.
"""

import hashlib
from typing import Any, Dict

import orjson

from .models import IngestOptions

RECORD_ID_FIELD = "id"


def record_checksum(record: Dict[str, Any], algorithm: str = "sha256") -> str:
    """Return the hex digest of the record's canonical JSON form."""
    payload = orjson.dumps(record)
    return hashlib.new(algorithm, payload).hexdigest()


def assign_checksum(record: Dict[str, Any], options: IngestOptions) -> Dict[str, Any]:
    """Embed the checksum and/or use it as the record id, in place.

    The digest covers the record as augmented so far and is computed
    before either field is written, so it never hashes itself.
    """
    if not options.compute_checksum:
        return record

    digest = record_checksum(record, options.checksum_algorithm)
    if options.store_checksum_field:
        record[options.checksum_field] = digest
    if options.checksum_as_id:
        record[RECORD_ID_FIELD] = digest
    return record
