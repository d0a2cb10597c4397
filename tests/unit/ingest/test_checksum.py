import hashlib

import orjson
import pytest

from surreal_import.pipelines.ingest import IngestOptions, IngestionConfigError
from surreal_import.pipelines.ingest.checksum import assign_checksum, record_checksum


@pytest.mark.parametrize("algorithm", ["md5", "sha1", "sha256", "sha512", "blake2b", "sha3_256"])
def test_checksum_is_deterministic(algorithm):
    first = {"name": "pump", "value": "12.5", "_source": "a.csv"}
    second = {"name": "pump", "value": "12.5", "_source": "a.csv"}
    assert record_checksum(first, algorithm) == record_checksum(second, algorithm)
    assert record_checksum(first, algorithm) == record_checksum(first, algorithm)


def test_checksum_matches_hashlib_over_json():
    record = {"a": "1", "b": "2"}
    expected = hashlib.sha256(orjson.dumps(record)).hexdigest()
    assert record_checksum(record) == expected


def test_field_order_is_part_of_the_content():
    assert record_checksum({"a": "1", "b": "2"}) != record_checksum({"b": "2", "a": "1"})


def test_disabled_checksum_leaves_record_untouched():
    record = {"a": "1"}
    assign_checksum(record, IngestOptions(compute_checksum=False))
    assert record == {"a": "1"}


def test_checksum_stored_as_field():
    record = {"a": "1"}
    expected = record_checksum({"a": "1"})
    assign_checksum(record, IngestOptions(compute_checksum=True, checksum_field="_sha"))
    assert record == {"a": "1", "_sha": expected}


def test_checksum_as_identity_without_visible_field():
    record = {"a": "1"}
    expected = record_checksum({"a": "1"})
    options = IngestOptions(compute_checksum=True, store_checksum_field=False, checksum_as_id=True)
    assign_checksum(record, options)
    assert record == {"a": "1", "id": expected}


def test_field_and_identity_share_one_digest():
    record = {"a": "1"}
    options = IngestOptions(compute_checksum=True, checksum_as_id=True)
    assign_checksum(record, options)
    assert record["id"] == record["_sha"] == record_checksum({"a": "1"})


def test_identity_without_checksum_is_rejected():
    with pytest.raises(IngestionConfigError):
        IngestOptions(compute_checksum=False, checksum_as_id=True)


def test_unknown_algorithm_is_rejected():
    with pytest.raises(IngestionConfigError):
        IngestOptions(compute_checksum=True, checksum_algorithm="not-a-hash")
