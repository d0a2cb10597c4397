import pytest

from surreal_import.pipelines.ingest.source import (
    RecordSource,
    RecordSourceError,
    normalize_header,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("PARAMETER_DESC", "parameterDesc"),
        ("parameter_desc", "parameterDesc"),
        ("Name", "name"),
        (" site_id ", "siteId"),
        ("a_b_c", "aBC"),
    ],
)
def test_normalize_header(raw, expected):
    assert normalize_header(raw) == expected


def test_records_follow_header_order(write_csv):
    path = write_csv("data.csv", "SITE_ID,Value\n1,2\n3,4\n")
    source = RecordSource(path)
    records = list(source)
    assert [r.fields for r in records] == [
        {"siteId": "1", "value": "2"},
        {"siteId": "3", "value": "4"},
    ]
    assert list(records[0].fields) == ["siteId", "value"]
    assert [r.line_number for r in records] == [2, 3]
    assert source.read == 2
    assert source.skipped == 0


def test_malformed_rows_are_skipped_and_counted(write_csv, log_messages):
    path = write_csv("data.csv", "a,b\n1,2\n1,2,3\n4\n5,6\n")
    source = RecordSource(path)
    records = list(source)
    assert [r.fields["a"] for r in records] == ["1", "5"]
    assert source.read == 2
    assert source.skipped == 2
    assert any("data.csv:3" in m for m in log_messages)


def test_blank_lines_are_ignored(write_csv):
    path = write_csv("data.csv", "a,b\n1,2\n\n3,4\n")
    source = RecordSource(path)
    assert len(list(source)) == 2
    assert source.skipped == 0


def test_custom_delimiter_and_quoting(write_csv):
    path = write_csv("data.csv", 'a;b\n"x;y";2\n')
    records = list(RecordSource(path, delimiter=";"))
    assert records[0].fields == {"a": "x;y", "b": "2"}


def test_byte_order_mark_is_dropped(tmp_path):
    path = tmp_path / "bom.csv"
    path.write_bytes("\ufeffid,name\n1,x\n".encode("utf-8"))
    records = list(RecordSource(path))
    assert records[0].fields == {"id": "1", "name": "x"}


def test_crlf_file(write_csv):
    path = write_csv("data.csv", "a,b\r\n1,2\r\n")
    assert [r.fields for r in RecordSource(path)] == [{"a": "1", "b": "2"}]


def test_empty_file_is_an_error(write_csv):
    path = write_csv("empty.csv", "")
    with pytest.raises(RecordSourceError):
        list(RecordSource(path))


def test_duplicate_columns_are_an_error(write_csv):
    path = write_csv("dup.csv", "site_id,SITE_ID\n1,2\n")
    with pytest.raises(RecordSourceError, match="siteId"):
        list(RecordSource(path))


def test_source_is_not_restartable(write_csv):
    path = write_csv("data.csv", "a\n1\n")
    source = RecordSource(path)
    list(source)
    with pytest.raises(RecordSourceError):
        list(source)


def test_undecodable_bytes_are_replaced_not_fatal(tmp_path, log_messages):
    path = tmp_path / "latin1.csv"
    path.write_bytes(b"a,b\n1,2\n3,\xe9t\xe9\n5,6\n")
    source = RecordSource(path)

    records = list(source)

    assert [r.fields["a"] for r in records] == ["1", "3", "5"]
    assert records[1].fields["b"] == "\ufffdt\ufffd"
    assert source.read == 3
    assert source.replaced == 1
    assert source.skipped == 0
    assert any("latin1.csv:3" in m for m in log_messages)
