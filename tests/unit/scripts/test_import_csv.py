from pathlib import Path

import pytest

from surreal_import.config.settings import Settings
from surreal_import.scripts import import_csv


@pytest.fixture
def settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    return Settings()


def test_parse_args_defaults():
    args = import_csv.parse_args([])
    assert args.data_dir is None
    assert args.table is None
    assert args.clear is None
    assert not args.no_precount


def test_flags_override_settings(settings):
    args = import_csv.parse_args(
        ["--data-dir", "in", "--table", "t", "--max-in-flight", "4", "--clear", "--no-precount"]
    )
    options = import_csv.build_options(args, settings)
    assert args.data_dir == Path("in")
    assert options.table_override == "t"
    assert options.max_in_flight == 4
    assert options.clear_table_before_insert is True
    assert options.precount_records is False


def test_checksum_as_id_flag_enables_checksum(settings):
    options = import_csv.build_options(import_csv.parse_args(["--checksum-as-id"]), settings)
    assert options.compute_checksum is True
    assert options.checksum_as_id is True


def test_missing_data_dir_exits_nonzero(settings, tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        import_csv.main(["--data-dir", str(tmp_path / "missing")])
    assert exc_info.value.code == 1
