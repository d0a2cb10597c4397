from pathlib import Path

import pytest

from surreal_import.config.settings import Settings
from surreal_import.pipelines.ingest import IndexDefinition, IngestOptions, IngestionConfigError


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)  # no stray .env
    for key in ("DATA_DIR", "CSV_INDEXES", "CSV_DELIMITER", "CHECKSUM_AS_ID", "COMPUTE_CHECKSUM"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings()
    assert settings.surrealdb_url == "ws://127.0.0.1:8000/rpc"
    assert settings.data_dir == Path("data")
    assert settings.max_in_flight == 20
    assert settings.read_chunk_size == 512 * 1024
    assert settings.table_override is None
    assert settings.delimiter_override is None
    assert settings.file_extensions_list == [".csv"]


def test_environment_overrides(clean_env):
    clean_env.setenv("DATA_DIR", "/srv/imports")
    clean_env.setenv("CSV_IMPORT_TABLENAME", "readings")
    clean_env.setenv("CSV_DELIMITER", "\\t")
    clean_env.setenv("FILE_EXTENSIONS", ".csv, .tsv")
    clean_env.setenv("CSV_INDEXES", '[{"name": "paramDesc", "fields": "parameterDesc"}]')
    clean_env.setenv("CHECKSUM_ALGORITHM", "SHA1")

    settings = Settings()

    assert settings.data_dir == Path("/srv/imports")
    assert settings.table_override == "readings"
    assert settings.delimiter_override == "\t"
    assert settings.file_extensions_list == [".csv", ".tsv"]
    assert settings.csv_indexes[0].name == "paramDesc"
    assert settings.checksum_algorithm == "sha1"


def test_options_from_settings(clean_env):
    clean_env.setenv("CSV_INDEXES", '[{"name": "u", "fields": "a", "unique": true}]')
    options = IngestOptions.from_settings(Settings(), max_in_flight=5, table_override=None)
    assert options.max_in_flight == 5
    assert options.table_override is None
    assert options.indexes == (IndexDefinition("u", "a", True),)


def test_identity_without_checksum_fails_fast(clean_env):
    clean_env.setenv("CHECKSUM_AS_ID", "true")
    clean_env.setenv("COMPUTE_CHECKSUM", "false")
    with pytest.raises(IngestionConfigError):
        IngestOptions.from_settings(Settings())


@pytest.mark.parametrize(
    "values",
    [
        {"max_in_flight": 0},
        {"read_chunk_size": 0},
        {"delimiter_override": ";;"},
        {"status_refresh_interval": 0},
        {"file_extensions": ()},
    ],
)
def test_invalid_options(values):
    with pytest.raises(IngestionConfigError):
        IngestOptions(**values)


def test_table_for_uses_stem_or_override(tmp_path):
    from surreal_import.pipelines.ingest import SourceFile

    source = SourceFile(path=tmp_path / "sensor_data.csv")
    assert IngestOptions().table_for(source) == "sensor_data"
    assert IngestOptions(table_override="t").table_for(source) == "t"
