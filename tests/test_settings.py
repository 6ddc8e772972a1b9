import logging

import pytest

from tabsql.config.settings import load_settings
from tabsql.logging.logger import SizeTimestampRotatingFileHandler


def _write_config(tmp_path, text, env="dev"):
    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir(exist_ok=True)
    (cfg_dir / f"{env}.yaml").write_text(text, encoding="utf-8")
    return cfg_dir


def test_yaml_values(tmp_path, clean_env):
    cfg_dir = _write_config(tmp_path, """
database:
  path: data/store.duckdb
ingestion:
  delimiter: ";"
  fallback_encodings: [utf-8, cp1252]
  skip_bad_lines: true
query:
  batch_size: 50
""")
    s = load_settings(str(cfg_dir))
    assert s.env == "dev"
    assert s.database == "data/store.duckdb"
    assert s.delimiter == ";"
    assert s.fallback_encodings == ["utf-8", "cp1252"]
    assert s.skip_bad_lines is True
    assert s.batch_size == 50
    assert s.read_only is False


def test_env_overrides_yaml(tmp_path, clean_env):
    cfg_dir = _write_config(tmp_path, "query:\n  batch_size: 50\n")
    clean_env.setenv("BATCH_SIZE", "7")
    clean_env.setenv("TABSQL_READ_ONLY", "yes")
    clean_env.setenv("FALLBACK_ENCODINGS", "latin-1, utf-8")
    s = load_settings(str(cfg_dir))
    assert s.batch_size == 7
    assert s.read_only is True
    assert s.fallback_encodings == ["latin-1", "utf-8"]


def test_app_env_selects_file(tmp_path, clean_env):
    cfg_dir = _write_config(tmp_path, "app:\n  log_level: DEBUG\n", env="test")
    clean_env.setenv("APP_ENV", "test")
    s = load_settings(str(cfg_dir))
    assert s.env == "test"
    assert s.log_level == "DEBUG"


def test_defaults_for_empty_file(tmp_path, clean_env):
    cfg_dir = _write_config(tmp_path, "")
    s = load_settings(str(cfg_dir))
    assert s.database == ":memory:"
    assert s.delimiter == ","
    assert s.batch_size == 1000
    assert s.file_pattern == "*.csv"


def test_missing_config(tmp_path, clean_env):
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path / "none"))
    s = load_settings(str(tmp_path / "none"), missing_ok=True)
    assert s.database == ":memory:"


def test_batch_size_must_be_positive(tmp_path, clean_env):
    cfg_dir = _write_config(tmp_path, "query:\n  batch_size: 0\n")
    with pytest.raises(ValueError):
        load_settings(str(cfg_dir))


def test_project_config_loads(clean_env):
    from pathlib import Path

    s = load_settings(str(Path(__file__).resolve().parents[1] / "config"))
    assert s.data_dir == "data/sample"


def test_rotating_handler_renames_with_timestamp(tmp_path):
    log_file = tmp_path / "app.log"
    handler = SizeTimestampRotatingFileHandler(str(log_file), maxBytes=64, backupCount=2, encoding="utf-8")
    logger = logging.getLogger("tests.rotation")
    logger.propagate = False
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        for i in range(40):
            logger.info("line %d with some padding text", i)
    finally:
        logger.removeHandler(handler)
        handler.close()

    rotated = sorted(p.name for p in tmp_path.glob("app_*.log"))
    assert log_file.exists()
    assert 1 <= len(rotated) <= 2
