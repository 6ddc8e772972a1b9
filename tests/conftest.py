import shutil
from pathlib import Path

import pandas as pd
import pytest

from tabsql.db.connection import Database

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SAMPLE_DIR = PROJECT_ROOT / "data" / "sample"


@pytest.fixture()
def sample_dir(tmp_path):
    d = tmp_path / "sample"
    shutil.copytree(SAMPLE_DIR, d)
    return d


@pytest.fixture()
def db():
    database = Database.open()
    yield database
    database.close()


@pytest.fixture()
def numbers_df():
    return pd.DataFrame({"id": range(1, 26), "label": [f"row{i:02d}" for i in range(1, 26)]})


@pytest.fixture()
def numbers_db(db, numbers_df):
    db.write_table("numbers", numbers_df)
    return db


@pytest.fixture()
def clean_env(monkeypatch):
    for key in (
        "APP_ENV", "LOG_LEVEL", "LOG_FILE", "TABSQL_DATABASE", "TABSQL_READ_ONLY", "DATA_DIR",
        "FILE_PATTERN", "DEFAULT_DELIMITER", "FALLBACK_ENCODINGS", "SKIP_BAD_LINES",
        "OVERWRITE_TABLES", "BATCH_SIZE", "MAX_ROWS_PREVIEW", "EXPORT_DIR", "SAVED_QUERY_DIR",
    ):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch
