from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from tabsql.config.settings import Settings
from tabsql.db.connection import Database
from tabsql.db.utils import sanitize_identifier
from tabsql.exceptions.errors import DataIngestionError
from tabsql.ingestion.reader import read_table_file
from tabsql.logging.logger import get_logger
from tabsql.preprocessing.cleaning import coerce_types, standardize_columns

log = get_logger("ingestion.loader")


@dataclass(frozen=True)
class LoadResult:
    table: str
    source_file: str
    rows: int
    columns: List[str]
    encoding_used: str


def table_name_for(file_path: str | Path) -> str:
    """Derive a table name from a file name: ``Sales 2024.csv`` -> ``sales_2024``."""
    return sanitize_identifier(Path(file_path).stem)


def load_file(
    db: Database,
    file_path: str | Path,
    table: Optional[str] = None,
    *,
    delimiter: str = ",",
    fallback_encodings: Sequence[str] = ("utf-8", "latin-1"),
    skip_bad_lines: bool = False,
    overwrite: bool = False,
    append: bool = False,
    column_types: Optional[Dict[str, str]] = None,
) -> LoadResult:
    p = Path(file_path)
    name = table or table_name_for(p)

    res = read_table_file(p, delimiter=delimiter, fallback_encodings=fallback_encodings, skip_bad_lines=skip_bad_lines)
    df = standardize_columns(res.df)
    if column_types:
        df = coerce_types(df, column_types)

    rows = db.write_table(name, df, overwrite=overwrite, append=append)
    log.info(
        "Loaded file",
        extra={"source_file": p.name, "table": name, "rows": rows, "encoding": res.encoding_used},
    )
    return LoadResult(
        table=name,
        source_file=str(p),
        rows=rows,
        columns=list(df.columns),
        encoding_used=res.encoding_used,
    )


def load_directory(
    db: Database,
    directory: str | Path,
    pattern: str = "*.csv",
    **kwargs,
) -> List[LoadResult]:
    """Load every file matching ``pattern`` in ``directory`` as its own table, in filename order."""
    d = Path(directory)
    if not d.is_dir():
        raise DataIngestionError(f"Data directory not found: {directory}")

    files = sorted(p for p in d.glob(pattern) if p.is_file())
    if not files:
        log.warning("No files matched", extra={"directory": str(d), "pattern": pattern})
        return []

    return [load_file(db, fp, **kwargs) for fp in files]


def load_from_settings(db: Database, settings: Settings, directory: Optional[str | Path] = None) -> List[LoadResult]:
    return load_directory(
        db,
        directory or settings.data_dir,
        pattern=settings.file_pattern,
        delimiter=settings.delimiter,
        fallback_encodings=settings.fallback_encodings,
        skip_bad_lines=settings.skip_bad_lines,
        overwrite=settings.overwrite_tables,
    )
