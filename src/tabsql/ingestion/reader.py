from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence
from pathlib import Path
import pandas as pd

from tabsql.logging.logger import get_logger
from tabsql.exceptions.errors import DataIngestionError

log = get_logger("ingestion.reader")

@dataclass(frozen=True)
class IngestionResult:
    df: pd.DataFrame
    encoding_used: str
    rows_read: int
    bad_lines_skipped: bool

def read_table_file(
    file_path: str | Path,
    delimiter: str = ",",
    fallback_encodings: Sequence[str] = ("utf-8",),
    skip_bad_lines: bool = False,
) -> IngestionResult:
    """Read a delimited text file into a DataFrame, trying each encoding in turn."""
    p = Path(file_path)
    if not p.exists():
        raise DataIngestionError(f"File not found: {file_path}")
    if not p.is_file():
        raise DataIngestionError(f"Not a file: {file_path}")
    if not fallback_encodings:
        raise DataIngestionError("At least one encoding must be given")

    last_err: Optional[Exception] = None
    for enc in fallback_encodings:
        try:
            log.info("Reading file", extra={"source_file": p.name, "encoding": enc})
            df = pd.read_csv(
                p,
                sep=delimiter,
                encoding=enc,
                on_bad_lines="skip" if skip_bad_lines else "error",
            )
            return IngestionResult(df=df, encoding_used=enc, rows_read=len(df), bad_lines_skipped=skip_bad_lines)
        except UnicodeDecodeError as e:
            last_err = e
            log.warning("Encoding error", extra={"source_file": p.name, "encoding": enc, "error": str(e)})
        except pd.errors.EmptyDataError as e:
            raise DataIngestionError(f"Empty file: {p.name}") from e
        except pd.errors.ParserError as e:
            log.error("Malformed file", extra={"source_file": p.name, "encoding": enc, "error": str(e)})
            raise DataIngestionError(f"Could not parse {p.name}: {e}") from e

    raise DataIngestionError(f"Failed to decode {p.name} with encodings: {list(fallback_encodings)}") from last_err
