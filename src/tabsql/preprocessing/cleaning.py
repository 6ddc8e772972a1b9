from __future__ import annotations
from typing import Dict
import pandas as pd

from tabsql.db.utils import dedupe_names, sanitize_identifier
from tabsql.logging.logger import get_logger

log = get_logger("preprocessing.cleaning")

def standardize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename columns to unique, SQL-friendly identifiers (``Unit Price`` -> ``unit_price``)."""
    out = df.copy()
    renamed = dedupe_names(sanitize_identifier(str(c)) for c in out.columns)
    changed = {str(a): b for a, b in zip(out.columns, renamed) if str(a) != b}
    if changed:
        log.info("Columns renamed", extra={"renamed": changed})
    out.columns = renamed
    return out

def coerce_types(df: pd.DataFrame, column_types: Dict[str, str], date_format: str | None = None) -> pd.DataFrame:
    out = df.copy()
    for col, typ in column_types.items():
        if col not in out.columns:
            log.warning("Missing column", extra={"column": col, "expected_type": typ})
            continue
        try:
            if typ in ("date", "datetime"):
                out[col] = pd.to_datetime(out[col], errors="coerce", format=date_format)
            elif typ == "int":
                out[col] = pd.to_numeric(out[col], errors="coerce").astype("Int64")
            elif typ == "float":
                out[col] = pd.to_numeric(out[col], errors="coerce")
            elif typ == "bool":
                out[col] = out[col].astype("boolean")
            else:
                out[col] = out[col].astype("string")
            log.info("Type coerced", extra={"column": col, "type": typ})
        except (TypeError, ValueError) as e:
            log.warning("Type coercion failed", extra={"column": col, "type": typ, "error": str(e)})
    return out
