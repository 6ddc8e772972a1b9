from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Sequence

import duckdb
import pandas as pd

from tabsql.db.cursor import ResultCursor
from tabsql.db.utils import quote_ident
from tabsql.exceptions.errors import (
    ConnectionClosedError,
    DatabaseError,
    QueryError,
    TableExistsError,
    TableNotFoundError,
)
from tabsql.logging.logger import get_logger


log = get_logger("db.connection")

MEMORY = ":memory:"

# Name under which a DataFrame is exposed to the engine while it is copied into a table.
_STAGING_VIEW = "__tabsql_staging"


class Database:
    """An embedded DuckDB database opened against a file or held in memory.

    The handle owns one engine connection and at most one outstanding
    ``ResultCursor``. Sending a new query while a cursor is pending releases
    the old cursor first.

    Close explicitly with ``close()`` or use ``with Database.open(...) as db``.
    An in-memory database disappears with its handle.
    """

    def __init__(self, con: duckdb.DuckDBPyConnection, path: str, read_only: bool = False):
        self._con: Optional[duckdb.DuckDBPyConnection] = con
        self.path = path
        self.read_only = read_only
        self._cursor: Optional[ResultCursor] = None

    @classmethod
    def open(cls, path: str | Path = MEMORY, read_only: bool = False) -> "Database":
        target = str(path) if path else MEMORY
        if target != MEMORY:
            p = Path(target)
            if p.is_dir():
                raise ValueError(f"Path points to a directory, expected file: {target}")
            if read_only and not p.exists():
                raise DatabaseError(f"Database not found and read-only open requested: {target}")
            p.parent.mkdir(parents=True, exist_ok=True)
        elif read_only:
            # An in-memory database is empty and private to this handle; read-only makes no sense.
            raise ValueError("An in-memory database cannot be opened read-only")

        try:
            con = duckdb.connect(database=target, read_only=read_only)
        except duckdb.Error as e:
            log.error("Connect failed", extra={"database": target, "error": str(e)})
            raise DatabaseError(f"Could not open database {target}: {e}") from e

        log.info("Database opened", extra={"database": target, "read_only": read_only})
        return cls(con, target, read_only=read_only)

    # --- lifecycle --------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self._con is not None

    @property
    def in_memory(self) -> bool:
        return self.path == MEMORY

    @property
    def pending_cursor(self) -> Optional[ResultCursor]:
        return self._cursor

    def close(self) -> None:
        if self._con is None:
            return
        if self._cursor is not None:
            log.warning("Closing pending cursor before disconnect", extra={"sql_head": self._cursor.statement[:300]})
            self._cursor.clear()
        con, self._con = self._con, None
        con.close()
        log.info("Database closed", extra={"database": self.path})

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<Database {self.path!r} {state}>"

    # --- tables -----------------------------------------------------------
    def list_tables(self) -> List[str]:
        df = self.query(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = current_schema() ORDER BY table_name"
        )
        return [str(t) for t in df["table_name"].tolist()]

    def has_table(self, name: str) -> bool:
        df = self.query(
            "SELECT 1 FROM information_schema.tables "
            "WHERE table_schema = current_schema() AND table_name = ?",
            [name],
        )
        return len(df) > 0

    def describe_table(self, name: str) -> pd.DataFrame:
        self._require_table(name)
        df = self.query(
            "SELECT column_name, data_type, is_nullable FROM information_schema.columns "
            "WHERE table_schema = current_schema() AND table_name = ? ORDER BY ordinal_position",
            [name],
        )
        return df.rename(columns={"column_name": "name", "data_type": "type", "is_nullable": "nullable"})

    def row_count(self, name: str) -> int:
        self._require_table(name)
        df = self.query(f"SELECT COUNT(*) AS n FROM {quote_ident(name)}")
        return int(df["n"].iloc[0])

    def write_table(
        self,
        name: str,
        df: pd.DataFrame,
        overwrite: bool = False,
        append: bool = False,
    ) -> int:
        """Write a DataFrame as table ``name``; column types are inferred by the engine.

        Writing to an existing table requires ``overwrite`` (replace) or
        ``append`` (insert). Returns the number of rows written.
        """
        if overwrite and append:
            raise ValueError("overwrite and append are mutually exclusive")
        if not name:
            raise ValueError("Table name must not be empty")

        exists = self.has_table(name)
        if exists and not (overwrite or append):
            raise TableExistsError(f"Table '{name}' already exists; pass overwrite=True or append=True")

        con = self._live()
        ident = quote_ident(name)
        if exists and append:
            sql = f"INSERT INTO {ident} SELECT * FROM {_STAGING_VIEW}"
        elif exists:
            sql = f"CREATE OR REPLACE TABLE {ident} AS SELECT * FROM {_STAGING_VIEW}"
        else:
            sql = f"CREATE TABLE {ident} AS SELECT * FROM {_STAGING_VIEW}"

        try:
            con.register(_STAGING_VIEW, df)
        except duckdb.Error as e:
            log.error("Staging frame failed", extra={"table": name, "error": str(e)})
            raise QueryError(str(e), sql=sql) from e
        try:
            con.execute(sql)
        except duckdb.Error as e:
            log.error("Write table failed", extra={"table": name, "error": str(e)})
            raise QueryError(str(e), sql=sql) from e
        finally:
            con.unregister(_STAGING_VIEW)

        mode = "append" if (exists and append) else ("overwrite" if exists else "create")
        log.info("Table written", extra={"table": name, "rows": len(df), "mode": mode})
        return len(df)

    def remove_table(self, name: str, missing_ok: bool = False) -> None:
        if not self.has_table(name):
            if missing_ok:
                return
            raise TableNotFoundError(f"Table '{name}' does not exist")
        self.execute(f"DROP TABLE {quote_ident(name)}")
        log.info("Table removed", extra={"table": name})

    # --- queries ----------------------------------------------------------
    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> pd.DataFrame:
        """Run ``sql`` and return every result row as a DataFrame."""
        con = self._live()
        log.info("Executing SQL", extra={"sql_head": sql[:300]})
        try:
            return con.execute(sql, params).df() if params is not None else con.execute(sql).df()
        except duckdb.Error as e:
            log.error("Query failed", extra={"sql_head": sql[:300], "error": str(e)})
            raise QueryError(str(e), sql=sql) from e

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> None:
        """Run a statement whose result is not needed (DDL/DML)."""
        con = self._live()
        log.info("Executing statement", extra={"sql_head": sql[:300]})
        try:
            if params is not None:
                con.execute(sql, params)
            else:
                con.execute(sql)
        except duckdb.Error as e:
            log.error("Statement failed", extra={"sql_head": sql[:300], "error": str(e)})
            raise QueryError(str(e), sql=sql) from e

    def send_query(self, sql: str, params: Optional[Sequence[Any]] = None) -> ResultCursor:
        """Run ``sql`` and return a cursor to retrieve its rows incrementally."""
        con = self._live()
        self._release_pending()
        log.info("Sending query", extra={"sql_head": sql[:300]})
        engine_cursor = con.cursor()
        try:
            if params is not None:
                engine_cursor.execute(sql, params)
            else:
                engine_cursor.execute(sql)
            cursor = ResultCursor(engine_cursor, sql, on_release=self._forget_cursor)
        except duckdb.Error as e:
            engine_cursor.close()
            log.error("Query failed", extra={"sql_head": sql[:300], "error": str(e)})
            raise QueryError(str(e), sql=sql) from e
        self._cursor = cursor
        return cursor

    # --- internal ---------------------------------------------------------
    def _live(self) -> duckdb.DuckDBPyConnection:
        if self._con is None:
            raise ConnectionClosedError(f"Database {self.path!r} is closed")
        return self._con

    def _require_table(self, name: str) -> None:
        if not self.has_table(name):
            raise TableNotFoundError(f"Table '{name}' does not exist")

    def _release_pending(self) -> None:
        if self._cursor is None:
            return
        log.warning("Clearing pending cursor before new statement", extra={"sql_head": self._cursor.statement[:300]})
        self._cursor.clear()

    def _forget_cursor(self, cursor: ResultCursor) -> None:
        if self._cursor is cursor:
            self._cursor = None


def connect(path: str | Path = MEMORY, read_only: bool = False) -> Database:
    return Database.open(path, read_only=read_only)
