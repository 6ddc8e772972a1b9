from __future__ import annotations

from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

import duckdb
import pandas as pd

from tabsql.exceptions.errors import CursorClosedError, QueryError
from tabsql.logging.logger import get_logger


log = get_logger("db.cursor")


class ResultCursor:
    """Forward-only cursor over a single query result.

    Rows are pulled from the engine page-at-a-time with ``fetch(n)``. The
    cursor keeps exactly one row of lookahead so ``has_completed()`` turns
    true as soon as the last row has been handed out.

    Release with ``clear()`` (or use as a context manager). An engine error
    while fetching releases the cursor before ``QueryError`` is raised.
    """

    def __init__(
        self,
        engine_cursor: duckdb.DuckDBPyConnection,
        statement: str,
        on_release: Optional[Callable[["ResultCursor"], None]] = None,
    ):
        self._cur: Optional[duckdb.DuckDBPyConnection] = engine_cursor
        self._statement = statement
        self._on_release = on_release
        self._columns: List[str] = [d[0] for d in (engine_cursor.description or [])]
        self._rows_fetched = 0
        self._lookahead: Optional[Tuple[Any, ...]] = None
        self._completed = False
        if self._columns:
            self._lookahead = self._pull_one()
        self._completed = self._lookahead is None

    # --- properties -------------------------------------------------------
    @property
    def statement(self) -> str:
        return self._statement

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    @property
    def rows_fetched(self) -> int:
        return self._rows_fetched

    @property
    def is_open(self) -> bool:
        return self._cur is not None

    # --- fetching ---------------------------------------------------------
    def has_completed(self) -> bool:
        return self._completed

    def fetch(self, n: int = -1) -> pd.DataFrame:
        """Return up to ``n`` rows as a DataFrame; ``n < 0`` returns all remaining rows."""
        if self._cur is None:
            raise CursorClosedError("Cursor has been cleared")
        if n == 0 or self._completed:
            return self._frame([])

        rows: List[Tuple[Any, ...]] = []
        if self._lookahead is not None:
            rows.append(self._lookahead)
            self._lookahead = None

        if n < 0:
            rows.extend(self._pull(lambda c: c.fetchall()))
        else:
            if n > len(rows):
                rows.extend(self._pull(lambda c: c.fetchmany(n - len(rows))))
            if len(rows) == n:
                self._lookahead = self._pull_one()

        self._completed = self._lookahead is None
        self._rows_fetched += len(rows)
        log.debug(
            "Fetched batch",
            extra={"rows": len(rows), "rows_fetched": self._rows_fetched, "completed": self._completed},
        )
        return self._frame(rows)

    def iter_batches(self, n: int) -> Iterator[pd.DataFrame]:
        """Yield non-empty batches of at most ``n`` rows until the result is exhausted."""
        if n <= 0:
            raise ValueError(f"Batch size must be positive, got {n}")
        while not self.has_completed():
            batch = self.fetch(n)
            if len(batch):
                yield batch

    # --- lifecycle --------------------------------------------------------
    def clear(self) -> None:
        if self._cur is None:
            return
        cur, self._cur = self._cur, None
        self._lookahead = None
        self._completed = True
        try:
            cur.close()
        finally:
            if self._on_release is not None:
                self._on_release(self)
        log.debug("Cursor cleared", extra={"rows_fetched": self._rows_fetched})

    def __enter__(self) -> "ResultCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.clear()

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        while not self.has_completed():
            for row in self.fetch(1).itertuples(index=False, name=None):
                yield row

    def __repr__(self) -> str:
        state = "cleared" if self._cur is None else ("completed" if self._completed else "pending")
        return f"<ResultCursor {state} rows_fetched={self._rows_fetched}>"

    # --- internal ---------------------------------------------------------
    def _frame(self, rows: Sequence[Tuple[Any, ...]]) -> pd.DataFrame:
        if not rows:
            return pd.DataFrame(columns=self._columns)
        return pd.DataFrame.from_records(list(rows), columns=self._columns)

    def _pull(self, op: Callable[[duckdb.DuckDBPyConnection], List[Tuple[Any, ...]]]) -> List[Tuple[Any, ...]]:
        try:
            return op(self._cur)
        except duckdb.Error as e:
            log.error("Fetch failed", extra={"sql_head": self._statement[:300], "error": str(e)})
            # rows already pulled for this batch are gone; the result cannot be resumed
            self.clear()
            raise QueryError(str(e), sql=self._statement) from e

    def _pull_one(self) -> Optional[Tuple[Any, ...]]:
        rows = self._pull(lambda c: c.fetchmany(1))
        return tuple(rows[0]) if rows else None
