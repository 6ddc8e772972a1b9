"""Guided tour: load CSV files into an embedded database and query them.

The steps mirror how the library is meant to be used:

1. open a database (in memory unless a path is given),
2. load every CSV of a directory as its own table,
3. run plain SELECT / DISTINCT / WHERE / LIKE / GROUP BY / ORDER BY queries,
4. stream a result through a cursor in fixed-size batches,
5. run a malformed ORDER BY and look at the error the engine reports.

The queries target the sample data shipped in ``data/sample``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from tabsql.db.connection import MEMORY, Database
from tabsql.exceptions.errors import QueryError
from tabsql.ingestion.loader import LoadResult, load_directory
from tabsql.logging.logger import get_logger

log = get_logger("walkthrough")

DEFAULT_DATA_DIR = Path("data") / "sample"

QUERIES: List[Tuple[str, str]] = [
    ("select", "SELECT model, mpg, cyl, hp FROM cars LIMIT 5"),
    ("distinct", "SELECT DISTINCT cyl FROM cars ORDER BY cyl"),
    ("where", "SELECT model, mpg FROM cars WHERE mpg > 25 ORDER BY mpg DESC"),
    ("like", "SELECT model, hp FROM cars WHERE model LIKE 'Merc%' ORDER BY model"),
    (
        "group_by",
        "SELECT cyl, COUNT(*) AS n, ROUND(AVG(mpg), 2) AS avg_mpg "
        "FROM cars GROUP BY cyl ORDER BY cyl",
    ),
    ("order_by", "SELECT model, hp FROM cars ORDER BY hp DESC, model LIMIT 5"),
    (
        "join",
        "SELECT c.engine_layout, COUNT(*) AS n FROM cars AS m "
        "JOIN cylinders AS c ON m.cyl = c.cyl GROUP BY c.engine_layout ORDER BY n DESC, c.engine_layout",
    ),
]

BATCH_QUERY = "SELECT * FROM cars ORDER BY model"

# Missing BY after ORDER; the engine rejects it.
BROKEN_QUERY = "SELECT model, hp FROM cars ORDER hp"


@dataclass
class WalkthroughReport:
    database: str
    loaded: List[LoadResult] = field(default_factory=list)
    results: Dict[str, pd.DataFrame] = field(default_factory=dict)
    batch_sizes: List[int] = field(default_factory=list)
    broken_query_error: Optional[str] = None


def run_walkthrough(
    data_dir: str | Path = DEFAULT_DATA_DIR,
    database: str | Path = MEMORY,
    batch_size: int = 10,
) -> WalkthroughReport:
    report = WalkthroughReport(database=str(database))

    with Database.open(database) as db:
        report.loaded = load_directory(db, data_dir, overwrite=True)
        log.info("Tables loaded", extra={"tables": db.list_tables()})

        for title, sql in QUERIES:
            report.results[title] = db.query(sql)

        cursor = db.send_query(BATCH_QUERY)
        try:
            while not cursor.has_completed():
                batch = cursor.fetch(batch_size)
                report.batch_sizes.append(len(batch))
        finally:
            cursor.clear()

        try:
            db.query(BROKEN_QUERY)
        except QueryError as e:
            report.broken_query_error = str(e)

    return report


def format_report(report: WalkthroughReport, max_rows: int = 20) -> str:
    lines = [f"Database: {report.database}"]
    for r in report.loaded:
        lines.append(f"Loaded {Path(r.source_file).name} -> {r.table} ({r.rows} rows)")
    for title, df in report.results.items():
        lines.append("")
        lines.append(f"-- {title}")
        lines.append(df.head(max_rows).to_string(index=False))
    lines.append("")
    lines.append(f"-- batched fetch: {len(report.batch_sizes)} batches {report.batch_sizes}")
    lines.append("")
    lines.append(f"-- broken query: {BROKEN_QUERY}")
    lines.append(report.broken_query_error or "(no error)")
    return "\n".join(lines)
