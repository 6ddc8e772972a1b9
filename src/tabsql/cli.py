"""Command line entry point: ``tabsql <command> ...``.

Every command opens the configured database (``--database`` overrides it),
optionally pre-loads CSV files with ``--load``, does its work and closes the
database again. With the default in-memory database, ``--load`` is how data
gets in.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from tabsql.config.settings import Settings, load_settings
from tabsql.db.connection import Database
from tabsql.exceptions.errors import TabSqlError
from tabsql.export.exporter import export_batches, export_result
from tabsql.ingestion.loader import LoadResult, load_directory, load_file, load_from_settings
from tabsql.logging.logger import get_logger, init_logging
from tabsql.queries.saved import list_queries, load_query, save_query
from tabsql.queries.sql_files import list_sql_files, read_sql_file, split_statements
from tabsql.walkthrough import DEFAULT_DATA_DIR, format_report, run_walkthrough

log = get_logger("cli")


def _load_paths(db: Database, settings: Settings, paths: Sequence[str], table: Optional[str] = None,
                overwrite: bool = False, append: bool = False,
                delimiter: Optional[str] = None) -> List[LoadResult]:
    if table and (len(paths) != 1 or Path(paths[0]).is_dir()):
        raise ValueError("--table needs exactly one file; each file in a batch loads into its own table")
    opts = dict(
        delimiter=delimiter or settings.delimiter,
        fallback_encodings=settings.fallback_encodings,
        skip_bad_lines=settings.skip_bad_lines,
        overwrite=overwrite or settings.overwrite_tables,
        append=append,
    )
    if append:
        opts["overwrite"] = False
    results: List[LoadResult] = []
    for raw in paths:
        p = Path(raw)
        if p.is_dir():
            results.extend(load_directory(db, p, pattern=settings.file_pattern, **opts))
        else:
            results.append(load_file(db, p, table=table, **opts))
    return results


def _open(args: argparse.Namespace, settings: Settings) -> Database:
    db = Database.open(args.database or settings.database, read_only=settings.read_only)
    if args.load:
        _load_paths(db, settings, args.load)
    return db


def _print_frame(df, limit: Optional[int]) -> None:
    if limit is not None and limit < 0:
        raise ValueError(f"--limit must not be negative, got {limit}")
    shown = df if limit is None else df.head(limit)
    print(shown.to_string(index=False) if len(shown.columns) else "(no columns)")
    if limit is not None and len(df) > limit:
        print(f"... {len(df) - limit} more rows")


# --- commands ------------------------------------------------------------------
def cmd_load(args: argparse.Namespace, settings: Settings) -> int:
    with _open(args, settings) as db:
        if args.paths:
            results = _load_paths(db, settings, args.paths, table=args.table,
                                  overwrite=args.overwrite, append=args.append, delimiter=args.delimiter)
        elif args.table:
            raise ValueError("--table needs exactly one file")
        else:
            # no paths: the configured data directory
            results = load_from_settings(db, settings)
    for r in results:
        print(f"{Path(r.source_file).name} -> {r.table} ({r.rows} rows, {len(r.columns)} columns)")
    return 0


def cmd_tables(args: argparse.Namespace, settings: Settings) -> int:
    with _open(args, settings) as db:
        for t in db.list_tables():
            print(f"{t}\t{db.row_count(t)}")
    return 0


def cmd_describe(args: argparse.Namespace, settings: Settings) -> int:
    with _open(args, settings) as db:
        _print_frame(db.describe_table(args.table), None)
    return 0


def cmd_query(args: argparse.Namespace, settings: Settings) -> int:
    if args.saved:
        sql = load_query(settings.saved_query_dir, args.saved).sql
    elif args.sql:
        sql = args.sql
    else:
        print("error: give SQL text or --saved NAME", file=sys.stderr)
        return 2

    with _open(args, settings) as db:
        df = db.query(sql)
    if args.out:
        out = Path(args.out)
        paths = export_result(df, out.parent, out.stem, formats=args.formats)
        print(f"Wrote {len(df)} rows to {paths.csv_path}")
    else:
        _print_frame(df, args.limit if args.limit is not None else settings.max_rows_preview)
    return 0


def cmd_fetch(args: argparse.Namespace, settings: Settings) -> int:
    batch_size = args.batch_size or settings.batch_size
    with _open(args, settings) as db:
        cursor = db.send_query(args.sql)
        try:
            if args.out:
                rows = export_batches(cursor, args.out, batch_size)
                print(f"Wrote {rows} rows to {args.out}")
            else:
                for i, batch in enumerate(cursor.iter_batches(batch_size), start=1):
                    print(f"batch {i}: {len(batch)} rows")
                print(f"total: {cursor.rows_fetched} rows")
        finally:
            cursor.clear()
    return 0


def cmd_run_sql(args: argparse.Namespace, settings: Settings) -> int:
    sql_files = list_sql_files(args.sql_dir)
    if not sql_files:
        print(f"No .sql files found in {args.sql_dir}")
        return 0

    out_dir = Path(args.out_dir or settings.export_dir)
    total = len(sql_files)
    failed: List[str] = []
    with _open(args, settings) as db:
        for idx, sql_path in enumerate(sql_files, start=1):
            print(f"[{idx}/{total}] {sql_path.name}")
            try:
                statements = split_statements(read_sql_file(sql_path))
                if not statements:
                    print("  (empty)")
                    continue
                for stmt in statements[:-1]:
                    db.execute(stmt)
                df = db.query(statements[-1])
                paths = export_result(df, out_dir, f"{sql_path.stem}_res")
                print(f"  {len(df)} rows -> {paths.csv_path}")
            except TabSqlError as e:
                log.error("SQL file failed", extra={"file": sql_path.name, "error": str(e)})
                print(f"  failed: {e}")
                failed.append(sql_path.name)

    print(f"{total} files, {total - len(failed)} succeeded, {len(failed)} failed")
    if failed:
        print("failed: " + ", ".join(failed))
        return 1
    return 0


def cmd_save(args: argparse.Namespace, settings: Settings) -> int:
    q = save_query(settings.saved_query_dir, args.name, args.sql, description=args.description)
    print(f"Saved query '{q.id}'")
    return 0


def cmd_saved(args: argparse.Namespace, settings: Settings) -> int:
    for q in list_queries(settings.saved_query_dir):
        print(f"{q.id}\t{q.description or q.sql.splitlines()[0]}")
    return 0


def cmd_walkthrough(args: argparse.Namespace, settings: Settings) -> int:
    report = run_walkthrough(
        data_dir=args.data_dir,
        database=args.database or settings.database,
        batch_size=args.batch_size,
    )
    print(format_report(report, max_rows=settings.max_rows_preview))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tabsql", description="Load CSV files into DuckDB and query them with SQL.")
    parser.add_argument("--config-dir", default="config", help="directory holding <APP_ENV>.yaml")
    parser.add_argument("--database", help="database file, or :memory: (default from config)")
    parser.add_argument("--load", action="append", default=[], metavar="PATH",
                        help="CSV file or directory to load before running the command (repeatable)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("load", help="load CSV files as tables")
    p.add_argument("paths", nargs="*", help="CSV files or directories (default: the configured data_dir)")
    p.add_argument("--table", help="table name (single file only)")
    p.add_argument("--delimiter", help="field delimiter (default from config)")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--overwrite", action="store_true")
    mode.add_argument("--append", action="store_true")
    p.set_defaults(func=cmd_load)

    p = sub.add_parser("tables", help="list tables with row counts")
    p.set_defaults(func=cmd_tables)

    p = sub.add_parser("describe", help="show the columns of a table")
    p.add_argument("table")
    p.set_defaults(func=cmd_describe)

    p = sub.add_parser("query", help="run a query and print or export the result")
    p.add_argument("sql", nargs="?")
    p.add_argument("--saved", metavar="NAME", help="run a saved query instead of SQL text")
    p.add_argument("--limit", type=int, help="rows to print")
    p.add_argument("--out", help="export the result to this CSV path")
    p.add_argument("--formats", nargs="+", default=["csv"], choices=["csv", "xml", "pdf"])
    p.set_defaults(func=cmd_query)

    p = sub.add_parser("fetch", help="run a query and retrieve it through a cursor in batches")
    p.add_argument("sql")
    p.add_argument("--batch-size", type=int)
    p.add_argument("--out", help="stream the result to this CSV path")
    p.set_defaults(func=cmd_fetch)

    p = sub.add_parser("run-sql", help="run every .sql file in a directory and export <stem>_res.csv")
    p.add_argument("sql_dir")
    p.add_argument("--out-dir")
    p.set_defaults(func=cmd_run_sql)

    p = sub.add_parser("save", help="save a named query")
    p.add_argument("name")
    p.add_argument("sql")
    p.add_argument("--description", default="")
    p.set_defaults(func=cmd_save)

    p = sub.add_parser("saved", help="list saved queries")
    p.set_defaults(func=cmd_saved)

    p = sub.add_parser("walkthrough", help="run the guided tour over the sample data")
    p.add_argument("--data-dir", default=str(DEFAULT_DATA_DIR))
    p.add_argument("--batch-size", type=int, default=10)
    p.set_defaults(func=cmd_walkthrough)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config_dir, missing_ok=True)
    init_logging(settings.log_level, settings.log_file)
    try:
        return args.func(args, settings)
    except (TabSqlError, FileNotFoundError, NotADirectoryError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
