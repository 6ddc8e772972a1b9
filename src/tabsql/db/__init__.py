"""Embedded database access.

DuckDB runs in-process; a ``Database`` is opened against a file path or held
in memory, and results come back either whole (``query``) or through a
forward-only ``ResultCursor`` fetched in batches (``send_query``).
"""
from tabsql.db.connection import MEMORY, Database, connect
from tabsql.db.cursor import ResultCursor

__all__ = ["MEMORY", "Database", "ResultCursor", "connect"]
