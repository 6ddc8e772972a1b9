"""tabsql: load CSV files into an embedded DuckDB database and query them with SQL."""

__version__ = "0.1.0"
