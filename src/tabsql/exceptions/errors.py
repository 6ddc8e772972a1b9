class TabSqlError(Exception):
    """Base exception for tabsql."""

class DataIngestionError(TabSqlError):
    pass

class DatabaseError(TabSqlError):
    pass

class ConnectionClosedError(DatabaseError):
    pass

class TableExistsError(DatabaseError):
    pass

class TableNotFoundError(DatabaseError):
    pass

class QueryError(DatabaseError):
    """The engine rejected a statement. The engine's message is kept as-is."""

    def __init__(self, message: str, sql: str = ""):
        super().__init__(message)
        self.sql = sql

class CursorClosedError(TabSqlError):
    pass

class ExportError(TabSqlError):
    pass
