"""Error taxonomy for the persistence and query layer."""
from typing import List, Optional


class MeditrackError(Exception):
    """Base class for every error raised by this package."""


class PatientValidationError(MeditrackError):
    """A patient record failed validation before any write happened."""

    def __init__(self, errors: List[str], fields: Optional[List[str]] = None):
        self.errors = list(errors)
        self.fields = list(fields or [])
        super().__init__("; ".join(self.errors))


class QuerySyntaxError(MeditrackError):
    """Query text was rejected before reaching a backend."""


class EmptyQueryError(QuerySyntaxError):
    def __init__(self):
        super().__init__("Query cannot be empty")


class DestructiveQueryError(QuerySyntaxError):
    def __init__(self):
        super().__init__("Destructive queries are not allowed")


class MissingFromClauseError(QuerySyntaxError):
    def __init__(self):
        super().__init__("Invalid SELECT query: Missing FROM clause")


class TableNotFoundError(QuerySyntaxError):
    def __init__(self, table: str):
        self.table = table
        super().__init__(f"Table '{table}' does not exist. Only 'patients' table is available")


class UnsupportedQueryError(QuerySyntaxError):
    """The in-memory interpreter does not understand part of the query."""


class UnknownColumnError(QuerySyntaxError):
    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Column '{column}' does not exist")


class QueryExecutionError(MeditrackError):
    """The embedded engine failed while running a statement."""


class StorageError(MeditrackError):
    """Persisted key-value storage could not be read or written."""
