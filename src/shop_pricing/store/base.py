"""
Data store contract - table-oriented access used by the catalog service.

Any backend (a hosted Postgres API, a local table store, a test double) is
usable as long as it answers these calls with lists of plain dict rows.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

# Postgres SQLSTATE for unique_violation; callers match on it to report
# duplicate SKUs/barcodes
UNIQUE_VIOLATION = "23505"
MULTIPLE_ROWS = "multiple_rows"


class DataStoreError(Exception):
    """A data store call failed."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)


class UniqueViolationError(DataStoreError):
    """An insert or update would duplicate a unique column."""

    def __init__(self, table: str, column: str, value: Any):
        self.table = table
        self.column = column
        self.value = value
        super().__init__(
            f"duplicate value '{value}' for {table}.{column}",
            code=UNIQUE_VIOLATION
        )


Row = dict[str, Any]


class DataStore(ABC):
    """Query/insert/update/delete by table name with equality predicates."""

    @abstractmethod
    def select(
        self,
        table: str,
        eq: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> list[Row]:
        """Return rows matching every equality filter."""

    def select_one(self, table: str, eq: Optional[dict[str, Any]] = None) -> Optional[Row]:
        """Return the single matching row, None when there is none."""
        rows = self.select(table, eq=eq, limit=2)
        if len(rows) > 1:
            raise DataStoreError(
                f"expected at most one row from {table} for {eq}",
                code=MULTIPLE_ROWS
            )
        return rows[0] if rows else None

    @abstractmethod
    def insert(self, table: str, rows: Union[Row, list[Row]]) -> list[Row]:
        """Insert one or more rows and return them as stored."""

    @abstractmethod
    def update(self, table: str, values: Row, eq: dict[str, Any]) -> list[Row]:
        """Update matching rows and return them as stored."""

    @abstractmethod
    def delete(self, table: str, eq: dict[str, Any]) -> list[Row]:
        """Delete matching rows and return what was removed."""
