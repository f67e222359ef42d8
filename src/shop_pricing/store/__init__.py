"""Data store subpackage - table access consumed by the services."""
from .base import DataStore, DataStoreError, UniqueViolationError, UNIQUE_VIOLATION
from .table_store import TableStore

__all__ = ['DataStore', 'DataStoreError', 'UniqueViolationError', 'UNIQUE_VIOLATION', 'TableStore']
