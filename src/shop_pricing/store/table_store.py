"""
Table Store - pandas-backed DataStore over one DataFrame per table.

Tables load from a directory of CSV files (``products.csv``,
``price_tiers.csv``, ...) or from an Excel workbook with one sheet per table,
and can be written back to CSV.
"""
import logging
import uuid
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd

from .base import DataStore, DataStoreError, Row, UniqueViolationError

logger = logging.getLogger(__name__)

# Columns that must stay unique per table (empty values are not compared)
DEFAULT_UNIQUE = {
    'products': ('sku', 'barcode'),
}


def _records(df: pd.DataFrame) -> list[Row]:
    """DataFrame rows as dicts, with NaN turned into None."""
    if df.empty:
        return []
    clean = df.astype(object).where(pd.notna(df), None)
    return clean.to_dict(orient='records')


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return str(value).strip() == ''


def _sort_key(series: pd.Series) -> pd.Series:
    """Sort numerically when every present value parses as a number."""
    numeric = pd.to_numeric(series, errors='coerce')
    if numeric.notna().sum() == series.notna().sum():
        return numeric
    return series.astype(str)


class TableStore(DataStore):
    """In-memory tables with optional CSV persistence."""

    def __init__(
        self,
        tables: Optional[dict[str, pd.DataFrame]] = None,
        unique: Optional[dict[str, tuple]] = None,
        directory: Optional[Path] = None
    ):
        self.tables: dict[str, pd.DataFrame] = {
            name: df.astype(object) for name, df in (tables or {}).items()
        }
        self.unique = DEFAULT_UNIQUE if unique is None else unique
        self.directory = directory

    @classmethod
    def from_directory(cls, directory: Path, **kwargs) -> 'TableStore':
        """Load every ``*.csv`` in ``directory`` as a table named after the file."""
        directory = Path(directory)
        if not directory.exists():
            raise FileNotFoundError(f"Data directory not found at {directory}")

        tables = {}
        for path in sorted(directory.glob('*.csv')):
            tables[path.stem] = pd.read_csv(path, dtype=str)
            logger.debug("Loaded table %s (%d rows)", path.stem, len(tables[path.stem]))
        return cls(tables, directory=directory, **kwargs)

    @classmethod
    def from_workbook(cls, workbook: Path, **kwargs) -> 'TableStore':
        """Load an .xlsx workbook, one table per sheet."""
        workbook = Path(workbook)
        if not workbook.exists():
            raise FileNotFoundError(f"Workbook not found at {workbook}")

        sheets = pd.read_excel(workbook, sheet_name=None, dtype=str)
        tables = {name.strip(): df for name, df in sheets.items()}
        return cls(tables, **kwargs)

    @classmethod
    def from_records(cls, tables: dict[str, list[Row]], **kwargs) -> 'TableStore':
        return cls({name: pd.DataFrame(rows) for name, rows in tables.items()}, **kwargs)

    def table_names(self) -> list[str]:
        return sorted(self.tables)

    def _table(self, table: str) -> pd.DataFrame:
        return self.tables.get(table, pd.DataFrame())

    def _mask(self, df: pd.DataFrame, eq: Optional[dict[str, Any]]) -> pd.Series:
        mask = pd.Series(True, index=df.index)
        for column, value in (eq or {}).items():
            if column not in df.columns:
                return pd.Series(False, index=df.index)
            if value is None:
                mask &= df[column].isna()
            else:
                mask &= df[column].astype(str) == str(value)
        return mask

    def select(
        self,
        table: str,
        eq: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> list[Row]:
        df = self._table(table)
        if df.empty:
            return []

        matches = df[self._mask(df, eq)]
        if order_by:
            if order_by not in matches.columns:
                raise DataStoreError(f"column {table}.{order_by} does not exist", code="42703")
            matches = matches.sort_values(
                order_by, ascending=not descending, na_position='last', key=_sort_key
            )
        if limit is not None:
            matches = matches.head(limit)
        return _records(matches)

    def _check_unique(self, table: str, candidates: list[Row], existing: pd.DataFrame):
        for column in self.unique.get(table, ()):
            taken = set()
            if column in existing.columns:
                taken = {str(v).strip() for v in existing[column] if not _is_blank(v)}
            for row in candidates:
                value = row.get(column)
                if _is_blank(value):
                    continue
                key = str(value).strip()
                if key in taken:
                    raise UniqueViolationError(table, column, value)
                taken.add(key)

    def insert(self, table: str, rows: Union[Row, list[Row]]) -> list[Row]:
        rows = [rows] if isinstance(rows, dict) else list(rows)
        prepared = []
        for row in rows:
            row = dict(row)
            if _is_blank(row.get('id')):
                row['id'] = str(uuid.uuid4())
            prepared.append(row)

        current = self._table(table)
        self._check_unique(table, prepared, current)

        new = pd.DataFrame(prepared).astype(object)
        self.tables[table] = new if current.empty else pd.concat([current, new], ignore_index=True)
        logger.debug("Inserted %d row(s) into %s", len(prepared), table)
        return prepared

    def update(self, table: str, values: Row, eq: dict[str, Any]) -> list[Row]:
        df = self._table(table)
        if df.empty:
            return []

        mask = self._mask(df, eq)
        if not mask.any():
            return []

        unique_values = {k: v for k, v in values.items() if k in self.unique.get(table, ())}
        if unique_values:
            if mask.sum() > 1:
                self._check_unique(table, [unique_values] * int(mask.sum()), df[~mask])
            else:
                self._check_unique(table, [unique_values], df[~mask])

        df = df.copy()
        for column, value in values.items():
            if column not in df.columns:
                df[column] = None
            df.loc[mask, column] = value
        self.tables[table] = df
        return _records(df[mask])

    def delete(self, table: str, eq: dict[str, Any]) -> list[Row]:
        df = self._table(table)
        if df.empty:
            return []

        mask = self._mask(df, eq)
        removed = _records(df[mask])
        self.tables[table] = df[~mask].reset_index(drop=True)
        if removed:
            logger.debug("Deleted %d row(s) from %s", len(removed), table)
        return removed

    def save(self, directory: Optional[Path] = None):
        """Write every table back to ``<directory>/<table>.csv``."""
        target = Path(directory or self.directory or '')
        if not str(target):
            raise DataStoreError("No directory to save tables to")
        target.mkdir(parents=True, exist_ok=True)
        for name, df in self.tables.items():
            df.to_csv(target / f'{name}.csv', index=False)
        logger.info("Saved %d table(s) to %s", len(self.tables), target)
