"""
==============================================================================
Product Store Module
==============================================================================

Read-only query access to the product dataset.

The dataset is an SQLite database file held in memory. It is deserialized
into a private ``:memory:`` connection and wrapped in a SQLAlchemy engine
with a StaticPool, so every query runs on that single connection.

Row Order:
---------
Lookups return the first matching row by ascending ``rowid``. The dataset
does not enforce uniqueness of sku/barcode/gtin, so duplicates resolve to
the row inserted first. Tables created WITHOUT ROWID have no such column;
for them the order among duplicates is whatever SQLite returns.

==============================================================================
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, FrozenSet, Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from product_lookup.core import exceptions


# Module logger
logger = logging.getLogger(__name__)

LOOKUP_COLUMNS: FrozenSet[str] = frozenset({"sku", "barcode", "gtin"})


def _open_connection(data: bytes) -> sqlite3.Connection:
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    try:
        conn.deserialize(data)
        conn.execute("PRAGMA query_only = ON")
    except sqlite3.Error:
        conn.close()
        raise
    return conn


class ProductStore:
    """
    Read-only product table backed by an in-memory SQLite database.

    Attributes:
        table: Name of the master table
        columns: Column names present in the master table

    Example:
        >>> store = ProductStore.from_bytes(data)
        >>> store.find_first("sku", 123456789)
        {'sku': 123456789, 'barcode': 5000001, ...}
    """

    def __init__(self, engine: Engine, table: str = "localmaster") -> None:
        """
        Initialize the store and validate the master table.

        Args:
            engine: SQLAlchemy engine bound to the dataset
            table: Master table name (plain identifier)

        Raises:
            DatasetInvalidError: If the table or its lookup columns are missing
        """
        self._engine = engine
        self.table = table
        self.columns: FrozenSet[str] = frozenset()
        self._order_by = ""

        self._validate()
        self._statements = {
            column: text(
                f'SELECT * FROM "{table}" WHERE "{column}" = :value{self._order_by} LIMIT 1'
            )
            for column in LOOKUP_COLUMNS
        }

    @classmethod
    def from_bytes(cls, data: bytes, table: str = "localmaster") -> "ProductStore":
        """
        Open a dataset byte buffer as a store.

        Raises:
            DatasetInvalidError: If the bytes are not a usable SQLite dataset
        """
        engine = create_engine(
            "sqlite://",
            creator=lambda: _open_connection(data),
            poolclass=StaticPool,
        )
        try:
            return cls(engine, table)
        except exceptions.DatasetInvalidError:
            engine.dispose()
            raise

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def _validate(self) -> None:
        try:
            inspector = inspect(self._engine)
            if not inspector.has_table(self.table):
                raise exceptions.dataset_invalid(f"table '{self.table}' not found")

            self.columns = frozenset(col["name"] for col in inspector.get_columns(self.table))
            self._order_by = " ORDER BY rowid" if self._has_rowid() else ""
        except (SQLAlchemyError, sqlite3.Error) as e:
            raise exceptions.dataset_invalid(str(e)) from e

        missing = LOOKUP_COLUMNS - self.columns
        if missing:
            raise exceptions.dataset_invalid(
                f"table '{self.table}' lacks columns: {', '.join(sorted(missing))}"
            )

        logger.debug(f"Validated table '{self.table}' with columns {sorted(self.columns)}")

    def _has_rowid(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text(f'SELECT rowid FROM "{self.table}" LIMIT 1'))
        except SQLAlchemyError:
            logger.warning(f"⚠️ Table '{self.table}' has no rowid; duplicate order is unspecified")
            return False
        return True

    # =========================================================================
    # QUERIES
    # =========================================================================

    def find_first(self, column: str, value: Any) -> Optional[Dict[str, Any]]:
        """
        Return the first row whose ``column`` equals ``value``.

        Args:
            column: One of sku, barcode, gtin
            value: Bound parameter compared with SQLite equality semantics

        Returns:
            Row as a plain dict, or None when nothing matches

        Raises:
            ValueError: If the column is not a lookup column
            DatasetQueryError: If the query fails
        """
        statement = self._statements.get(column)
        if statement is None:
            raise ValueError(f"Unsupported lookup column: {column!r}")

        try:
            with self._engine.connect() as conn:
                row = conn.execute(statement, {"value": value}).mappings().first()
        except SQLAlchemyError as e:
            logger.error(f"DB query error on {column}: {e}")
            raise exceptions.query_failed(column, str(e)) from e

        return dict(row) if row is not None else None

    def count(self) -> int:
        """Number of rows in the master table."""
        with self._engine.connect() as conn:
            return int(conn.execute(text(f'SELECT COUNT(*) FROM "{self.table}"')).scalar_one())

    def close(self) -> None:
        """Release the in-memory database."""
        self._engine.dispose()
        logger.debug("Product store disposed")

    def __repr__(self) -> str:
        return f"ProductStore(table={self.table!r})"
