"""
==============================================================================
Resolution Engine Module
==============================================================================

Resolves a scanned code into a single priced product.

Lookup policy (on the normalized code):
--------------------------------------
- 9 characters: match ``sku``; when nothing matches, match ``barcode``
- fewer than 9, or 10 to 13: match numeric ``barcode``
- more than 13: match ``gtin`` exactly as a string
- empty: InvalidCodeError, no query

Exactly one query runs per call, except the 9-character case which may run
two. The first row of the first query that matches wins; the store orders
duplicates by ascending rowid. No match is a normal outcome: ``resolve``
returns None.

Pricing:
-------
VAT-inclusive price is ``round_half_up(item_price * (vat + 100) / 100, 2)``.
VAT-exclusive price is ``item_price`` as stored. Missing or malformed prices
yield 0.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from product_lookup.core import exceptions
from product_lookup.db import ProductStore
from .codes import (
    LookupPath,
    classify_code,
    integral,
    normalize_code,
    leading_integer,
    leading_number,
    parse_numeric_or_default,
    round_half_up,
)
from .models import ProductRecord, ResolvedItem


# Module logger
logger = logging.getLogger(__name__)


def format_item(record: ProductRecord, code: str, vat_required: bool = True) -> ResolvedItem:
    """
    Turn a matched record into a resolved item.

    Args:
        record: Matched dataset row
        code: Normalized scanned code (last resort for the barcode)
        vat_required: Include VAT in the price

    Returns:
        ResolvedItem whose ``gtin`` is the string form of its ``barcode``
    """
    barcode = None
    if record.gtin and len(record.gtin) > 3:
        barcode = parse_numeric_or_default(record.gtin)
    if barcode is None:
        barcode = record.barcode
    if barcode is None:
        barcode = leading_number(code)
    if barcode is not None:
        barcode = integral(barcode)

    vat = record.vat or 0.0
    price = 0.0
    if record.item_price is not None:
        if vat_required:
            price = round_half_up(record.item_price * (vat + 100) / 100)
        else:
            price = float(record.item_price)

    return ResolvedItem(
        sku=record.sku,
        barcode=barcode,
        gtin=str(barcode) if barcode is not None else "",
        name_en=record.name_en,
        price=price,
        vat=vat,
    )


class ResolutionEngine:
    """
    Owns the opened dataset and answers product lookups.

    Construct once per session and share the instance; it holds no state
    besides the store and its row count.

    Example:
        >>> engine = ResolutionEngine()
        >>> engine.open(data)
        >>> engine.resolve("6281000000123")
        ResolvedItem(sku=333333333, barcode=6281000000123, ...)
    """

    def __init__(
        self,
        store: Optional[ProductStore] = None,
        vat_required_default: bool = True
    ) -> None:
        """
        Initialize the engine.

        Args:
            store: Already opened store (call ``open`` later if None)
            vat_required_default: VAT flag used when ``resolve`` gets None
        """
        self._store = store
        self._vat_required_default = vat_required_default
        self._product_count = store.count() if store is not None else 0

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_ready(self) -> bool:
        """True once a dataset has been opened."""
        return self._store is not None

    @property
    def store(self) -> ProductStore:
        """
        Get the opened store.

        Raises:
            EngineNotReadyError: If no dataset has been opened
        """
        if self._store is None:
            raise exceptions.engine_not_ready()
        return self._store

    @property
    def product_count(self) -> int:
        """Rows in the opened product table, counted once at open (0 when not ready)."""
        return self._product_count if self._store is not None else 0

    def open(self, data: bytes, table: str = "localmaster") -> None:
        """
        Open dataset bytes, replacing any previously opened dataset.

        Raises:
            DatasetInvalidError: If the bytes are not a usable dataset
        """
        store = ProductStore.from_bytes(data, table)
        count = store.count()
        previous, self._store = self._store, store
        self._product_count = count
        if previous is not None:
            previous.close()
        logger.info(f"✅ Dataset opened: {count} products in '{table}'")

    def close(self) -> None:
        """Release the opened dataset."""
        if self._store is not None:
            self._store.close()
            self._store = None
            self._product_count = 0

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def lookup(self, raw_code) -> Optional[ProductRecord]:
        """
        Find the dataset row for a scanned code without pricing it.

        Raises:
            EngineNotReadyError: If no dataset has been opened
            InvalidCodeError: If the code is empty after trimming
        """
        store = self.store
        return self._find(store, normalize_code(raw_code))

    def resolve(self, raw_code, vat_required: Optional[bool] = None) -> Optional[ResolvedItem]:
        """
        Resolve a scanned code into a priced item.

        Args:
            raw_code: Code as produced by the scanner
            vat_required: Include VAT (settings default when None)

        Returns:
            ResolvedItem, or None when no product matches

        Raises:
            EngineNotReadyError: If no dataset has been opened
            InvalidCodeError: If the code is empty after trimming
        """
        store = self.store
        code = normalize_code(raw_code)
        record = self._find(store, code)

        if record is None:
            logger.debug(f"No product for code {code!r}")
            return None

        if vat_required is None:
            vat_required = self._vat_required_default
        return format_item(record, code, vat_required)

    def _find(self, store: ProductStore, code: str) -> Optional[ProductRecord]:
        path = classify_code(code)
        row = None

        if path is LookupPath.SKU_THEN_BARCODE:
            number = leading_integer(code)
            if number is not None:
                row = store.find_first("sku", number)
                if row is None:
                    row = store.find_first("barcode", number)
        elif path is LookupPath.BARCODE:
            number = leading_number(code)
            if number is not None:
                row = store.find_first("barcode", number)
        else:
            row = store.find_first("gtin", code)

        logger.debug(f"Lookup {code!r} via {path.value}: {'hit' if row else 'miss'}")
        return ProductRecord.from_row(row) if row is not None else None

    def __repr__(self) -> str:
        return f"ResolutionEngine(ready={self.is_ready})"
