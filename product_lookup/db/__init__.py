"""
==============================================================================
Database Package
==============================================================================

Read-only access to the in-memory product dataset.

Architecture:
------------
└── store.py   - ProductStore over a deserialized SQLite database

Usage:
------
    from product_lookup.db import ProductStore

    store = ProductStore.from_bytes(data)
    row = store.find_first("barcode", 6281000000123)

==============================================================================
"""

from .store import LOOKUP_COLUMNS, ProductStore

__all__ = [
    "LOOKUP_COLUMNS",
    "ProductStore",
]
