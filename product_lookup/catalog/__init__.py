"""
==============================================================================
Catalog Package - Product Resolution
==============================================================================

Resolution of scanned codes against the product dataset.

Classes:
--------
- ProductRecord: Typed dataset row
- ResolvedItem: Priced product returned to callers
- ResolutionEngine: Code classification, lookup and pricing

==============================================================================
"""

from .models import ProductRecord, ResolvedItem
from .codes import LookupPath, normalize_code, parse_numeric_or_default
from .engine import ResolutionEngine, format_item

__all__ = [
    "ProductRecord",
    "ResolvedItem",
    "LookupPath",
    "normalize_code",
    "parse_numeric_or_default",
    "ResolutionEngine",
    "format_item",
]
