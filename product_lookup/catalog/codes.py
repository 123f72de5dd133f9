"""
==============================================================================
Scanned Code Helpers
==============================================================================

Normalization and classification of scanned codes, plus the lenient
numeric parsing used when formatting dataset rows. Scanned codes are read
by their leading number, so "12345678A" queries 12345678.

Classification by normalized length:
-----------------------------------
    length == 9     → sku, then barcode
    length < 9      → barcode (numeric)
    10..13          → barcode (numeric)
    length > 13     → gtin (exact string)
    length == 0     → InvalidCodeError

==============================================================================
"""

from __future__ import annotations

import enum
import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Union

from product_lookup.core import exceptions


Number = Union[int, float]

# Scanners prepend two framing characters to long symbologies.
MAX_CLEAN_LENGTH = 16
FRAMING_PREFIX = 2
SKU_LENGTH = 9
MIN_GTIN_LENGTH = 14

_LEADING_INTEGER = re.compile(r"[+-]?\d+")
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class LookupPath(str, enum.Enum):
    """Query path chosen for a normalized code."""

    SKU_THEN_BARCODE = "sku_then_barcode"
    BARCODE = "barcode"
    GTIN = "gtin"


def normalize_code(raw: Any) -> str:
    """
    Trim a scanned code and strip scanner framing from long codes.

    Codes longer than 16 characters lose their first two characters and
    are capped at 14 significant characters.

    Example:
        >>> normalize_code("AB12345678901234CDEF")
        '12345678901234'
    """
    code = "" if raw is None else str(raw).strip()
    if len(code) > MAX_CLEAN_LENGTH:
        code = code[FRAMING_PREFIX:MAX_CLEAN_LENGTH]
    return code


def classify_code(code: str) -> LookupPath:
    """
    Pick the lookup path for an already normalized code.

    Raises:
        InvalidCodeError: If the code is empty
    """
    length = len(code)
    if length == 0:
        raise exceptions.invalid_code(code)
    if length == SKU_LENGTH:
        return LookupPath.SKU_THEN_BARCODE
    if length >= MIN_GTIN_LENGTH:
        return LookupPath.GTIN
    return LookupPath.BARCODE


def parse_numeric_or_default(value: Any, default: Optional[Number] = None) -> Optional[Number]:
    """
    Parse a dataset value as a number, returning ``default`` when it is not one.

    Integers (and digit strings) stay ``int``; everything else numeric
    becomes ``float``. None, blanks, booleans, NaN and infinities count
    as unparsable.

    Example:
        >>> parse_numeric_or_default("12.50")
        12.5
        >>> parse_numeric_or_default("n/a", 0)
        0
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else default
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")

    text = str(value).strip()
    if not text or "_" in text:
        return default
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return default
    return number if math.isfinite(number) else default


def parse_integer_or_default(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Parse a value as an integer; non-integral numbers yield ``default``."""
    number = parse_numeric_or_default(value)
    if number is None:
        return default
    if isinstance(number, float):
        return int(number) if number.is_integer() else default
    return number


def leading_integer(code: str) -> Optional[int]:
    """
    Read the decimal integer a scanned code starts with.

    Trailing characters after the digits are ignored, so check digits
    or symbology suffixes do not stop a lookup.

    Example:
        >>> leading_integer("12345678A")
        12345678
        >>> leading_integer("A1") is None
        True
    """
    match = _LEADING_INTEGER.match(code.strip())
    return int(match.group()) if match else None


def leading_number(code: str) -> Optional[Number]:
    """
    Read the decimal number a scanned code starts with.

    Integral results are returned as ``int``.

    Example:
        >>> leading_number("5000001X")
        5000001
        >>> leading_number("12.5kg")
        12.5
    """
    match = _LEADING_NUMBER.match(code.strip())
    if not match:
        return None
    number = float(match.group())
    if not math.isfinite(number):
        return None
    return integral(number)


def integral(number: Number) -> Number:
    """Collapse integral floats to int (6281000000123.0 → 6281000000123)."""
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def round_half_up(value: float, places: int = 2) -> float:
    """
    Round to ``places`` decimals, halves away from zero.

    Example:
        >>> round_half_up(9.1885)
        9.19
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
