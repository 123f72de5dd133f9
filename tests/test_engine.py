"""
==============================================================================
Resolution Engine Tests
==============================================================================

Tests for lookup policy, pricing and dataset validation.

==============================================================================
"""

import pytest

from product_lookup.catalog import ProductRecord, ResolutionEngine, ResolvedItem, format_item
from product_lookup.core.exceptions import (
    DatasetInvalidError,
    EngineNotReadyError,
    InvalidCodeError,
)
from product_lookup.db import ProductStore

from .conftest import PRODUCT_ROWS, build_dataset


class TestLookupPolicy:
    """Tests for code classification and fallback order."""

    def test_nine_digit_code_matches_sku(self, engine: ResolutionEngine):
        item = engine.resolve("123456789")
        assert item is not None
        assert item.sku == 123456789
        assert item.name_en == "Panadol 500mg 24 Tablets"

    def test_sku_wins_over_barcode(self, engine: ResolutionEngine):
        """Another row carries 123456789 as barcode; the sku row is returned."""
        item = engine.resolve("123456789")
        assert item.name_en != "Barcode Twin"

    def test_nine_digit_code_falls_back_to_barcode(self, engine: ResolutionEngine):
        item = engine.resolve("987654321")
        assert item is not None
        assert item.sku == 111111111
        assert item.name_en == "Vitamin C 1000mg"

    def test_nine_digit_code_without_match_is_not_found(self, engine: ResolutionEngine):
        assert engine.resolve("135792468") is None

    def test_short_code_matches_barcode(self, engine: ResolutionEngine):
        item = engine.resolve("12345678")
        assert item.name_en == "Elastic Bandage"

    def test_thirteen_digit_code_matches_barcode(self, engine: ResolutionEngine):
        item = engine.resolve("6281000000123")
        assert item.sku == 333333333

    def test_long_code_matches_gtin(self, engine: ResolutionEngine):
        item = engine.resolve("06281000000456")
        assert item.sku == 444444444

    def test_long_code_never_matches_barcode(self, engine: ResolutionEngine):
        """The row's barcode equals the code numerically, but its gtin differs."""
        assert engine.resolve("12345678901234") is None

    def test_long_code_exact_gtin(self, engine: ResolutionEngine):
        item = engine.resolve("99999999999999")
        assert item.sku == 555555555

    def test_framed_scanner_code(self, engine: ResolutionEngine):
        item = engine.resolve("]C06281000000456WXYZ")
        assert item.sku == 444444444

    def test_surrounding_whitespace(self, engine: ResolutionEngine):
        item = engine.resolve("  5000001  ")
        assert item.sku == 123456789

    def test_duplicates_resolve_to_first_row(self, engine: ResolutionEngine):
        item = engine.resolve("7777777")
        assert item.name_en == "Duplicate First"

    def test_non_numeric_short_code_is_not_found(self, engine: ResolutionEngine):
        assert engine.resolve("ABC123") is None

    def test_trailing_text_after_barcode_is_ignored(self, engine: ResolutionEngine):
        item = engine.resolve("5000001X")
        assert item.sku == 123456789
        assert item.barcode == 5000001

    def test_trailing_text_on_nine_character_code(self, engine: ResolutionEngine):
        """'12345678A' misses on sku 12345678 and matches that barcode instead."""
        item = engine.resolve("12345678A")
        assert item.name_en == "Elastic Bandage"
        assert item.gtin == "12345678"

    def test_text_barcode_column(self):
        """Barcodes stored as text still match integral scanned codes."""
        data = build_dataset(
            rows=[
                (123456789, "5000001", None, "Panadol 500mg 24 Tablets", 10.0, 15),
                (111111111, "987654321", None, "Vitamin C 1000mg", 20.0, 0),
            ],
            create_sql=(
                "CREATE TABLE localmaster (sku INTEGER, barcode TEXT, gtin TEXT, "
                "name_en TEXT, item_price NUMERIC, vat NUMERIC)"
            ),
        )
        engine = ResolutionEngine()
        engine.open(data)
        try:
            assert engine.resolve("5000001").sku == 123456789
            assert engine.resolve("987654321").sku == 111111111
        finally:
            engine.close()

    @pytest.mark.parametrize("code", ["", "   ", "\t\n"])
    def test_empty_code_raises(self, engine: ResolutionEngine, code):
        with pytest.raises(InvalidCodeError):
            engine.resolve(code)

    def test_lookup_returns_record(self, engine: ResolutionEngine):
        record = engine.lookup("5000001")
        assert isinstance(record, ProductRecord)
        assert record.item_price == 10.0
        assert record.vat == 15.0


class TestPricing:
    """Tests for VAT computation and output identity fields."""

    def test_vat_inclusive_price(self, engine: ResolutionEngine):
        item = engine.resolve("5000001")
        assert item.price == 11.50

    def test_vat_exclusive_price(self, engine: ResolutionEngine):
        item = engine.resolve("5000001", vat_required=False)
        assert item.price == 10.00

    def test_default_vat_flag_from_engine(self, dataset_bytes: bytes):
        engine = ResolutionEngine(vat_required_default=False)
        engine.open(dataset_bytes)
        try:
            assert engine.resolve("5000001").price == 10.0
        finally:
            engine.close()

    def test_barcode_taken_from_gtin(self, engine: ResolutionEngine):
        item = engine.resolve("06281000000456")
        assert item.barcode == 6281000000456
        assert item.gtin == "6281000000456"
        assert item.price == 13.8

    def test_barcode_taken_from_barcode_column(self, engine: ResolutionEngine):
        item = engine.resolve("12345678")
        assert item.barcode == 12345678
        assert item.gtin == "12345678"

    def test_barcode_falls_back_to_code(self, engine: ResolutionEngine):
        item = engine.resolve("999999999")
        assert item.barcode == 999999999
        assert item.gtin == "999999999"
        assert item.vat == 0
        assert item.price == 4.0

    def test_malformed_fields_degrade(self, engine: ResolutionEngine):
        """Short gtin, text price and text VAT never raise."""
        item = engine.resolve("4444444")
        assert item.name_en == "Dirty Row"
        assert item.barcode == 4444444
        assert item.gtin == "4444444"
        assert item.price == 0
        assert item.vat == 0

    def test_missing_price_is_zero(self, engine: ResolutionEngine):
        item = engine.resolve("3333333")
        assert item.price == 0
        assert item.vat == 15

    def test_resolved_item_is_frozen(self, engine: ResolutionEngine):
        item = engine.resolve("5000001")
        with pytest.raises(Exception):
            item.price = 1.0

    def test_format_item_rounding(self):
        record = ProductRecord(sku=1, barcode=42, item_price=3.333, vat=0)
        item = format_item(record, "42")
        assert item == ResolvedItem(sku=1, barcode=42, gtin="42", price=3.33, vat=0)

    def test_format_item_without_any_barcode(self):
        record = ProductRecord(sku=1, name_en="Loose", item_price=1.0)
        item = format_item(record, "ABC")
        assert item.barcode is None
        assert item.gtin == ""


class TestEngineLifecycle:
    """Tests for readiness and dataset validation."""

    def test_resolve_before_open(self):
        engine = ResolutionEngine()
        assert engine.is_ready is False
        with pytest.raises(EngineNotReadyError):
            engine.resolve("5000001")

    def test_not_ready_checked_before_code(self):
        with pytest.raises(EngineNotReadyError):
            ResolutionEngine().resolve("")

    def test_close_makes_engine_unready(self, dataset_bytes: bytes):
        engine = ResolutionEngine()
        engine.open(dataset_bytes)
        assert engine.is_ready
        engine.close()
        assert not engine.is_ready

    def test_invalid_bytes_rejected(self):
        with pytest.raises(DatasetInvalidError):
            ProductStore.from_bytes(b"this is not an sqlite database")

    def test_missing_table_rejected(self):
        data = build_dataset(
            rows=[],
            create_sql="CREATE TABLE other (sku INTEGER)",
            table="other",
        )
        with pytest.raises(DatasetInvalidError) as exc_info:
            ProductStore.from_bytes(data)
        assert "localmaster" in exc_info.value.message

    def test_missing_lookup_column_rejected(self):
        data = build_dataset(
            rows=[],
            create_sql="CREATE TABLE localmaster (sku INTEGER, barcode NUMERIC, name_en TEXT)",
        )
        with pytest.raises(DatasetInvalidError) as exc_info:
            ProductStore.from_bytes(data)
        assert "gtin" in exc_info.value.message

    def test_failed_open_keeps_previous_dataset(self, engine: ResolutionEngine):
        with pytest.raises(DatasetInvalidError):
            engine.open(b"garbage")
        assert engine.resolve("5000001") is not None

    def test_store_rejects_unknown_column(self, engine: ResolutionEngine):
        with pytest.raises(ValueError):
            engine.store.find_first("name_en", "x")

    def test_store_count(self, engine: ResolutionEngine):
        assert engine.store.count() == 12

    def test_product_count_cached_at_open(self, dataset_bytes: bytes):
        engine = ResolutionEngine()
        assert engine.product_count == 0
        engine.open(dataset_bytes)
        assert engine.product_count == 12
        engine.close()
        assert engine.product_count == 0

    def test_product_count_follows_reopen(self, engine: ResolutionEngine):
        engine.open(build_dataset(rows=PRODUCT_ROWS[:3]))
        assert engine.product_count == 3
