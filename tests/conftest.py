"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides an in-memory product dataset, engine, cache and API client
fixtures.

==============================================================================
"""

import sqlite3
from pathlib import Path
from typing import Generator, Iterable, Sequence

import pytest
from fastapi.testclient import TestClient

from product_lookup.catalog import ResolutionEngine
from product_lookup.config import Settings
from product_lookup.dataset import FileCacheStore


# ============================================================================
# DATASET FIXTURES
# ============================================================================

DATASET_URL = "http://datasets.test/localDB.db"

MASTER_TABLE_SQL = """
CREATE TABLE localmaster (
    sku INTEGER,
    barcode NUMERIC,
    gtin TEXT,
    name_en TEXT,
    item_price NUMERIC,
    vat NUMERIC
)
"""

# (sku, barcode, gtin, name_en, item_price, vat)
PRODUCT_ROWS = [
    (123456789, 5000001, None, "Panadol 500mg 24 Tablets", 10.00, 15),
    (111111111, 987654321, None, "Vitamin C 1000mg", 20.0, 0),
    (222222222, 12345678, None, "Elastic Bandage", 5.5, 0),
    (333333333, 6281000000123, "6281000000123", "Hand Sanitizer 500ml", 8.0, 15),
    (444444444, None, "06281000000456", "Baby Wipes 72pcs", 12.0, 15),
    (555555555, 12345678901234, "99999999999999", "Mismatched GTIN Item", 1.0, 0),
    (777777777, 7777777, None, "Duplicate First", 1.0, 0),
    (777777778, 7777777, None, "Duplicate Second", 2.0, 0),
    (666666666, 4444444, "ab", "Dirty Row", "n/a", "x"),
    (888888888, 3333333, None, "No Price", None, 15),
    (999999999, None, None, "Bare Row", 4.0, None),
    (246813579, 123456789, None, "Barcode Twin", 3.0, 0),
]


def build_dataset(
    rows: Iterable[Sequence] = PRODUCT_ROWS,
    create_sql: str = MASTER_TABLE_SQL,
    table: str = "localmaster",
) -> bytes:
    """Create an SQLite database in memory and return its file image."""
    conn = sqlite3.connect(":memory:")
    try:
        conn.execute(create_sql)
        rows = list(rows)
        if rows:
            placeholders = ", ".join("?" for _ in rows[0])
            conn.executemany(f"INSERT INTO {table} VALUES ({placeholders})", rows)
        conn.commit()
        return conn.serialize()
    finally:
        conn.close()


@pytest.fixture(scope="session")
def dataset_bytes() -> bytes:
    """File image of the standard test dataset."""
    return build_dataset()


@pytest.fixture
def engine(dataset_bytes: bytes) -> Generator[ResolutionEngine, None, None]:
    """Resolution engine with the standard dataset opened."""
    resolution_engine = ResolutionEngine()
    resolution_engine.open(dataset_bytes)
    yield resolution_engine
    resolution_engine.close()


# ============================================================================
# CACHE / SETTINGS FIXTURES
# ============================================================================

@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    """Empty cache root directory."""
    return tmp_path / "cache"


@pytest.fixture
def cache(cache_root: Path) -> FileCacheStore:
    """Empty filesystem cache store."""
    return FileCacheStore(cache_root)


@pytest.fixture
def settings(cache_root: Path) -> Settings:
    """Settings pointing at the temporary cache and a fake dataset URL."""
    return Settings(
        cache_directory=str(cache_root),
        dataset_url=DATASET_URL,
        debug=False,
    )


@pytest.fixture
def warm_cache(settings: Settings, cache: FileCacheStore, dataset_bytes: bytes) -> FileCacheStore:
    """Cache already holding the standard dataset for the configured version."""
    cache.put(settings.cache_namespace, settings.dataset_key, dataset_bytes)
    return cache


# ============================================================================
# API FIXTURES
# ============================================================================

@pytest.fixture
def client(settings: Settings, warm_cache: FileCacheStore) -> Generator[TestClient, None, None]:
    """Test client whose startup loads the dataset from the warm cache."""
    from product_lookup.main import Application

    application = Application(settings=settings)
    with TestClient(application.app) as test_client:
        yield test_client
