"""
==============================================================================
Dataset Package - Acquisition and Caching
==============================================================================

Cache-first acquisition of the versioned product dataset.

Classes:
--------
- DatasetAcquirer: Loads dataset bytes from cache or network
- FileCacheStore: Filesystem implementation of the cache store
- CacheStore: Protocol implemented by cache stores

==============================================================================
"""

from .cache import CacheStore, FileCacheStore
from .acquirer import DatasetAcquirer, progress_percent

__all__ = [
    "CacheStore",
    "FileCacheStore",
    "DatasetAcquirer",
    "progress_percent",
]
