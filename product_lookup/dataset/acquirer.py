"""
==============================================================================
Dataset Acquirer Module
==============================================================================

Obtains the product dataset bytes for a session.

Strategy:
---------
1. Read the entry from the persistent cache. A hit returns immediately
   (no network, no progress events) after calling ``on_cache_hit``.
2. On a miss, stream the dataset over HTTP. When the server declares a
   Content-Length, ``on_progress(percent)`` is called after every chunk;
   otherwise the body is read in one go without progress.
3. Hand the bytes to the optional ``accept`` check. A cached entry it rejects
   counts as a miss; a download it rejects is raised and never cached.
4. After an accepted network load, write the bytes back to the cache in a
   background task. A failed write is logged and forgotten.

Cache read and write errors never surface. Network errors, including a body
shorter than its declared Content-Length, raise AcquisitionError and nothing
is written to the cache.

==============================================================================
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, Optional, Set

import httpx

from product_lookup.config import Settings
from product_lookup.core import exceptions
from .cache import CacheStore, FileCacheStore


# Module logger
logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]
CacheHitCallback = Callable[[], None]
AcceptCallback = Callable[[bytes], None]


def progress_percent(received: int, total: int) -> int:
    """
    Percentage of ``total`` received, rounded half-up and clamped to 0..100.

    Example:
        >>> progress_percent(1, 8)
        13
    """
    if total <= 0:
        return 0
    percent = int(received * 100 / total + 0.5)
    return max(0, min(100, percent))


def declared_length(response: httpx.Response) -> int:
    """Content-Length of a response, or 0 when absent or unparsable."""
    raw = response.headers.get("Content-Length")
    if not raw:
        return 0
    try:
        return max(0, int(raw))
    except ValueError:
        logger.warning(f"Ignoring unparsable Content-Length: {raw!r}")
        return 0


class DatasetAcquirer:
    """
    Cache-first loader for the product dataset.

    Attributes:
        url: Dataset download URL
        namespace: Versioned cache namespace
        key: Resource key inside the namespace

    Example:
        >>> acquirer = DatasetAcquirer.from_settings(get_settings())
        >>> data = await acquirer.load(on_progress=print)
    """

    def __init__(
        self,
        url: str,
        cache: CacheStore,
        namespace: str,
        key: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        chunk_size: Optional[int] = None,
    ) -> None:
        """
        Initialize the acquirer.

        Args:
            url: Dataset download URL
            cache: Persistent cache store
            namespace: Versioned cache namespace
            key: Resource key inside the namespace
            client: Shared HTTP client (a private one is created per load if None)
            timeout: Network timeout in seconds (None disables timeouts)
            chunk_size: Re-chunk streamed bodies to this size (None keeps server chunks)
        """
        self.url = url
        self.namespace = namespace
        self.key = key
        self._cache = cache
        self._client = client
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._pending_writes: Set[asyncio.Task] = set()
        self.last_source: Optional[str] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        cache: Optional[CacheStore] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "DatasetAcquirer":
        """Build an acquirer from application settings."""
        return cls(
            settings.dataset_url,
            cache or FileCacheStore(settings.cache_path),
            settings.cache_namespace,
            settings.dataset_key,
            client=client,
            timeout=settings.fetch_timeout_seconds,
            chunk_size=settings.download_chunk_size,
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def load(
        self,
        on_progress: Optional[ProgressCallback] = None,
        on_cache_hit: Optional[CacheHitCallback] = None,
        accept: Optional[AcceptCallback] = None,
    ) -> bytes:
        """
        Load the dataset bytes, from cache when possible.

        Args:
            on_progress: Called with a percentage after each downloaded chunk
            on_cache_hit: Called once when the dataset came from the cache
            accept: Called with the bytes before they are returned or cached;
                raising DatasetInvalidError rejects them

        Returns:
            Complete dataset bytes

        Raises:
            AcquisitionError: If the download fails
            DatasetInvalidError: If ``accept`` rejects the downloaded bytes
        """
        data = await self._read_cache()
        if data is not None and self._accepted(data, accept):
            logger.info(f"📦 Dataset loaded from cache {self.namespace}/{self.key} ({len(data)} bytes)")
            self.last_source = "cache"
            if on_cache_hit:
                on_cache_hit()
            return data

        logger.info(f"⬇️ Cache miss, downloading dataset from {self.url}")
        data = await self._download(on_progress)
        self.last_source = "network"
        logger.info(f"✅ Dataset downloaded ({len(data)} bytes)")

        if accept:
            accept(data)

        self._schedule_cache_write(data)
        return data

    def _accepted(self, data: bytes, accept: Optional[AcceptCallback]) -> bool:
        """Check cached bytes; a rejected entry counts as a miss."""
        if accept is None:
            return True
        try:
            accept(data)
        except exceptions.DatasetInvalidError as e:
            logger.warning(f"⚠️ Cached dataset rejected, will download: {e.message}")
            return False
        return True

    async def wait_for_cache_writes(self) -> None:
        """Wait until background cache writes have finished."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes))

    # =========================================================================
    # CACHE
    # =========================================================================

    async def _read_cache(self) -> Optional[bytes]:
        """Read the cached entry; any failure counts as a miss."""
        try:
            data = await asyncio.to_thread(self._cache.get, self.namespace, self.key)
        except Exception as e:
            logger.warning(f"⚠️ Cache read failed, will download: {e}")
            return None

        if not data:
            return None
        return data

    def _schedule_cache_write(self, data: bytes) -> None:
        task = asyncio.create_task(self._write_cache(data))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write_cache(self, data: bytes) -> None:
        try:
            await asyncio.to_thread(self._cache.put, self.namespace, self.key, data)
        except Exception as e:
            logger.warning(f"⚠️ Cache write failed: {e}")
            return
        logger.info(f"💾 Dataset stored in cache {self.namespace}/{self.key}")

    # =========================================================================
    # NETWORK
    # =========================================================================

    def _client_context(self):
        if self._client is not None:
            return contextlib.nullcontext(self._client)
        return httpx.AsyncClient(timeout=httpx.Timeout(self._timeout), follow_redirects=True)

    async def _download(self, on_progress: Optional[ProgressCallback]) -> bytes:
        try:
            async with self._client_context() as client:
                async with client.stream("GET", self.url) as response:
                    response.raise_for_status()
                    total = declared_length(response)

                    if not total:
                        logger.debug("No Content-Length declared, reading whole body")
                        data = await response.aread()
                    else:
                        data = await self._read_with_progress(response, total, on_progress)
        except httpx.HTTPStatusError as e:
            logger.error(f"❌ Dataset download failed with HTTP {e.response.status_code}")
            raise exceptions.acquisition_failed(
                f"HTTP {e.response.status_code}", self.url
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"❌ Dataset download failed: {e}")
            raise exceptions.acquisition_failed(str(e) or type(e).__name__, self.url) from e

        if not data:
            raise exceptions.acquisition_failed("empty response body", self.url)

        return data

    async def _read_with_progress(
        self,
        response: httpx.Response,
        total: int,
        on_progress: Optional[ProgressCallback],
    ) -> bytes:
        chunks = []
        received = 0
        last_percent = 0

        async for chunk in response.aiter_bytes(self._chunk_size):
            if not chunk:
                continue
            chunks.append(chunk)
            received += len(chunk)

            percent = max(last_percent, progress_percent(received, total))
            last_percent = percent
            if on_progress:
                on_progress(percent)

        if received < total:
            logger.error(f"❌ Dataset body truncated: {received} of {total} bytes")
            raise exceptions.acquisition_failed(
                f"truncated body: received {received} of {total} bytes", self.url
            )
        if received > total:
            logger.warning(f"⚠️ Received {received} bytes, server declared {total}")

        return b"".join(chunks)

    def __repr__(self) -> str:
        return f"DatasetAcquirer(url={self.url!r}, namespace={self.namespace!r}, key={self.key!r})"
