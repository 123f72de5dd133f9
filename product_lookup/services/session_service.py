"""
==============================================================================
Lookup Session Service Module
==============================================================================

Startup sequence of a lookup session:

    DatasetAcquirer.load()  →  ResolutionEngine.open()  →  resolve() ...

The session owns one acquirer and one engine for the process lifetime and
tracks where startup stands so health endpoints can report it. A failed
acquisition is fatal: ``start`` re-raises the AcquisitionError after
recording it.

The engine opens the bytes inside the acquirer's ``accept`` check, so a
cached dataset that does not open is downloaded again, and a download that
does not open is never cached.

==============================================================================
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Dict, Optional

from product_lookup.catalog import ResolutionEngine
from product_lookup.config import Settings, get_settings
from product_lookup.core.exceptions import AcquisitionError
from product_lookup.dataset import DatasetAcquirer
from product_lookup.dataset.acquirer import CacheHitCallback, ProgressCallback


# Module logger
logger = logging.getLogger(__name__)

PROGRESS_LOG_STEP = 10


class SessionState(str, enum.Enum):
    """Startup state of a lookup session."""

    PENDING = "pending"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class LookupSession:
    """
    Per-process lookup session.

    Attributes:
        settings: Application settings
        acquirer: Dataset acquirer
        engine: Resolution engine (ready after ``start``)
        state: Current SessionState
        error: AcquisitionError that failed startup, if any
        progress: Last reported download percentage

    Example:
        >>> session = LookupSession()
        >>> engine = await session.start()
        >>> engine.resolve("123456789")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        acquirer: Optional[DatasetAcquirer] = None,
        engine: Optional[ResolutionEngine] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.acquirer = acquirer or DatasetAcquirer.from_settings(self.settings)
        self.engine = engine or ResolutionEngine(
            vat_required_default=self.settings.vat_required_default
        )
        self.state = SessionState.PENDING
        self.error: Optional[AcquisitionError] = None
        self.progress = 0

    async def start(
        self,
        on_progress: Optional[ProgressCallback] = None,
        on_cache_hit: Optional[CacheHitCallback] = None,
    ) -> ResolutionEngine:
        """
        Acquire the dataset and open it in the engine.

        Args:
            on_progress: Forwarded download progress callback
            on_cache_hit: Forwarded cache hit callback

        Returns:
            The ready ResolutionEngine

        Raises:
            AcquisitionError: If the dataset cannot be obtained or opened
        """
        self.state = SessionState.LOADING
        self.error = None
        logger.info(f"📥 Loading product dataset ({self.settings.cache_namespace})")

        def progress(percent: int) -> None:
            if percent // PROGRESS_LOG_STEP > self.progress // PROGRESS_LOG_STEP:
                logger.info(f"⬇️ Dataset download {percent}%")
            self.progress = percent
            if on_progress:
                on_progress(percent)

        def cache_hit() -> None:
            self.progress = 100
            if on_cache_hit:
                on_cache_hit()

        try:
            await self.acquirer.load(progress, cache_hit, accept=self._open_dataset)
        except AcquisitionError as e:
            self.state = SessionState.FAILED
            self.error = e
            logger.error(f"❌ Session startup failed: {e.message}")
            raise

        self.state = SessionState.READY
        return self.engine

    def _open_dataset(self, data: bytes) -> None:
        self.engine.open(data, self.settings.product_table)

    async def stop(self) -> None:
        """Flush pending cache writes and release the dataset."""
        await self.acquirer.wait_for_cache_writes()
        self.engine.close()
        self.state = SessionState.PENDING

    def describe(self) -> Dict[str, Any]:
        """Summary of the session for stats and health endpoints."""
        info: Dict[str, Any] = {
            "state": self.state.value,
            "source": self.acquirer.last_source,
            "namespace": self.acquirer.namespace,
            "key": self.acquirer.key,
            "table": self.settings.product_table,
            "progress": self.progress,
            "products": self.engine.product_count,
        }
        if self.error is not None:
            info["error"] = self.error.to_dict()["error"]
        return info

    def __repr__(self) -> str:
        return f"LookupSession(state={self.state.value!r}, namespace={self.acquirer.namespace!r})"
