"""
==============================================================================
Dataset Cache Module
==============================================================================

Persistent keyed byte storage for downloaded datasets.

Entries are addressed by ``(namespace, key)``. The namespace embeds the
dataset version token, so bumping the version makes every older entry
unreachable. Nothing is ever deleted by the application.

Layout on disk:
--------------
    <root>/
        localdb-cache-v1/
            <sha256(key)>.bin

Writes go to a temporary file in the same directory followed by an atomic
``os.replace``, so concurrent writers of the same immutable dataset converge
on identical content (last writer wins).

==============================================================================
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol


# Module logger
logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    """Keyed persistent byte storage."""

    def get(self, namespace: str, key: str) -> Optional[bytes]:
        ...

    def put(self, namespace: str, key: str, data: bytes) -> None:
        ...


class FileCacheStore:
    """
    Filesystem-backed cache store.

    Attributes:
        root: Directory holding one sub-directory per namespace

    Example:
        >>> store = FileCacheStore(Path("storage/cache"))
        >>> store.put("localdb-cache-v1", "localDB.db", data)
        >>> store.get("localdb-cache-v1", "localDB.db") == data
        True
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """Get the cache root directory."""
        return self._root

    def entry_path(self, namespace: str, key: str) -> Path:
        """
        Resolve the file path of an entry.

        Args:
            namespace: Versioned namespace (must be a single path component)
            key: Resource key (any string, hashed for the file name)

        Raises:
            ValueError: If the namespace is not a plain directory name
        """
        if not namespace or namespace in (".", "..") or "/" in namespace or "\\" in namespace:
            raise ValueError(f"Invalid cache namespace: {namespace!r}")

        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._root / namespace / f"{digest}.bin"

    def get(self, namespace: str, key: str) -> Optional[bytes]:
        """Return the cached bytes, or None when the entry does not exist."""
        path = self.entry_path(namespace, key)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None

        logger.debug(f"Cache entry read: {namespace}/{key} ({len(data)} bytes)")
        return data

    def put(self, namespace: str, key: str, data: bytes) -> None:
        """Store bytes under the given entry, replacing any previous content."""
        path = self.entry_path(namespace, key)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".bin")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug(f"Cache entry written: {namespace}/{key} ({len(data)} bytes)")

    def __repr__(self) -> str:
        return f"FileCacheStore(root={str(self._root)!r})"
