"""Disk-based artifact cache for descriptor sets.

Uses :mod:`diskcache` to persist the output of the parser pipeline on the
filesystem with a configurable time-to-live (TTL). Entries are keyed by the
SHA-256 digest of the raw document (see
:attr:`~specmodel.parser.loader.RawDocument.digest`), so an unchanged
document never goes through loading, resolution, and extraction twice.

Values are stored as the JSON-mode dump of a
:class:`~specmodel.models.DescriptorSet` and validated on the way out. A
payload that no longer validates (written by an older version, truncated,
or tampered with) is treated as a miss: the entry is deleted and the caller
rebuilds and overwrites it.

See Also:
    :class:`~specmodel.models.CacheConfig` -- the Pydantic model that
    controls ``enabled`` and ``ttl_seconds``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import diskcache
from pydantic import ValidationError

from specmodel.exceptions import ConfigurationError
from specmodel.models import CacheConfig, DescriptorSet

logger = logging.getLogger(__name__)

_SUBDIR = "artifacts"


class ArtifactCache:
    """Disk-backed cache of :class:`~specmodel.models.DescriptorSet` values.

    Args:
        directory: Root directory for the cache. An ``artifacts/``
            subdirectory is created inside it. Defaults to
            :func:`~specmodel.config.get_cache_dir`.
        ttl_seconds: Lifetime of each entry. ``0`` means entries never
            expire.
        enabled: When ``False`` every lookup misses and nothing is written.

    Raises:
        ConfigurationError: If *ttl_seconds* is negative.

    Example::

        from specmodel.cache import ArtifactCache

        with ArtifactCache("/tmp/specmodel-cache", ttl_seconds=600) as cache:
            descriptors = parse_spec("petstore.yaml", cache=cache)
            cache.stats()
    """

    def __init__(
        self,
        directory: Optional[str | Path] = None,
        ttl_seconds: int = 3600,
        enabled: bool = True,
    ) -> None:
        if ttl_seconds < 0:
            raise ConfigurationError(
                f"Cache TTL must be zero or positive (got {ttl_seconds})"
            )
        if directory is None:
            from specmodel.config import get_cache_dir

            directory = get_cache_dir()

        self._directory = Path(directory) / _SUBDIR
        self._ttl_seconds = ttl_seconds
        self._enabled = enabled
        self._cache: Optional[diskcache.Cache] = None
        if enabled:
            self._cache = diskcache.Cache(str(self._directory))

    @classmethod
    def from_config(
        cls, config: CacheConfig, directory: Optional[str | Path] = None
    ) -> "ArtifactCache":
        """Build a cache from a schema group's :class:`~specmodel.models.CacheConfig`."""
        return cls(directory=directory, ttl_seconds=config.ttl_seconds, enabled=config.enabled)

    @property
    def enabled(self) -> bool:
        return self._cache is not None

    def get(self, digest: str) -> Optional[DescriptorSet]:
        """Look up the descriptor set stored for *digest*.

        Returns:
            The cached :class:`~specmodel.models.DescriptorSet`, or ``None``
            on a miss, when caching is disabled, or when the stored payload
            is corrupt (the entry is deleted in that case).
        """
        if self._cache is None:
            return None

        payload = self._cache.get(digest)
        if payload is None:
            logger.debug("Artifact cache miss for %s", digest[:12])
            return None

        try:
            descriptors = DescriptorSet.model_validate(payload)
        except ValidationError as exc:
            logger.warning(
                "Discarding corrupt artifact cache entry %s: %d validation error(s)",
                digest[:12],
                exc.error_count(),
            )
            self._cache.delete(digest)
            return None

        logger.debug("Artifact cache hit for %s", digest[:12])
        return descriptors

    def put(self, digest: str, descriptors: DescriptorSet) -> None:
        """Store *descriptors* under *digest*, replacing any existing entry."""
        if self._cache is None:
            return
        expire = self._ttl_seconds or None
        self._cache.set(digest, descriptors.model_dump(mode="json"), expire=expire)
        logger.debug("Stored artifact cache entry %s", digest[:12])

    def invalidate(self, digest: str) -> bool:
        """Remove the entry for *digest*.

        Returns:
            ``True`` if an entry was removed.
        """
        if self._cache is None:
            return False
        return bool(self._cache.delete(digest))

    def clear(self) -> int:
        """Remove all entries from the cache.

        Returns:
            The number of entries removed.
        """
        if self._cache is None:
            return 0
        return self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``enabled`` (bool), and when enabled:
            ``size`` (number of entries), ``directory`` (str path),
            ``volume`` (bytes on disk), and ``ttl_seconds`` (int).
        """
        if self._cache is None:
            return {"enabled": False}
        return {
            "enabled": True,
            "size": len(self._cache),
            "directory": str(self._directory),
            "volume": self._cache.volume(),
            "ttl_seconds": self._ttl_seconds,
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._cache is not None:
            self._cache.close()

    def __enter__(self) -> "ArtifactCache":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
