"""Disk-based artifact caching for specmodel.

This package provides :class:`ArtifactCache`, which stores the
:class:`~specmodel.models.DescriptorSet` built from a document using
:mod:`diskcache`. Entries are keyed by the document's content digest with a
configurable TTL.

The cache is consumed by :func:`~specmodel.parser.pipeline.parse_spec` and
is controlled by the ``cache`` section of a schema group's configuration
(:class:`~specmodel.models.CacheConfig`).
"""

from specmodel.cache.cache import ArtifactCache

__all__ = ["ArtifactCache"]
