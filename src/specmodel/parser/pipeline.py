"""Run loader, resolver, and descriptor builder as one cached unit."""

from __future__ import annotations

import logging
from typing import Optional

from specmodel.cache.cache import ArtifactCache
from specmodel.models import DescriptorSet, Settings
from specmodel.parser.extractor import extract_descriptors
from specmodel.parser.loader import SourceHandle, parse_source, read_source
from specmodel.parser.resolver import resolve_document

logger = logging.getLogger(__name__)


def parse_spec(
    source: SourceHandle,
    settings: Optional[Settings] = None,
    cache: Optional[ArtifactCache] = None,
    content_type: Optional[str] = None,
) -> DescriptorSet:
    """Turn a document source into a :class:`~specmodel.models.DescriptorSet`.

    The raw content is read and hashed first. When *cache* holds a valid
    entry for that digest it is returned without decoding anything;
    otherwise the full pipeline runs and the entry is (over)written.

    Args:
        source: Any handle accepted by
            :func:`~specmodel.parser.loader.read_source`.
        settings: Supplies loader limits. Defaults to :class:`Settings`.
        cache: Optional artifact cache. Nothing is cached when omitted.
        content_type: Optional ``'json'`` or ``'yaml'`` decoding hint.

    Raises:
        ParsingError: If the document cannot be read, decoded, or nests too
            deeply.
        MissingFieldError: If a required top-level field is absent.
    """
    loader_cfg = (settings or Settings()).loader
    content = read_source(source, timeout=loader_cfg.timeout, max_bytes=loader_cfg.max_bytes)

    if cache is not None:
        cached = cache.get(content.digest)
        if cached is not None:
            return cached

    logger.debug("Building descriptors for %s", content.origin)
    raw = parse_source(content, content_type=content_type)
    resolved = resolve_document(raw, max_depth=loader_cfg.max_depth)
    descriptors = extract_descriptors(resolved)

    if cache is not None:
        cache.put(content.digest, descriptors)
    return descriptors
