"""Built-in CLI sub-commands for specmodel.

This package groups all Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~specmodel.commands.inspect` -- examine the info, schemas,
  endpoints, and relationships described by a document.
* :mod:`~specmodel.commands.validate` -- validate a JSON payload against a
  schema or an operation.
* :mod:`~specmodel.commands.cache` -- show and clear the artifact cache.
* :mod:`~specmodel.commands.config` -- view and modify settings.

Each module either exports a :class:`typer.Typer` sub-application or a
plain callback function registered directly on the root app. The helpers
below are shared by the commands that need a parsed document.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from specmodel.models import DescriptorSet, Settings


def get_settings(ctx: typer.Context) -> Settings:
    """Resolve settings once per invocation and memoise them on ``ctx.obj``.

    Raises:
        ConfigurationError: If the settings file or an override is invalid.
    """
    from specmodel.config import resolve_settings

    obj = ctx.ensure_object(dict)
    if "settings" not in obj:
        config_path: Optional[str] = obj.get("config_path")
        obj["settings"] = resolve_settings(Path(config_path) if config_path else None)
    return obj["settings"]


def load_descriptors(
    ctx: typer.Context, source: str, group: Optional[str] = None, use_cache: bool = True
) -> DescriptorSet:
    """Parse *source* through the cached pipeline.

    Raises:
        SpecmodelError: Any loader, parsing, or configuration failure.
    """
    from specmodel.cache import ArtifactCache
    from specmodel.config import get_cache_dir
    from specmodel.output import debug
    from specmodel.parser import parse_spec

    settings = get_settings(ctx)
    cache_config = settings.group(group).cache
    if not use_cache or not cache_config.enabled:
        debug("Artifact cache disabled for this run")
        return parse_spec(source, settings=settings)

    with ArtifactCache.from_config(cache_config, get_cache_dir(settings)) as cache:
        return parse_spec(source, settings=settings, cache=cache)
