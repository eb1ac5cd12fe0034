"""Cache commands -- inspect and clear the artifact cache."""

from __future__ import annotations

import typer

from specmodel.commands import get_settings
from specmodel.exceptions import SpecmodelError
from specmodel.output import emit, error, info, success

cache_app = typer.Typer(no_args_is_help=True)


def _open_cache(ctx: typer.Context):  # noqa: ANN202
    from specmodel.cache import ArtifactCache
    from specmodel.config import get_cache_dir

    try:
        settings = get_settings(ctx)
        return ArtifactCache.from_config(settings.group().cache, get_cache_dir(settings))
    except SpecmodelError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show artifact cache statistics.

    Example::

        specmodel cache stats
        specmodel --json cache stats
    """
    with _open_cache(ctx) as cache:
        emit(cache.stats())


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every cached descriptor set.

    Example::

        specmodel cache clear
    """
    with _open_cache(ctx) as cache:
        if not cache.enabled:
            info("Artifact cache is disabled; nothing to clear.")
            return
        removed = cache.clear()
    success(f"Removed {removed} cached artifact(s).")
