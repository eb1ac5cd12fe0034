"""Config commands -- view and modify the settings file.

Provides the ``specmodel config`` sub-command group for reading, updating,
and resetting :class:`~specmodel.models.Settings`. The file lives in the
specmodel config directory (or at ``--config PATH``) and holds schema
groups with their validation and cache options, plus loader limits.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError

from specmodel.exceptions import ConfigurationError, SpecmodelError
from specmodel.exit_codes import EXIT_INVALID_USAGE
from specmodel.output import emit, error, info, success

config_app = typer.Typer(no_args_is_help=True)

_TRUE_TOKENS = frozenset({"true", "1", "yes", "on"})
_FALSE_TOKENS = frozenset({"false", "0", "no", "off"})


def _settings_file(ctx: typer.Context) -> Optional[Path]:
    obj = ctx.obj or {}
    return Path(obj["config_path"]) if obj.get("config_path") else None


def _coerce(current: Any, value: str, key: str) -> Any:
    """Coerce *value* to the type of the field it replaces."""
    if isinstance(current, bool):
        token = value.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
        error(f"Expected true or false for {key}, got: {value}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    if isinstance(current, float):
        try:
            return float(value)
        except ValueError:
            error(f"Expected number for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    return value


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the settings in effect, including environment overrides.

    Example::

        specmodel config show
        SPECMODEL_STRICTNESS=lenient specmodel --json config show
    """
    from specmodel.config import resolve_settings, settings_path

    try:
        settings = resolve_settings(_settings_file(ctx))
    except SpecmodelError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"Settings file: {_settings_file(ctx) or settings_path()}")
    emit(settings.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(
        help="Settings key in dot notation, e.g. 'groups.primary.validation.strictness'."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a value in the settings file.

    The value is coerced to the type of the field it replaces and the
    result is validated before it is written.

    Example::

        specmodel config set groups.primary.validation.strictness moderate
        specmodel config set groups.primary.cache.ttl_seconds 600
        specmodel config set loader.timeout 10
    """
    from specmodel.config import load_settings, save_settings
    from specmodel.models import Settings

    path = _settings_file(ctx)
    try:
        settings = load_settings(path)
    except SpecmodelError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    data = settings.model_dump(mode="json")
    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid settings key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown settings key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    coerced = _coerce(target[final_key], value, key)
    target[final_key] = coerced

    try:
        new_settings = Settings.model_validate(data)
    except (ValidationError, ConfigurationError) as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_settings(new_settings, path)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset the settings file to defaults.

    Example::

        specmodel config reset --force
    """
    from specmodel.config import save_settings
    from specmodel.models import Settings

    if not force and not typer.confirm("Reset all settings to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_settings(Settings(), _settings_file(ctx))
    success("Settings reset to defaults.")
