"""Typer application and CLI entry point for specmodel.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``inspect``, ``validate``, ``cache``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler and invokes the Typer app.
:class:`~specmodel.exceptions.SpecmodelError` escaping a command becomes a
clean exit with the error's ``exit_code``; anything else is written to a
crash log under the cache directory.

See Also:
    :mod:`specmodel.config`: Settings resolution.
    :mod:`specmodel.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from specmodel import __version__
from specmodel.commands.cache import cache_app
from specmodel.commands.config import config_app
from specmodel.commands.inspect import inspect_app
from specmodel.commands.validate import validate_command
from specmodel.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="specmodel",
    help="Resolve OpenAPI documents into descriptors and validate payloads against them.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(inspect_app, name="inspect", help="Inspect the descriptors built from a document.")
app.command("validate")(validate_command)
app.add_typer(cache_app, name="cache", help="Artifact cache management.")
app.add_typer(config_app, name="config", help="Settings management.")

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specmodel {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool = False) -> None:
    """Attach a stderr handler to the ``specmodel`` logger.

    DEBUG with ``--verbose``, WARNING otherwise. Calling it again replaces
    the handler instead of adding a second one.
    """
    package_logger = logging.getLogger("specmodel")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_specmodel_cli", False):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler._specmodel_cli = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Settings file to use instead of the default."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~specmodel.output.OutputManager` and
    logging from CLI flags, and stores shared options in ``ctx.obj``.
    """
    from specmodel.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to disk and return the log file path."""
    from specmodel.config import get_cache_dir

    logs_dir = get_cache_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``specmodel`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from specmodel.exceptions import SpecmodelError
        from specmodel.output import error

        if isinstance(exc, SpecmodelError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
