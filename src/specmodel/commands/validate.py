"""Validate command -- check a JSON payload against a schema or operation.

``specmodel validate SOURCE TARGET DATA`` builds the rule set for *TARGET*
(a schema name, or an operation id with ``--operation``) and runs the
strictness engine over *DATA*. The result is written to stdout; warnings
go to stderr. The exit code is ``8`` when the payload is invalid.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import typer

from specmodel.commands import get_settings, load_descriptors
from specmodel.exceptions import SpecmodelError
from specmodel.exit_codes import EXIT_INVALID_USAGE, EXIT_VALIDATION_FAILURE
from specmodel.output import emit, error, success, warning


def _read_payload(data: str) -> dict[str, Any]:
    """Read the payload from inline JSON, ``-`` (stdin), or a file path."""
    if data == "-":
        text = sys.stdin.read()
    elif data.lstrip().startswith("{"):
        text = data
    else:
        path = Path(data)
        if not path.is_file():
            error(f"Payload file not found: {data}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        text = path.read_text(encoding="utf-8")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        error(f"Payload is not valid JSON: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    if not isinstance(payload, dict):
        error(f"Payload must be a JSON object (got {type(payload).__name__})")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    return payload


def validate_command(
    ctx: typer.Context,
    source: str = typer.Argument(help="Document path, http(s) URL, or '-' for stdin."),
    target: str = typer.Argument(help="Schema name (or operation id with --operation)."),
    data: str = typer.Argument(help="Inline JSON object, a JSON file path, or '-' for stdin."),
    strictness: Optional[str] = typer.Option(
        None, "--strictness", "-s", help="strict, moderate, or lenient."
    ),
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Schema group name."),
    operation: bool = typer.Option(
        False, "--operation", help="Treat TARGET as an operation id."
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the artifact cache."),
) -> None:
    """Validate a payload against a schema or an operation's inputs.

    Example::

        specmodel validate petstore.yaml Pet '{"name": "Fluffy", "status": "available"}'
        specmodel validate petstore.yaml createPets body.json --operation -s moderate
    """
    from specmodel.validation import ValidationEngine, generate_endpoint_rules, generate_rules

    if source == "-" and data == "-":
        error("SOURCE and DATA cannot both be read from stdin")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    payload = _read_payload(data)

    try:
        settings = get_settings(ctx)
        engine = ValidationEngine.for_group(settings, group)
        descriptors = load_descriptors(ctx, source, group=group, use_cache=not no_cache)
        if operation:
            endpoint = descriptors.get_endpoint(target)
            rule_set = generate_endpoint_rules(endpoint, descriptors.schemas)
        else:
            rule_set = generate_rules(descriptors.get_schema(target))
        result = engine.validate(payload, rule_set, strictness=strictness)
    except SpecmodelError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    for message in result.warnings:
        warning(message)
    emit(result.model_dump(mode="json"))

    if not result.valid:
        raise typer.Exit(code=EXIT_VALIDATION_FAILURE)
    success(f"Payload is valid ({result.strictness.value})")
