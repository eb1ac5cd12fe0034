"""Inspect commands -- examine what a document describes.

Provides the ``specmodel inspect`` sub-command group with read-only
commands for viewing the descriptors built from an OpenAPI document: API
info, schemas, endpoints, model mappings and the relationship registry.
Every sub-command takes the document source (file path, URL, or ``-`` for
stdin) as its first argument.
"""

from __future__ import annotations

from typing import Optional

import typer

from specmodel.commands import load_descriptors
from specmodel.exceptions import SpecmodelError
from specmodel.models import DescriptorSet
from specmodel.output import emit, error, info, print_table, warning

inspect_app = typer.Typer(no_args_is_help=True)

_SOURCE = typer.Argument(help="Document path, http(s) URL, or '-' for stdin.")
_NO_CACHE = typer.Option(False, "--no-cache", help="Bypass the artifact cache.")


def _load(ctx: typer.Context, source: str, no_cache: bool) -> DescriptorSet:
    try:
        descriptors = load_descriptors(ctx, source, use_cache=not no_cache)
    except SpecmodelError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    for message in descriptors.warnings:
        warning(message)
    return descriptors


@inspect_app.command("info")
def inspect_info(
    ctx: typer.Context,
    source: str = _SOURCE,
    no_cache: bool = _NO_CACHE,
) -> None:
    """Show API info (title, version, servers, counts).

    Example::

        specmodel inspect info petstore.yaml
        specmodel --json inspect info https://petstore3.swagger.io/api/v3/openapi.json
    """
    descriptors = _load(ctx, source, no_cache)

    data: dict = {
        "title": descriptors.info.title,
        "version": descriptors.info.version,
        "openapi_version": descriptors.openapi_version,
        "description": descriptors.info.description or "-",
        "servers": [s.url for s in descriptors.servers],
        "schemas": len(descriptors.schemas),
        "endpoints": len(descriptors.endpoints),
        "security_schemes": list(descriptors.security_schemes),
        "unresolved_references": len(descriptors.unresolved),
    }
    if descriptors.info.contact_email:
        data["contact"] = descriptors.info.contact_email
    if descriptors.info.license_name:
        data["license"] = descriptors.info.license_name

    emit(data)


@inspect_app.command("schemas")
def inspect_schemas(
    ctx: typer.Context,
    source: str = _SOURCE,
    name: Optional[str] = typer.Option(None, "--name", help="Show one schema's properties."),
    no_cache: bool = _NO_CACHE,
) -> None:
    """List named schemas, or the properties of one schema.

    Example::

        specmodel inspect schemas petstore.yaml
        specmodel inspect schemas petstore.yaml --name Pet
    """
    descriptors = _load(ctx, source, no_cache)

    if name is not None:
        try:
            schema = descriptors.get_schema(name)
        except SpecmodelError as exc:
            error(str(exc))
            raise typer.Exit(code=exc.exit_code) from None

        rows = []
        for prop in schema.properties.values():
            kind = prop.type
            if prop.ref:
                kind = f"{prop.type} -> {prop.ref}"
            elif prop.items is not None and prop.items.ref:
                kind = f"array -> {prop.items.ref}[]"
            rows.append([
                prop.name,
                kind,
                prop.format or "-",
                "yes" if schema.is_required(prop.name) else "",
                "yes" if prop.nullable else "",
            ])
        print_table(
            ["Property", "Type", "Format", "Required", "Nullable"],
            rows,
            title=f"{schema.name} ({len(rows)} properties)",
        )
        return

    if not descriptors.schemas:
        info("No schemas defined in this document.")
        return

    rows = []
    for schema in descriptors.schemas.values():
        prop_names = list(schema.properties)
        props = ", ".join(prop_names[:5])
        if len(prop_names) > 5:
            props += "..."
        rows.append([schema.name, schema.type, props])

    print_table(["Schema", "Type", "Properties"], rows, title=f"Schemas ({len(rows)})")


@inspect_app.command("endpoints")
def inspect_endpoints(
    ctx: typer.Context,
    source: str = _SOURCE,
    role: Optional[str] = typer.Option(
        None, "--role", help="Only list endpoints with this role (list, fetch, create, ...)."
    ),
    no_cache: bool = _NO_CACHE,
) -> None:
    """List every ``path x method`` endpoint with its role and schemas.

    Example::

        specmodel inspect endpoints petstore.yaml
        specmodel inspect endpoints petstore.yaml --role fetch
    """
    descriptors = _load(ctx, source, no_cache)

    rows: list[list[str]] = []
    for endpoint in descriptors.endpoints:
        if role is not None and endpoint.role.value != role:
            continue
        response = endpoint.response_schema or "-"
        if endpoint.response_schema and endpoint.response_is_collection:
            response = f"{endpoint.response_schema}[]"
        rows.append([
            endpoint.method.value.upper(),
            endpoint.path,
            endpoint.operation_id,
            endpoint.role.value,
            endpoint.request_schema or "-",
            response,
        ])

    print_table(
        ["Method", "Path", "Operation", "Role", "Request", "Response"],
        rows,
        title=f"{descriptors.info.title} -- Endpoints ({len(rows)})",
    )


@inspect_app.command("relationships")
def inspect_relationships(
    ctx: typer.Context,
    source: str = _SOURCE,
    no_cache: bool = _NO_CACHE,
) -> None:
    """Show the relationship registry inferred from schema properties.

    Example::

        specmodel inspect relationships petstore.yaml
    """
    descriptors = _load(ctx, source, no_cache)

    relationships = descriptors.relationships
    if not relationships:
        info("No relationships between named schemas.")
        return

    rows = [[rel.source, rel.name, rel.kind.value, rel.target] for rel in relationships]
    print_table(["Schema", "Property", "Kind", "Target"], rows, title="Relationships")


@inspect_app.command("models")
def inspect_models(
    ctx: typer.Context,
    source: str = _SOURCE,
    no_cache: bool = _NO_CACHE,
) -> None:
    """Show endpoints grouped by the resource model they operate on.

    Example::

        specmodel inspect models petstore.yaml
    """
    descriptors = _load(ctx, source, no_cache)

    if not descriptors.models:
        info("No endpoints to map.")
        return

    rows = [
        [
            model.name,
            model.base_path,
            ", ".join(f"{role}={'/'.join(ids)}" for role, ids in model.operations.items()),
            ", ".join(model.schemas) or "-",
        ]
        for model in descriptors.models.values()
    ]
    print_table(["Model", "Base Path", "Operations", "Schemas"], rows, title="Models")
