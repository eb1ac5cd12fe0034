"""Build schema and endpoint descriptors from a resolved document.

This module walks a :class:`~specmodel.parser.resolver.ResolvedDocument` and
projects it into a :class:`~specmodel.models.DescriptorSet`: one
:class:`~specmodel.models.SchemaDescriptor` per named schema and one
:class:`~specmodel.models.EndpointDescriptor` per ``path x method`` pair.

The single public entry point is :func:`extract_descriptors`. Internally it
delegates to private helpers that each handle one section of the document:

* ``_extract_info`` -- the ``info`` object.
* ``_extract_servers`` -- ``servers`` (or ``host``/``basePath`` for Swagger 2.0).
* ``_extract_schemas`` -- the named schema table, including the relationship
  registry.
* ``_extract_endpoints`` -- the ``paths`` object.
* ``_extract_security_schemes`` -- ``components/securitySchemes`` (or ``securityDefinitions``).
* ``_build_models`` -- endpoints grouped by the resource model they serve.

Named schemas are linked by name and never inlined, so a document with *n*
named schemas always yields *n* descriptors regardless of how often they
reference each other. Malformed entries (a path item, operation, parameter,
or schema that is not an object) are skipped and reported in
``DescriptorSet.warnings``; the rest of the document is still extracted.

Parameter merging follows the OpenAPI specification: path-level parameters
provide defaults, and operation-level parameters override them when they share
the same ``name`` and ``in`` values.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time
from typing import Any, Optional

from specmodel.models import (
    APIInfo,
    DescriptorSet,
    EndpointDescriptor,
    EndpointRole,
    HTTPMethod,
    ModelMapping,
    ParameterDescriptor,
    ParameterLocation,
    PropertySpec,
    Relationship,
    RelationshipKind,
    SchemaDescriptor,
    SecurityScheme,
    ServerInfo,
)
from specmodel.parser.resolver import BackReference, ResolvedDocument, ResolvedRef

logger = logging.getLogger(__name__)

# Declaration order of the OpenAPI Path Item Object, kept stable for
# deterministic output.
_HTTP_METHODS = tuple(m.value for m in HTTPMethod)

_CONSTRAINT_KEYS = (
    "enum",
    "default",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "minLength",
    "maxLength",
    "pattern",
    "minItems",
    "maxItems",
)

# Anonymous nested objects deeper than this are described by type only.
_MAX_INLINE_DEPTH = 32


def extract_descriptors(resolved: ResolvedDocument) -> DescriptorSet:
    """Extract a :class:`~specmodel.models.DescriptorSet` from a resolved document.

    Args:
        resolved: Output of :func:`~specmodel.parser.resolver.resolve_document`.

    Returns:
        A frozen descriptor set. Skipped entries are explained in its
        ``warnings``; pointers that could not be followed are listed in
        ``unresolved``.

    Example::

        raw = load_document("petstore.yaml")
        descriptors = extract_descriptors(resolve_document(raw))
        for endpoint in descriptors.endpoints:
            print(endpoint.role.value, endpoint.method.value.upper(), endpoint.path)
    """
    warnings: list[str] = []
    schemas = _extract_schemas(resolved, warnings)
    endpoints = _extract_endpoints(resolved, warnings)

    for message in warnings:
        logger.warning(message)
    logger.debug(
        "Extracted %d schema(s) and %d endpoint(s) from %s",
        len(schemas),
        len(endpoints),
        resolved.raw.source,
    )

    return DescriptorSet(
        openapi_version=resolved.version,
        info=_extract_info(resolved.tree),
        servers=_extract_servers(resolved.tree),
        schemas=schemas,
        endpoints=endpoints,
        security_schemes=_extract_security_schemes(resolved.tree),
        warnings=tuple(warnings),
        unresolved=tuple(resolved.unresolved),
        models=_build_models(endpoints, schemas),
    )


def classify_role(method: HTTPMethod | str, path: str) -> EndpointRole:
    """Classify an endpoint by comparing its method with its path shape.

    A path whose last segment is a template parameter (``/pets/{petId}``)
    addresses a single item: GET is ``fetch``, PUT/PATCH is ``update``,
    DELETE is ``delete``. Any other path addresses a collection: GET is
    ``list`` and POST is ``create``. Everything else is ``other``.
    """
    verb = HTTPMethod(method).value
    segments = [segment for segment in path.strip("/").split("/") if segment]
    is_item = bool(segments) and segments[-1].startswith("{") and segments[-1].endswith("}")

    if is_item:
        if verb == "get":
            return EndpointRole.FETCH
        if verb in ("put", "patch"):
            return EndpointRole.UPDATE
        if verb == "delete":
            return EndpointRole.DELETE
        return EndpointRole.OTHER

    if verb == "get":
        return EndpointRole.LIST
    if verb == "post":
        return EndpointRole.CREATE
    return EndpointRole.OTHER


def generate_operation_id(method: str, path: str) -> str:
    """Derive an operation id for operations that do not declare one.

    ``("get", "/pets/{petId}")`` becomes ``"get_pets__petId"``.
    """
    clean = re.sub(r"[^a-zA-Z0-9]", "_", path).strip("_")
    return f"{method.lower()}_{clean}" if clean else method.lower()


# --- Graph helpers ---


def _deref(resolved: ResolvedDocument, node: Any) -> Any:
    """Follow reference markers to the node they stand for.

    Returns ``None`` when the markers loop without reaching a node.
    """
    seen: set[str] = set()
    while isinstance(node, (ResolvedRef, BackReference)):
        if node.pointer in seen:
            return None
        seen.add(node.pointer)
        node = node.target if isinstance(node, ResolvedRef) else resolved.lookup(node.pointer)
    return node


def _named_schema(resolved: ResolvedDocument, node: Any) -> Optional[str]:
    """Return the schema name if *node* is a reference to a named schema."""
    if isinstance(node, (ResolvedRef, BackReference)):
        return resolved.schema_name_for(node.pointer)
    if isinstance(node, dict) and isinstance(node.get("$ref"), str):
        # Unresolved pointer; keep the name so the link is still visible.
        return resolved.schema_name_for(node["$ref"])
    if isinstance(node, dict):
        members = node.get("allOf")
        if isinstance(members, list) and len(members) == 1:
            return _named_schema(resolved, members[0])
    return None


def _schema_type(schema: Any) -> tuple[str, bool]:
    """Return ``(type, nullable)`` for a schema node.

    Handles OpenAPI 3.1 type arrays (``["string", "null"]``), the 3.0
    ``nullable`` keyword and the Swagger 2.0 ``x-nullable`` extension.
    Without an explicit type the shape decides: ``properties`` or
    ``allOf`` means object, ``items`` means array. A schema with no type
    information at all is ``"any"``.
    """
    if not isinstance(schema, dict):
        return "any", False

    nullable = bool(schema.get("nullable") or schema.get("x-nullable"))
    type_value = schema.get("type")

    if isinstance(type_value, list):
        non_null = [str(t) for t in type_value if t != "null"]
        nullable = nullable or len(non_null) < len(type_value)
        return (non_null[0] if non_null else "any"), nullable

    if isinstance(type_value, str):
        return type_value, nullable

    if "properties" in schema or "allOf" in schema or "additionalProperties" in schema:
        return "object", nullable
    if "items" in schema:
        return "array", nullable
    return "any", nullable


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _integer(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _plain(value: Any) -> Any:
    """Reduce a document value to JSON types so cached descriptors compare equal.

    YAML timestamps become ISO strings; reference markers become ``$ref`` objects.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    if isinstance(value, (ResolvedRef, BackReference)):
        return {"$ref": value.pointer}
    if isinstance(value, dict):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return str(value)


# --- Info / servers / security ---


def _extract_info(tree: dict[str, Any]) -> APIInfo:
    info = tree.get("info") or {}
    contact = info.get("contact") if isinstance(info.get("contact"), dict) else {}
    license_info = info.get("license") if isinstance(info.get("license"), dict) else {}

    return APIInfo(
        title=str(info.get("title") or "Untitled API"),
        version=str(info.get("version") or "0.0.0"),
        description=_text(info.get("description")),
        contact_email=_text(contact.get("email")),
        license_name=_text(license_info.get("name")),
    )


def _extract_servers(tree: dict[str, Any]) -> tuple[ServerInfo, ...]:
    """Extract server entries.

    Swagger 2.0 documents describe a single server through ``schemes``,
    ``host``, and ``basePath``; that is turned into one :class:`ServerInfo`.
    """
    servers = tree.get("servers")
    if isinstance(servers, list):
        return tuple(
            ServerInfo(url=str(server.get("url", "/")), description=_text(server.get("description")))
            for server in servers
            if isinstance(server, dict)
        )

    host = tree.get("host")
    if isinstance(host, str):
        schemes = tree.get("schemes")
        scheme = schemes[0] if isinstance(schemes, list) and schemes else "https"
        base_path = tree.get("basePath") if isinstance(tree.get("basePath"), str) else ""
        return (ServerInfo(url=f"{scheme}://{host}{base_path}"),)

    return ()


def _extract_security_schemes(tree: dict[str, Any]) -> dict[str, SecurityScheme]:
    components = tree.get("components") if isinstance(tree.get("components"), dict) else {}
    schemes_raw = components.get("securitySchemes", tree.get("securityDefinitions", {}))
    if not isinstance(schemes_raw, dict):
        return {}

    schemes: dict[str, SecurityScheme] = {}
    for name, scheme_data in schemes_raw.items():
        if not isinstance(scheme_data, dict):
            continue
        schemes[name] = SecurityScheme(
            name=name,
            type=str(scheme_data.get("type", "")),
            description=_text(scheme_data.get("description")),
            param_name=_text(scheme_data.get("name")),
            location=_text(scheme_data.get("in")),
            scheme=_text(scheme_data.get("scheme")),
            bearer_format=_text(scheme_data.get("bearerFormat")),
        )
    return schemes


# --- Schemas ---


def _extract_schemas(
    resolved: ResolvedDocument, warnings: list[str]
) -> dict[str, SchemaDescriptor]:
    schemas: dict[str, SchemaDescriptor] = {}

    for name, node in resolved.schemas.items():
        body = _deref(resolved, node)
        if isinstance(body, dict) and isinstance(body.get("$ref"), str):
            warnings.append(f"Schema '{name}' points at an unresolved reference {body['$ref']}")
            schemas[name] = SchemaDescriptor(name=name, type="any")
            continue
        if not isinstance(body, dict):
            warnings.append(
                f"Schema '{name}' is not an object definition "
                f"(got {type(body).__name__}); skipped"
            )
            continue
        schemas[name] = _build_schema(resolved, name, node)

    return schemas


def _build_schema(resolved: ResolvedDocument, name: str, node: Any) -> SchemaDescriptor:
    body = _deref(resolved, node)
    schema_type, _ = _schema_type(body)
    raw_properties, required = _collect_object(resolved, node, frozenset())

    properties = {
        prop_name: _property_spec(resolved, prop_name, prop_node, 0)
        for prop_name, prop_node in raw_properties.items()
    }

    relationships: list[Relationship] = []
    for prop in properties.values():
        if prop.ref and prop.ref in resolved.schemas:
            relationships.append(
                Relationship(
                    name=prop.name, kind=RelationshipKind.BELONGS_TO, source=name, target=prop.ref
                )
            )
        elif (
            prop.type == "array"
            and prop.items is not None
            and prop.items.ref in resolved.schemas
        ):
            relationships.append(
                Relationship(
                    name=prop.name,
                    kind=RelationshipKind.HAS_MANY,
                    source=name,
                    target=prop.items.ref,
                )
            )

    return SchemaDescriptor(
        name=name,
        type=schema_type if schema_type != "any" or not properties else "object",
        description=_text(body.get("description")),
        properties=properties,
        required=tuple(dict.fromkeys(required)),
        relationships=tuple(relationships),
    )


def _collect_object(
    resolved: ResolvedDocument, node: Any, seen: frozenset[str]
) -> tuple[dict[str, Any], list[str]]:
    """Gather ``properties`` and ``required`` from a schema and its ``allOf`` members.

    *seen* holds the pointers already merged on this branch so that an
    ``allOf`` cycle contributes each member once.
    """
    if isinstance(node, (ResolvedRef, BackReference)):
        if node.pointer in seen:
            return {}, []
        seen = seen | {node.pointer}

    body = _deref(resolved, node)
    if not isinstance(body, dict):
        return {}, []

    properties: dict[str, Any] = {}
    required: list[str] = []

    members = body.get("allOf")
    if isinstance(members, list):
        for member in members:
            member_props, member_required = _collect_object(resolved, member, seen)
            properties.update(member_props)
            required.extend(member_required)

    own = body.get("properties")
    if isinstance(own, dict):
        properties.update(own)
    own_required = body.get("required")
    if isinstance(own_required, list):
        required.extend(str(field) for field in own_required)

    return properties, required


def _property_spec(resolved: ResolvedDocument, name: str, node: Any, depth: int) -> PropertySpec:
    """Describe one property without ever embedding a named schema."""
    ref_name = _named_schema(resolved, node)
    if ref_name is not None:
        target = _deref(resolved, node)
        if isinstance(node, dict) and "allOf" in node:
            target_type, _ = _schema_type(_deref(resolved, node["allOf"][0]))
            _, nullable = _schema_type(node)
        else:
            target_type, nullable = _schema_type(target)
        return PropertySpec(
            name=name,
            type="object" if target_type == "any" else target_type,
            ref=ref_name,
            nullable=nullable,
            description=_text(node.get("description")) if isinstance(node, dict) else None,
        )

    schema = _deref(resolved, node)
    if not isinstance(schema, dict):
        return PropertySpec(name=name, type="any")

    schema_type, nullable = _schema_type(schema)
    enum = schema.get("enum")

    items: Optional[PropertySpec] = None
    if "items" in schema and depth < _MAX_INLINE_DEPTH:
        items = _property_spec(resolved, "items", schema["items"], depth + 1)

    properties: Optional[dict[str, PropertySpec]] = None
    if schema_type == "object" and depth < _MAX_INLINE_DEPTH:
        nested, _ = _collect_object(resolved, schema, frozenset())
        if nested:
            properties = {
                key: _property_spec(resolved, key, value, depth + 1)
                for key, value in nested.items()
            }

    is_array = schema_type == "array"
    return PropertySpec(
        name=name,
        type=schema_type,
        format=_text(schema.get("format")),
        description=_text(schema.get("description")),
        enum=tuple(_plain(enum)) if isinstance(enum, list) else None,
        min_length=_integer(schema.get("minItems" if is_array else "minLength")),
        max_length=_integer(schema.get("maxItems" if is_array else "maxLength")),
        pattern=_text(schema.get("pattern")),
        minimum=_number(schema.get("minimum")),
        maximum=_number(schema.get("maximum")),
        nullable=nullable,
        default=_plain(schema.get("default")),
        read_only=bool(schema.get("readOnly", False)),
        write_only=bool(schema.get("writeOnly", False)),
        items=items,
        properties=properties,
    )


# --- Endpoints ---


def _extract_endpoints(
    resolved: ResolvedDocument, warnings: list[str]
) -> tuple[EndpointDescriptor, ...]:
    """Extract one endpoint per ``path x method`` pair.

    Path items and operations that are not objects are skipped with a
    warning so that one bad entry never hides the valid ones.
    """
    paths = _deref(resolved, resolved.paths)
    if isinstance(paths, dict) and isinstance(paths.get("$ref"), str):
        warnings.append(f"'paths' points at an unresolved reference {paths['$ref']}")
        return ()
    if not isinstance(paths, dict):
        warnings.append(f"'paths' must be an object (got {type(paths).__name__}); no endpoints")
        return ()

    endpoints: list[EndpointDescriptor] = []
    seen_ids: set[str] = set()

    for path, path_item in paths.items():
        item = _deref(resolved, path_item)
        if not isinstance(item, dict):
            warnings.append(
                f"Path '{path}' is not an object (got {type(item).__name__}); skipped"
            )
            continue
        if isinstance(item.get("$ref"), str):
            warnings.append(f"Path '{path}' points at an unresolved reference {item['$ref']}")
            continue

        path_params = _parameter_list(resolved, item.get("parameters"), path, warnings)

        for method in _HTTP_METHODS:
            if method not in item:
                continue
            operation = _deref(resolved, item[method])
            if not isinstance(operation, dict):
                warnings.append(
                    f"Operation '{method.upper()} {path}' is not an object "
                    f"(got {type(operation).__name__}); skipped"
                )
                continue

            endpoint = _build_endpoint(resolved, path, method, operation, path_params, warnings)
            if endpoint.operation_id in seen_ids:
                warnings.append(
                    f"Duplicate operationId '{endpoint.operation_id}' at {method.upper()} {path}"
                )
            seen_ids.add(endpoint.operation_id)
            endpoints.append(endpoint)

    return tuple(endpoints)


def _build_endpoint(
    resolved: ResolvedDocument,
    path: str,
    method: str,
    operation: dict[str, Any],
    path_params: list[dict[str, Any]],
    warnings: list[str],
) -> EndpointDescriptor:
    where = f"{method.upper()} {path}"
    op_params = _parameter_list(resolved, operation.get("parameters"), where, warnings)
    merged = _merge_parameters(path_params, op_params)

    request_schema: Optional[str] = None
    body_param = next((p for p in merged if p.get("in") == "body"), None)
    if body_param is not None:
        request_schema, _ = _schema_link(resolved, body_param.get("schema"))
    else:
        request_schema, _ = _schema_link(
            resolved, _first_media_schema(_deref(resolved, operation.get("requestBody")))
        )

    response_schema, is_collection = _schema_link(
        resolved, _success_response_schema(resolved, operation.get("responses"))
    )

    operation_id = operation.get("operationId")
    if not isinstance(operation_id, str) or not operation_id:
        operation_id = generate_operation_id(method, path)

    tags = operation.get("tags")
    return EndpointDescriptor(
        path=path,
        method=HTTPMethod(method),
        operation_id=operation_id,
        role=classify_role(method, path),
        summary=_text(operation.get("summary")),
        tags=tuple(str(tag) for tag in tags) if isinstance(tags, list) else (),
        deprecated=bool(operation.get("deprecated", False)),
        parameters=_extract_parameters(resolved, merged, where, warnings),
        request_schema=request_schema,
        response_schema=response_schema,
        response_is_collection=is_collection,
    )


def _parameter_list(
    resolved: ResolvedDocument, raw: Any, where: str, warnings: list[str]
) -> list[dict[str, Any]]:
    if raw is None:
        return []
    raw = _deref(resolved, raw)
    if not isinstance(raw, list):
        warnings.append(f"Parameters of {where} must be a list; ignored")
        return []

    params: list[dict[str, Any]] = []
    for index, entry in enumerate(raw):
        param = _deref(resolved, entry)
        if not isinstance(param, dict) or isinstance(param.get("$ref"), str):
            warnings.append(f"Parameter #{index} of {where} is not a resolvable object; skipped")
            continue
        params.append(param)
    return params


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field), per the OpenAPI spec.
    """
    op_keys = {(param.get("name", ""), param.get("in", "")) for param in op_params}

    merged = [
        param
        for param in path_params
        if (param.get("name", ""), param.get("in", "")) not in op_keys
    ]
    merged.extend(op_params)
    return merged


def _extract_parameters(
    resolved: ResolvedDocument,
    params: list[dict[str, Any]],
    where: str,
    warnings: list[str],
) -> tuple[ParameterDescriptor, ...]:
    """Convert raw parameter objects into descriptors.

    Swagger 2.0 ``body`` parameters are handled as the request schema and
    are not listed here. Parameters in any other unsupported location
    (``cookie``, ``formData``) are skipped with a warning. Path parameters
    are always required.
    """
    descriptors: list[ParameterDescriptor] = []

    for param in params:
        name = str(param.get("name", ""))
        location_str = param.get("in", "query")
        if location_str == "body":
            continue
        try:
            location = ParameterLocation(location_str)
        except ValueError:
            warnings.append(
                f"Parameter '{name}' of {where} has unsupported location '{location_str}'; skipped"
            )
            continue

        # OpenAPI 3 nests type info under "schema"; Swagger 2.0 keeps it inline.
        schema = _deref(resolved, param.get("schema")) if "schema" in param else param
        if not isinstance(schema, dict):
            schema = {}
        schema_type, _ = _schema_type(schema)

        constraints = {key: _plain(schema[key]) for key in _CONSTRAINT_KEYS if key in schema}

        required = bool(param.get("required", False))
        if location == ParameterLocation.PATH:
            required = True

        descriptors.append(
            ParameterDescriptor(
                name=name,
                location=location,
                required=required,
                type="string" if schema_type == "any" else schema_type,
                format=_text(schema.get("format")),
                description=_text(param.get("description")),
                constraints=constraints,
            )
        )

    return tuple(descriptors)


def _first_media_schema(container: Any) -> Any:
    """Return the schema of the first media type that declares one."""
    if not isinstance(container, dict):
        return None
    content = container.get("content")
    if isinstance(content, dict):
        for media in content.values():
            if isinstance(media, dict) and "schema" in media:
                return media["schema"]
        return None
    return container.get("schema")


def _success_response_schema(resolved: ResolvedDocument, responses: Any) -> Any:
    """Pick the schema of the first 2xx response, falling back to ``default``."""
    responses = _deref(resolved, responses)
    if not isinstance(responses, dict):
        return None

    ordered = [code for code in responses if str(code).startswith("2")]
    if "default" in responses:
        ordered.append("default")

    for code in ordered:
        schema = _first_media_schema(_deref(resolved, responses[code]))
        if schema is not None:
            return schema
    return None


def _schema_link(resolved: ResolvedDocument, schema: Any) -> tuple[Optional[str], bool]:
    """Return ``(schema name, is_collection)`` for a body schema.

    Inline schemas have no name and yield ``(None, False)``; an array of a
    named schema yields that name with ``is_collection=True``.
    """
    if schema is None:
        return None, False

    name = _named_schema(resolved, schema)
    if name is not None:
        return name, False

    body = _deref(resolved, schema)
    if isinstance(body, dict) and _schema_type(body)[0] == "array":
        item_name = _named_schema(resolved, body.get("items"))
        if item_name is not None:
            return item_name, True
    return None, False


# --- Model mappings ---


def _singular(word: str) -> str:
    lower = word.lower()
    if lower.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if lower.endswith("ss") or not lower.endswith("s") or len(word) == 1:
        return word
    return word[:-1]


def _studly(text: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[^0-9A-Za-z]+", text) if part)


def _static_segments(path: str) -> list[str]:
    """Path segments up to, not including, the first template parameter."""
    segments: list[str] = []
    for segment in path.strip("/").split("/"):
        if not segment:
            continue
        if segment.startswith("{"):
            break
        segments.append(segment)
    return segments


def _model_name(endpoint: EndpointDescriptor) -> str:
    if endpoint.tags:
        name = _studly(_singular(endpoint.tags[0]))
    else:
        segments = _static_segments(endpoint.path)
        name = _studly(_singular(segments[0])) if segments else ""
    return name or "Resource"


def _build_models(
    endpoints: tuple[EndpointDescriptor, ...], schemas: dict[str, SchemaDescriptor]
) -> dict[str, ModelMapping]:
    """Group endpoints by the resource model they operate on.

    Models appear in the order their first endpoint does. The base path is
    taken from that first endpoint. Attributes and relationships are merged
    from every named request or response schema of the group; on a property
    name clash the schema seen first wins.
    """
    grouped: dict[str, list[EndpointDescriptor]] = {}
    for endpoint in endpoints:
        grouped.setdefault(_model_name(endpoint), []).append(endpoint)

    models: dict[str, ModelMapping] = {}
    for name, members in grouped.items():
        operations: dict[str, list[str]] = {}
        linked: list[str] = []
        for endpoint in members:
            operations.setdefault(endpoint.role.value, []).append(endpoint.operation_id)
            for schema_name in (endpoint.request_schema, endpoint.response_schema):
                if schema_name in schemas and schema_name not in linked:
                    linked.append(schema_name)

        attributes: dict[str, PropertySpec] = {}
        relationships: list[Relationship] = []
        seen: set[tuple[str, str, str, str]] = set()
        for schema_name in linked:
            schema = schemas[schema_name]
            for prop_name, spec in schema.properties.items():
                attributes.setdefault(prop_name, spec)
            for rel in schema.relationships:
                key = (rel.name, rel.kind.value, rel.source, rel.target)
                if key not in seen:
                    seen.add(key)
                    relationships.append(rel)

        models[name] = ModelMapping(
            name=name,
            base_path="/" + "/".join(_static_segments(members[0].path)),
            operations={role: tuple(ids) for role, ids in operations.items()},
            schemas=tuple(linked),
            attributes=attributes,
            relationships=tuple(relationships),
        )
    return models
