"""Canonical Pydantic models shared across all specmodel modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ValidationConfig`, :class:`CacheConfig`, :class:`LoaderConfig`,
    :class:`SchemaGroupConfig`, and :class:`Settings`.

**Descriptor models** -- produced by the parser pipeline and stored in the
artifact cache:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`EndpointRole`,
    :class:`PropertySpec`, :class:`Relationship`, :class:`SchemaDescriptor`,
    :class:`ParameterDescriptor`, :class:`EndpointDescriptor`,
    :class:`UnresolvedReference`, :class:`APIInfo`, :class:`ServerInfo`,
    :class:`SecurityScheme`, :class:`ModelMapping`, and :class:`DescriptorSet`.

**Validation models** -- rule sets and results:
    :class:`StrictnessLevel`, the :data:`Rule` variants,
    :class:`ValidationRuleSet`, and :class:`ValidationResult`.

Descriptor and validation models are frozen: once the pipeline hands them
out they are never patched, only replaced.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from specmodel.exceptions import ConfigurationError, NotFoundError, ValidationFailure


# --- Strictness ---


class StrictnessLevel(str, enum.Enum):
    """Interpretation levels applied by the validation engine.

    * ``STRICT`` -- every violation is an error; unknown fields fail.
    * ``MODERATE`` -- required fields relaxed; only critical violations fail.
    * ``LENIENT`` -- bare type checks; only numeric/boolean mismatches fail.
    """

    STRICT = "strict"
    MODERATE = "moderate"
    LENIENT = "lenient"

    @classmethod
    def parse(cls, value: "StrictnessLevel | str") -> "StrictnessLevel":
        """Coerce a level name into a :class:`StrictnessLevel`.

        Raises:
            ConfigurationError: If *value* names no known level.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(level.value for level in cls)
            raise ConfigurationError(
                f"Invalid strictness level: {value!r} (expected one of: {choices})"
            ) from None


# --- Configuration ---


class ValidationConfig(BaseModel):
    """Validation behaviour for one schema group.

    The toggles mirror the options exposed to collaborators. They are read
    once per :meth:`~specmodel.validation.engine.ValidationEngine.validate`
    call, so changing them later never alters a returned result.
    """

    strictness: StrictnessLevel = StrictnessLevel.STRICT
    fail_on_unknown_properties: bool = Field(
        default=True, description="Strict: unknown fields fail. Moderate: they warn."
    )
    fail_on_missing_required: bool = Field(
        default=True, description="Strict: enforce required fields"
    )
    auto_cast_types: bool = Field(
        default=True, description="Coerce input toward declared types before validating"
    )
    validate_formats: bool = Field(
        default=True, description="Run format rules (email, url, date-time, ...)"
    )

    @field_validator("strictness", mode="before")
    @classmethod
    def _parse_strictness(cls, value: Any) -> StrictnessLevel:
        return StrictnessLevel.parse(value)


class CacheConfig(BaseModel):
    """Artifact cache settings for one schema group."""

    enabled: bool = Field(default=True, description="Enable descriptor caching")
    ttl_seconds: int = Field(default=3600, description="Cache TTL in seconds, 0 for no expiry")

    @field_validator("ttl_seconds")
    @classmethod
    def _check_ttl(cls, value: int) -> int:
        if value < 0:
            raise ConfigurationError(f"Cache TTL must be zero or positive (got {value})")
        return value


class LoaderConfig(BaseModel):
    """Document loader limits."""

    timeout: float = Field(default=30.0, gt=0, description="Remote fetch timeout in seconds")
    max_bytes: int = Field(
        default=10 * 1024 * 1024, gt=0, description="Largest accepted document"
    )
    max_depth: int = Field(
        default=256, gt=0, description="Deepest nesting the resolver will walk"
    )


class SchemaGroupConfig(BaseModel):
    """Settings for one logical group of schemas (usually one API)."""

    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


def _default_groups() -> dict[str, SchemaGroupConfig]:
    return {"primary": SchemaGroupConfig()}


class Settings(BaseModel):
    """User-wide configuration persisted at ``~/.config/specmodel/config.json``.

    Loaded and saved by :func:`~specmodel.config.load_settings` and
    :func:`~specmodel.config.save_settings`. Environment overrides are
    applied by :func:`~specmodel.config.resolve_settings`.
    """

    default_group: str = "primary"
    groups: dict[str, SchemaGroupConfig] = Field(default_factory=_default_groups)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    cache_dir: Optional[str] = Field(
        default=None, description="Override the XDG cache directory"
    )

    def group(self, name: Optional[str] = None) -> SchemaGroupConfig:
        """Return the configuration for *name* (or the default group).

        Raises:
            ConfigurationError: If the group is not configured.
        """
        group_name = name or self.default_group
        try:
            return self.groups[group_name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown schema group '{group_name}'. "
                f"Configured groups: {', '.join(self.groups) or '<none>'}"
            ) from None


# --- Descriptor models ---


_FROZEN = ConfigDict(frozen=True)


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI path-item objects."""

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an endpoint parameter can appear."""

    QUERY = "query"
    PATH = "path"
    HEADER = "header"


class EndpointRole(str, enum.Enum):
    """Semantic role of an endpoint, derived from its method and path shape."""

    LIST = "list"
    FETCH = "fetch"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    OTHER = "other"


class RelationshipKind(str, enum.Enum):
    """Relationship kinds inferred from property shapes."""

    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"


class PropertySpec(BaseModel):
    """One property of a schema.

    Named schemas are never embedded: a property that points at
    ``#/components/schemas/Owner`` carries ``ref="Owner"`` and nothing else
    from the target. Anonymous inline objects and array items are embedded
    because they are finite by construction.
    """

    model_config = _FROZEN

    name: str
    type: str = "string"
    format: Optional[str] = None
    description: Optional[str] = None
    enum: Optional[tuple[Any, ...]] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    nullable: bool = False
    default: Any = None
    read_only: bool = False
    write_only: bool = False
    ref: Optional[str] = Field(default=None, description="Name of the referenced schema")
    items: Optional[PropertySpec] = None
    properties: Optional[dict[str, PropertySpec]] = None


class Relationship(BaseModel):
    """An entry in the declarative relationship registry.

    ``Pet.owner -> Owner`` (a single ``$ref``) is ``belongs_to``;
    ``Owner.pets -> Pet[]`` (array of ``$ref``) is ``has_many``.
    """

    model_config = _FROZEN

    name: str
    kind: RelationshipKind
    source: str
    target: str


class SchemaDescriptor(BaseModel):
    """A named schema from the document's schema root."""

    model_config = _FROZEN

    name: str
    type: str = "object"
    description: Optional[str] = None
    properties: dict[str, PropertySpec] = Field(default_factory=dict)
    required: tuple[str, ...] = ()
    relationships: tuple[Relationship, ...] = ()

    def is_required(self, field: str) -> bool:
        return field in self.required


class ParameterDescriptor(BaseModel):
    """A single parameter of an endpoint."""

    model_config = _FROZEN

    name: str
    location: ParameterLocation
    required: bool = False
    type: str = "string"
    format: Optional[str] = None
    description: Optional[str] = None
    constraints: dict[str, Any] = Field(
        default_factory=dict,
        description="Schema keywords such as enum, maxLength, minimum, pattern",
    )


class EndpointDescriptor(BaseModel):
    """A single ``path x method`` pair."""

    model_config = _FROZEN

    path: str
    method: HTTPMethod
    operation_id: str
    role: EndpointRole = EndpointRole.OTHER
    summary: Optional[str] = None
    tags: tuple[str, ...] = ()
    deprecated: bool = False
    parameters: tuple[ParameterDescriptor, ...] = ()
    request_schema: Optional[str] = None
    response_schema: Optional[str] = None
    response_is_collection: bool = False

    def parameter(self, name: str) -> Optional[ParameterDescriptor]:
        return next((p for p in self.parameters if p.name == name), None)


class UnresolvedReference(BaseModel):
    """A ``$ref`` that could not be followed. Reported, never fatal."""

    model_config = _FROZEN

    pointer: str
    location: str = Field(description="JSON path of the node holding the $ref")
    reason: str


class APIInfo(BaseModel):
    """API metadata extracted from the document's *Info Object*."""

    model_config = _FROZEN

    title: str = "Untitled API"
    version: str = "0.0.0"
    description: Optional[str] = None
    contact_email: Optional[str] = None
    license_name: Optional[str] = None


class ServerInfo(BaseModel):
    """A server entry from the ``servers`` array."""

    model_config = _FROZEN

    url: str
    description: Optional[str] = None


class SecurityScheme(BaseModel):
    """An OpenAPI *Security Scheme Object*.

    Only described here so collaborators can pick an auth strategy; this
    package never applies one.
    """

    model_config = _FROZEN

    name: str
    type: str
    description: Optional[str] = None
    param_name: Optional[str] = None
    location: Optional[str] = None
    scheme: Optional[str] = None
    bearer_format: Optional[str] = None


class ModelMapping(BaseModel):
    """Endpoints grouped under the resource model they operate on.

    The model name comes from the first tag of each operation, singularized
    (``pets`` -> ``Pet``). Untagged operations fall back to the first static
    path segment. ``operations`` maps each :class:`EndpointRole` value to the
    operation ids playing that role, in document order.
    """

    model_config = _FROZEN

    name: str
    base_path: str = "/"
    operations: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    schemas: tuple[str, ...] = ()
    attributes: dict[str, PropertySpec] = Field(default_factory=dict)
    relationships: tuple[Relationship, ...] = ()

    def operation_for(self, role: EndpointRole | str) -> Optional[str]:
        """Return the first operation id with the given role, if any."""
        ids = self.operations.get(EndpointRole(role).value, ())
        return ids[0] if ids else None


class DescriptorSet(BaseModel):
    """Everything the pipeline extracts from one document.

    This is the unit stored in the artifact cache and handed to the
    model/query layer.
    """

    model_config = _FROZEN

    openapi_version: str
    info: APIInfo = Field(default_factory=APIInfo)
    servers: tuple[ServerInfo, ...] = ()
    schemas: dict[str, SchemaDescriptor] = Field(default_factory=dict)
    endpoints: tuple[EndpointDescriptor, ...] = ()
    security_schemes: dict[str, SecurityScheme] = Field(default_factory=dict)
    warnings: tuple[str, ...] = ()
    unresolved: tuple[UnresolvedReference, ...] = ()
    models: dict[str, ModelMapping] = Field(default_factory=dict)

    def get_schema(self, name: str) -> SchemaDescriptor:
        """Return the named schema descriptor.

        Raises:
            NotFoundError: If no schema with that name exists.
        """
        try:
            return self.schemas[name]
        except KeyError:
            raise NotFoundError(f"Schema '{name}' is not defined in this document") from None

    def get_endpoint(self, operation_id: str) -> EndpointDescriptor:
        """Return the endpoint with the given operation id.

        Raises:
            NotFoundError: If no endpoint has that operation id.
        """
        for endpoint in self.endpoints:
            if endpoint.operation_id == operation_id:
                return endpoint
        raise NotFoundError(f"Endpoint '{operation_id}' is not defined in this document")

    def get_model(self, name: str) -> ModelMapping:
        """Return the named model mapping.

        Raises:
            NotFoundError: If no endpoints map to a model with that name.
        """
        try:
            return self.models[name]
        except KeyError:
            raise NotFoundError(f"Model '{name}' is not mapped in this document") from None

    def endpoints_for(self, path: str) -> list[EndpointDescriptor]:
        return [e for e in self.endpoints if e.path == path]

    @property
    def relationships(self) -> list[Relationship]:
        """All relationships across all schemas, in schema order."""
        return [rel for schema in self.schemas.values() for rel in schema.relationships]


# --- Validation rules ---


class TypeRule(BaseModel):
    """The value must be of the declared JSON type."""

    model_config = _FROZEN

    kind: Literal["type"] = "type"
    type: str
    item_type: Optional[str] = Field(
        default=None, description="Element type for arrays of primitives"
    )


class FormatRule(BaseModel):
    """The value must match a named string format.

    ``strict`` marks the strengthened variant (domain plausibility for
    email, absolute http(s) URLs, pinned timestamp pattern for date-time).
    """

    model_config = _FROZEN

    kind: Literal["format"] = "format"
    format: str
    strict: bool = False


class LengthRule(BaseModel):
    """String length (or array size) bounds."""

    model_config = _FROZEN

    kind: Literal["length"] = "length"
    min: Optional[int] = None
    max: Optional[int] = None


class RangeRule(BaseModel):
    """Numeric bounds."""

    model_config = _FROZEN

    kind: Literal["range"] = "range"
    minimum: Optional[float] = None
    maximum: Optional[float] = None


class PatternRule(BaseModel):
    """The string must match a regular expression."""

    model_config = _FROZEN

    kind: Literal["pattern"] = "pattern"
    pattern: str


class EnumRule(BaseModel):
    """The value must be one of a fixed set."""

    model_config = _FROZEN

    kind: Literal["enum"] = "enum"
    values: tuple[Any, ...]


class RequiredRule(BaseModel):
    """The field must be present."""

    model_config = _FROZEN

    kind: Literal["required"] = "required"


class NullableRule(BaseModel):
    """The field may be ``null``."""

    model_config = _FROZEN

    kind: Literal["nullable"] = "nullable"


Rule = Annotated[
    Union[
        TypeRule,
        FormatRule,
        LengthRule,
        RangeRule,
        PatternRule,
        EnumRule,
        RequiredRule,
        NullableRule,
    ],
    Field(discriminator="kind"),
]
"""Tagged union of every rule variant, discriminated on ``kind``."""


class ValidationRuleSet(BaseModel):
    """Field name to ordered rules, as produced by the rule generator."""

    model_config = _FROZEN

    schema_name: Optional[str] = None
    fields: dict[str, tuple[Rule, ...]] = Field(default_factory=dict)

    def rules_for(self, field: str) -> tuple[Rule, ...]:
        return self.fields.get(field, ())

    def has_rule(self, field: str, kind: str) -> bool:
        return any(rule.kind == kind for rule in self.rules_for(field))


class ValidationResult(BaseModel):
    """Outcome of one :meth:`~specmodel.validation.engine.ValidationEngine.validate` call.

    Validation never raises. Boundary code that wants exceptions calls
    :meth:`raise_for_errors`.
    """

    model_config = _FROZEN

    valid: bool
    data: dict[str, Any] = Field(default_factory=dict)
    errors: dict[str, list[str]] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    strictness: StrictnessLevel

    def raise_for_errors(self) -> "ValidationResult":
        """Raise :class:`~specmodel.exceptions.ValidationFailure` if invalid, else return self."""
        if not self.valid:
            raise ValidationFailure(self.errors)
        return self
