"""Generate field-level validation rules from descriptors.

The generator is strictness-agnostic: it always emits the full rule set for
a schema and leaves relaxation to
:class:`~specmodel.validation.engine.ValidationEngine`. Both functions are
pure; calling them twice with the same descriptor yields equal rule sets.

Per field, rules are emitted in this order::

    RequiredRule, TypeRule, NullableRule, LengthRule, RangeRule,
    PatternRule, EnumRule, FormatRule
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from specmodel.exceptions import NotFoundError
from specmodel.models import (
    EndpointDescriptor,
    EnumRule,
    FormatRule,
    LengthRule,
    NullableRule,
    ParameterDescriptor,
    PatternRule,
    PropertySpec,
    RangeRule,
    RequiredRule,
    Rule,
    SchemaDescriptor,
    TypeRule,
    ValidationRuleSet,
)
from specmodel.validation.formats import STRENGTHENED_FORMATS, SUPPORTED_FORMATS

JSON_TYPES = frozenset({"string", "integer", "number", "boolean", "array", "object"})
_PRIMITIVE_TYPES = frozenset({"string", "integer", "number", "boolean"})


def generate_rules(schema: SchemaDescriptor) -> ValidationRuleSet:
    """Build the rule set for every property of *schema*.

    Args:
        schema: A descriptor from
            :attr:`DescriptorSet.schemas <specmodel.models.DescriptorSet.schemas>`.

    Returns:
        A :class:`~specmodel.models.ValidationRuleSet` keyed by property
        name in declaration order.

    Example::

        rules = generate_rules(descriptors.get_schema("Pet"))
        [rule.kind for rule in rules.rules_for("name")]
        # ['required', 'type', 'length']
    """
    fields: dict[str, tuple[Rule, ...]] = {}
    for name, prop in schema.properties.items():
        fields[name] = _property_rules(prop, schema.is_required(name))
    return ValidationRuleSet(schema_name=schema.name, fields=fields)


def generate_endpoint_rules(
    endpoint: EndpointDescriptor, schemas: Mapping[str, SchemaDescriptor]
) -> ValidationRuleSet:
    """Build one rule set covering an endpoint's parameters and request body.

    Parameter rules come first. Request-body properties are appended
    afterwards; a body property whose name matches a parameter is left to
    the parameter's rules.

    Raises:
        NotFoundError: If the endpoint's request schema is not in *schemas*.
    """
    fields: dict[str, tuple[Rule, ...]] = {}
    for param in endpoint.parameters:
        fields[param.name] = _parameter_rules(param)

    if endpoint.request_schema is not None:
        body = schemas.get(endpoint.request_schema)
        if body is None:
            raise NotFoundError(
                f"Request schema '{endpoint.request_schema}' of "
                f"'{endpoint.operation_id}' is not defined in this document"
            )
        for name, rules in generate_rules(body).fields.items():
            fields.setdefault(name, rules)

    return ValidationRuleSet(schema_name=endpoint.operation_id, fields=fields)


def _property_rules(prop: PropertySpec, required: bool) -> tuple[Rule, ...]:
    item_type: Optional[str] = None
    if prop.type == "array" and prop.items is not None and prop.items.type in _PRIMITIVE_TYPES:
        item_type = prop.items.type

    return _build(
        required=required,
        type_name=prop.type,
        item_type=item_type,
        nullable=prop.nullable,
        min_length=prop.min_length,
        max_length=prop.max_length,
        minimum=prop.minimum,
        maximum=prop.maximum,
        pattern=prop.pattern,
        enum=prop.enum,
        fmt=prop.format,
    )


def _parameter_rules(param: ParameterDescriptor) -> tuple[Rule, ...]:
    c = param.constraints
    is_array = param.type == "array"
    enum = c.get("enum")

    return _build(
        required=param.required,
        type_name=param.type,
        item_type=None,
        nullable=False,
        min_length=_as_int(c.get("minItems" if is_array else "minLength")),
        max_length=_as_int(c.get("maxItems" if is_array else "maxLength")),
        minimum=_as_float(c.get("minimum")),
        maximum=_as_float(c.get("maximum")),
        pattern=c.get("pattern") if isinstance(c.get("pattern"), str) else None,
        enum=tuple(enum) if isinstance(enum, list) else None,
        fmt=param.format,
    )


def _build(
    *,
    required: bool,
    type_name: str,
    item_type: Optional[str],
    nullable: bool,
    min_length: Optional[int],
    max_length: Optional[int],
    minimum: Optional[float],
    maximum: Optional[float],
    pattern: Optional[str],
    enum: Optional[tuple[Any, ...]],
    fmt: Optional[str],
) -> tuple[Rule, ...]:
    rules: list[Rule] = []

    if required:
        rules.append(RequiredRule())
    # "any" (no declared type) gets no type check at all.
    if type_name in JSON_TYPES:
        rules.append(TypeRule(type=type_name, item_type=item_type))
    if nullable:
        rules.append(NullableRule())
    if min_length is not None or max_length is not None:
        rules.append(LengthRule(min=min_length, max=max_length))
    if minimum is not None or maximum is not None:
        rules.append(RangeRule(minimum=minimum, maximum=maximum))
    if pattern:
        rules.append(PatternRule(pattern=pattern))
    if enum:
        rules.append(EnumRule(values=enum))
    if fmt in SUPPORTED_FORMATS and type_name in ("string", "any"):
        rules.append(FormatRule(format=fmt, strict=fmt in STRENGTHENED_FORMATS))

    return tuple(rules)


def _as_int(value: Any) -> Optional[int]:
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
