"""Validate payloads against rule sets under a strictness policy.

:class:`ValidationEngine` holds a :class:`~specmodel.models.ValidationConfig`
snapshot and applies one of three policies per call:

* **strict** -- unknown fields and every rule violation are errors;
  required fields are enforced and format rules run at full strength.
* **moderate** -- unknown fields are warnings, required fields are relaxed
  to nullable, and only critical violations (integer/number type
  mismatches, email/URL format violations) are errors.
* **lenient** -- only type and nullable rules are evaluated, and only
  integer/number/boolean type mismatches are errors.

Violations are classified by the kind of rule that produced them, never by
message text. Values are auto-cast toward the declared type before any rule
runs unless ``auto_cast_types`` is disabled.

:meth:`ValidationEngine.validate` always returns a
:class:`~specmodel.models.ValidationResult`; it does not raise for invalid
data.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from specmodel.exceptions import ConfigurationError
from specmodel.models import (
    FormatRule,
    NullableRule,
    Rule,
    Settings,
    StrictnessLevel,
    TypeRule,
    ValidationConfig,
    ValidationResult,
    ValidationRuleSet,
)
from specmodel.validation.formats import check_format

logger = logging.getLogger(__name__)

_TRUE_TOKENS = frozenset({"true", "1", "yes", "on"})
_FALSE_TOKENS = frozenset({"false", "0", "no", "off"})

_MODERATE_CRITICAL_TYPES = frozenset({"integer", "number"})
_MODERATE_CRITICAL_FORMATS = frozenset({"email", "url", "uri"})
_LENIENT_CRITICAL_TYPES = frozenset({"integer", "number", "boolean"})

_TYPE_MESSAGES = {
    "string": "must be a string",
    "integer": "must be an integer",
    "number": "must be a number",
    "boolean": "must be a boolean",
    "array": "must be an array",
    "object": "must be an object",
}


@dataclass(frozen=True)
class _Violation:
    field: str
    kind: str
    subject: Optional[str]
    message: str


class ValidationEngine:
    """Apply a strictness policy to rule sets.

    Args:
        config: Validation settings. The engine keeps its own reference and
            replaces it wholesale on :meth:`set_strictness` and
            :meth:`update_config`, so results already returned never change.

    Example::

        engine = ValidationEngine(ValidationConfig(strictness="moderate"))
        result = engine.validate({"name": "Fluffy"}, generate_rules(pet))
        if not result.valid:
            print(result.errors)
    """

    def __init__(self, config: Optional[ValidationConfig] = None) -> None:
        self._config = config or ValidationConfig()

    @classmethod
    def for_group(cls, settings: Settings, group: Optional[str] = None) -> "ValidationEngine":
        """Build an engine from a schema group's configuration.

        Raises:
            ConfigurationError: If *group* is not configured.
        """
        return cls(settings.group(group).validation)

    @property
    def config(self) -> ValidationConfig:
        return self._config

    @property
    def strictness(self) -> StrictnessLevel:
        return self._config.strictness

    def set_strictness(self, level: StrictnessLevel | str) -> "ValidationEngine":
        """Switch the default strictness level for later calls.

        Raises:
            ConfigurationError: If *level* names no known level.
        """
        parsed = StrictnessLevel.parse(level)
        self._config = self._config.model_copy(update={"strictness": parsed})
        return self

    def update_config(self, **changes: Any) -> "ValidationEngine":
        """Merge *changes* into the configuration for later calls.

        Raises:
            ConfigurationError: If the merged configuration is invalid.
        """
        merged = {**self._config.model_dump(), **changes}
        try:
            self._config = ValidationConfig.model_validate(merged)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid validation settings: {exc}") from exc
        return self

    def validate(
        self,
        data: dict[str, Any],
        rule_set: ValidationRuleSet,
        strictness: Optional[StrictnessLevel | str] = None,
    ) -> ValidationResult:
        """Validate *data* against *rule_set*.

        Args:
            data: The payload. It is not modified; casting works on a copy.
            rule_set: Rules from :func:`~specmodel.validation.rules.generate_rules`.
            strictness: Per-call override of the configured level.

        Returns:
            A frozen :class:`~specmodel.models.ValidationResult` carrying the
            (cast) data, errors by field, and warnings.

        Raises:
            ConfigurationError: If *strictness* names no known level.
        """
        config = self._config
        level = StrictnessLevel.parse(strictness) if strictness is not None else config.strictness

        values = dict(data)
        if config.auto_cast_types:
            values = _auto_cast(values, rule_set)

        errors: dict[str, list[str]] = {}
        warnings: list[str] = []
        unknown = [name for name in values if name not in rule_set.fields]

        if level is StrictnessLevel.STRICT:
            if unknown and config.fail_on_unknown_properties:
                for name in unknown:
                    errors.setdefault(name, []).append("is not an allowed field")
            fields = {
                name: _strict_rules(rules, config) for name, rules in rule_set.fields.items()
            }
            for violation in _check_all(values, fields):
                errors.setdefault(violation.field, []).append(violation.message)

        elif level is StrictnessLevel.MODERATE:
            if unknown and config.fail_on_unknown_properties:
                warnings.append(f"Unknown properties found: {', '.join(unknown)}")
            fields = {name: _moderate_rules(rules) for name, rules in rule_set.fields.items()}
            for violation in _check_all(values, fields):
                if _is_critical_moderate(violation):
                    errors.setdefault(violation.field, []).append(violation.message)
                else:
                    warnings.append(f"Field '{violation.field}': {violation.message}")

        else:
            fields = {name: _lenient_rules(rules) for name, rules in rule_set.fields.items()}
            for violation in _check_all(values, fields):
                if _is_critical_lenient(violation):
                    errors.setdefault(violation.field, []).append(violation.message)
                else:
                    warnings.append(f"Field '{violation.field}': {violation.message}")

        if errors:
            logger.debug(
                "Validation of %s failed at %s level: %s",
                rule_set.schema_name or "<payload>",
                level.value,
                ", ".join(errors),
            )

        return ValidationResult(
            valid=not errors,
            data=values,
            errors=errors,
            warnings=warnings,
            strictness=level,
        )


# --- Policy rule transforms ---


def _strict_rules(rules: tuple[Rule, ...], config: ValidationConfig) -> tuple[Rule, ...]:
    result: list[Rule] = []
    for rule in rules:
        if rule.kind == "required" and not config.fail_on_missing_required:
            continue
        if isinstance(rule, FormatRule) and rule.strict and not config.validate_formats:
            rule = FormatRule(format=rule.format, strict=False)
        result.append(rule)
    return tuple(result)


def _moderate_rules(rules: tuple[Rule, ...]) -> tuple[Rule, ...]:
    result: list[Rule] = []
    relaxed = False
    for rule in rules:
        if rule.kind == "required":
            relaxed = True
            continue
        if isinstance(rule, FormatRule) and rule.strict:
            rule = FormatRule(format=rule.format, strict=False)
        result.append(rule)
    if relaxed and not any(rule.kind == "nullable" for rule in result):
        result.append(NullableRule())
    return tuple(result)


def _lenient_rules(rules: tuple[Rule, ...]) -> tuple[Rule, ...]:
    result: list[Rule] = [rule for rule in rules if rule.kind == "type"]
    result.append(NullableRule())
    return tuple(result)


def _is_critical_moderate(violation: _Violation) -> bool:
    if violation.kind == "type":
        return violation.subject in _MODERATE_CRITICAL_TYPES
    if violation.kind == "format":
        return violation.subject in _MODERATE_CRITICAL_FORMATS
    return False


def _is_critical_lenient(violation: _Violation) -> bool:
    return violation.kind == "type" and violation.subject in _LENIENT_CRITICAL_TYPES


# --- Rule evaluation ---


def _check_all(values: dict[str, Any], fields: dict[str, tuple[Rule, ...]]) -> list[_Violation]:
    violations: list[_Violation] = []
    for name, rules in fields.items():
        violations.extend(_check_field(name, values, rules))
    return violations


def _check_field(name: str, values: dict[str, Any], rules: tuple[Rule, ...]) -> list[_Violation]:
    required = any(rule.kind == "required" for rule in rules)
    nullable = any(rule.kind == "nullable" for rule in rules)

    if name not in values:
        if required:
            return [_Violation(name, "required", None, "is required")]
        return []

    value = values[name]
    if value is None:
        if nullable:
            return []
        if required:
            return [_Violation(name, "required", None, "is required")]
        type_rule = next((rule for rule in rules if isinstance(rule, TypeRule)), None)
        if type_rule is None:
            return []
        return [_Violation(name, "type", type_rule.type, _TYPE_MESSAGES[type_rule.type])]

    violations: list[_Violation] = []
    for rule in rules:
        violation = _check_rule(name, value, rule)
        if violation is not None:
            violations.append(violation)
    return violations


def _check_rule(name: str, value: Any, rule: Rule) -> Optional[_Violation]:
    if rule.kind == "type":
        if not _matches_type(value, rule.type):
            return _Violation(name, "type", rule.type, _TYPE_MESSAGES[rule.type])
        if rule.item_type and isinstance(value, list):
            for index, item in enumerate(value):
                if not _matches_type(item, rule.item_type):
                    return _Violation(
                        name,
                        "type",
                        rule.item_type,
                        f"item {index} {_TYPE_MESSAGES[rule.item_type]}",
                    )
        return None

    if rule.kind == "length":
        return _check_length(name, value, rule.min, rule.max)

    if rule.kind == "range":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if rule.minimum is not None and value < rule.minimum:
            return _Violation(name, "range", None, f"must be at least {rule.minimum:g}")
        if rule.maximum is not None and value > rule.maximum:
            return _Violation(name, "range", None, f"must not be greater than {rule.maximum:g}")
        return None

    if rule.kind == "pattern":
        if not isinstance(value, str):
            return None
        try:
            matched = re.search(rule.pattern, value)
        except re.error as exc:
            logger.warning("Skipping invalid pattern %r for field '%s': %s", rule.pattern, name, exc)
            return None
        if matched is None:
            return _Violation(name, "pattern", None, f"must match pattern {rule.pattern}")
        return None

    if rule.kind == "enum":
        if value not in rule.values:
            allowed = ", ".join(str(v) for v in rule.values)
            return _Violation(name, "enum", None, f"must be one of: {allowed}")
        return None

    if rule.kind == "format":
        message = check_format(rule.format, value, strict=rule.strict)
        if message is not None:
            return _Violation(name, "format", rule.format, message)
        return None

    return None


def _check_length(
    name: str, value: Any, minimum: Optional[int], maximum: Optional[int]
) -> Optional[_Violation]:
    if isinstance(value, str):
        unit = "characters"
    elif isinstance(value, list):
        unit = "items"
    else:
        return None

    size = len(value)
    if minimum is not None and size < minimum:
        return _Violation(name, "length", None, f"must be at least {minimum} {unit}")
    if maximum is not None and size > maximum:
        return _Violation(name, "length", None, f"must not exceed {maximum} {unit}")
    return None


def _matches_type(value: Any, type_name: str) -> bool:
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if type_name == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if type_name == "boolean":
        return isinstance(value, bool)
    if type_name == "array":
        return isinstance(value, list)
    if type_name == "object":
        return isinstance(value, dict)
    return True


# --- Auto-cast ---


def _auto_cast(values: dict[str, Any], rule_set: ValidationRuleSet) -> dict[str, Any]:
    """Coerce values toward each field's declared type. Never fails."""
    cast: dict[str, Any] = {}
    for name, value in values.items():
        type_rule = next(
            (rule for rule in rule_set.rules_for(name) if isinstance(rule, TypeRule)), None
        )
        if type_rule is None or value is None:
            cast[name] = value
            continue
        cast[name] = cast_value(value, type_rule.type)
    return cast


def cast_value(value: Any, type_name: str) -> Any:
    """Coerce one value toward *type_name*, returning it unchanged when that is not possible.

    >>> cast_value("150.50", "number")
    150.5
    >>> cast_value("3", "integer")
    3
    >>> cast_value("yes", "boolean")
    True
    """
    if type_name in ("integer", "number") and isinstance(value, str) and "_" in value:
        # Python numeric literals allow digit separators; payload values do not.
        return value

    if type_name == "integer" and isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            try:
                number = float(value)
            except ValueError:
                return value
            return int(number) if math.isfinite(number) and number.is_integer() else value

    if type_name == "number" and isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return value
        if not math.isfinite(number):
            return value
        return int(number) if number.is_integer() and "." not in value else number

    if type_name == "boolean":
        if isinstance(value, str):
            token = value.strip().lower()
            if token in _TRUE_TOKENS:
                return True
            if token in _FALSE_TOKENS:
                return False
            return value
        if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
            return bool(value)
        return value

    if type_name in ("array", "object") and isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            return value
        expected = list if type_name == "array" else dict
        return decoded if isinstance(decoded, expected) else value

    if type_name == "string" and isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)

    return value
