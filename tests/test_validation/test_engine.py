"""Tests for specmodel.validation.engine."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from specmodel.exceptions import ConfigurationError, ValidationFailure
from specmodel.exit_codes import EXIT_VALIDATION_FAILURE
from specmodel.models import (
    DescriptorSet,
    PatternRule,
    SchemaGroupConfig,
    Settings,
    StrictnessLevel,
    TypeRule,
    ValidationConfig,
    ValidationRuleSet,
)
from specmodel.validation.engine import ValidationEngine, cast_value
from specmodel.validation.rules import generate_rules

VALID_PET = {"name": "Fluffy", "status": "available"}
BAD_PET = {"name": "x" * 101, "status": "unknown"}

LEVELS = ["strict", "moderate", "lenient"]


@pytest.fixture
def pet_rules(petstore_descriptors: DescriptorSet) -> ValidationRuleSet:
    return generate_rules(petstore_descriptors.get_schema("Pet"))


@pytest.fixture
def owner_rules(petstore_descriptors: DescriptorSet) -> ValidationRuleSet:
    return generate_rules(petstore_descriptors.get_schema("Owner"))


@pytest.fixture
def category_rules(petstore_descriptors: DescriptorSet) -> ValidationRuleSet:
    return generate_rules(petstore_descriptors.get_schema("Category"))


# ---------------------------------------------------------------------------
# Strictness levels
# ---------------------------------------------------------------------------


class TestStrictnessLevels:
    """The same payload under each policy."""

    @pytest.mark.parametrize("level", LEVELS)
    def test_valid_payload_passes_everywhere(
        self, pet_rules: ValidationRuleSet, level: str
    ) -> None:
        result = ValidationEngine().validate(VALID_PET, pet_rules, strictness=level)
        assert result.valid is True
        assert result.errors == {}
        assert result.warnings == []
        assert result.strictness is StrictnessLevel(level)

    def test_strict_reports_every_violation(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(BAD_PET, pet_rules, strictness="strict")
        assert result.valid is False
        assert result.errors == {
            "name": ["must not exceed 100 characters"],
            "status": ["must be one of: available, pending, sold"],
        }
        assert result.warnings == []

    def test_moderate_downgrades_to_warnings(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(BAD_PET, pet_rules, strictness="moderate")
        assert result.valid is True
        assert result.errors == {}
        assert result.warnings == [
            "Field 'name': must not exceed 100 characters",
            "Field 'status': must be one of: available, pending, sold",
        ]

    def test_lenient_only_checks_types(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(BAD_PET, pet_rules, strictness="lenient")
        assert result.valid is True
        assert result.errors == {}
        assert result.warnings == []


# ---------------------------------------------------------------------------
# Required fields
# ---------------------------------------------------------------------------


class TestRequired:
    def test_strict_missing_required(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({}, pet_rules)
        assert result.errors == {"name": ["is required"], "status": ["is required"]}

    def test_strict_null_required(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({"name": None, "status": "sold"}, pet_rules)
        assert result.errors == {"name": ["is required"]}

    def test_strict_required_can_be_disabled(self, pet_rules: ValidationRuleSet) -> None:
        engine = ValidationEngine(ValidationConfig(fail_on_missing_required=False))
        assert engine.validate({}, pet_rules).valid is True

    @pytest.mark.parametrize("level", ["moderate", "lenient"])
    def test_relaxed_levels_accept_missing_and_null(
        self, pet_rules: ValidationRuleSet, level: str
    ) -> None:
        engine = ValidationEngine()
        assert engine.validate({}, pet_rules, strictness=level).valid is True
        assert engine.validate({"name": None}, pet_rules, strictness=level).valid is True

    def test_nullable_field_accepts_null(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({**VALID_PET, "tag": None}, pet_rules)
        assert result.valid is True

    def test_non_nullable_optional_null_is_type_error(
        self, pet_rules: ValidationRuleSet
    ) -> None:
        result = ValidationEngine().validate({**VALID_PET, "price": None}, pet_rules)
        assert result.errors == {"price": ["must be a number"]}


# ---------------------------------------------------------------------------
# Unknown fields
# ---------------------------------------------------------------------------


class TestUnknownFields:
    PAYLOAD = {**VALID_PET, "color": "black", "size": 3}

    def test_strict_rejects(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(self.PAYLOAD, pet_rules)
        assert result.errors == {
            "color": ["is not an allowed field"],
            "size": ["is not an allowed field"],
        }

    def test_strict_allows_when_disabled(self, pet_rules: ValidationRuleSet) -> None:
        engine = ValidationEngine(ValidationConfig(fail_on_unknown_properties=False))
        assert engine.validate(self.PAYLOAD, pet_rules).valid is True

    def test_moderate_warns_once(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(self.PAYLOAD, pet_rules, strictness="moderate")
        assert result.valid is True
        assert result.warnings == ["Unknown properties found: color, size"]

    def test_lenient_ignores(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(self.PAYLOAD, pet_rules, strictness="lenient")
        assert result.valid is True
        assert result.warnings == []

    def test_unknown_fields_kept_in_data(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(self.PAYLOAD, pet_rules, strictness="lenient")
        assert result.data["color"] == "black"


# ---------------------------------------------------------------------------
# Critical violations
# ---------------------------------------------------------------------------


class TestCriticalViolations:
    def test_moderate_number_mismatch_is_error(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(
            {**VALID_PET, "price": "cheap"}, pet_rules, strictness="moderate"
        )
        assert result.errors == {"price": ["must be a number"]}

    def test_moderate_string_mismatch_is_warning(self, pet_rules: ValidationRuleSet) -> None:
        engine = ValidationEngine(ValidationConfig(auto_cast_types=False))
        result = engine.validate({"name": 42}, pet_rules, strictness="moderate")
        assert result.valid is True
        assert result.warnings == ["Field 'name': must be a string"]

    def test_moderate_email_format_is_error(self, owner_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(
            {"email": "not-an-email"}, owner_rules, strictness="moderate"
        )
        assert result.errors == {"email": ["must be a valid email address"]}

    def test_moderate_uses_basic_email_check(self, owner_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({"email": "a@b"}, owner_rules, strictness="moderate")
        assert result.valid is True

    def test_strict_uses_strengthened_email_check(self, owner_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({"email": "a@b"}, owner_rules)
        assert result.errors == {"email": ["must be a valid email address"]}

    def test_strict_format_strength_follows_config(self, owner_rules: ValidationRuleSet) -> None:
        engine = ValidationEngine(ValidationConfig(validate_formats=False))
        assert engine.validate({"email": "a@b"}, owner_rules).valid is True
        assert engine.validate({"email": "nope"}, owner_rules).valid is False

    def test_lenient_boolean_mismatch_is_error(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({"vaccinated": "maybe"}, pet_rules, strictness="lenient")
        assert result.errors == {"vaccinated": ["must be a boolean"]}

    def test_lenient_string_mismatch_is_warning(self, pet_rules: ValidationRuleSet) -> None:
        engine = ValidationEngine(ValidationConfig(auto_cast_types=False))
        result = engine.validate({"name": ["Fluffy"]}, pet_rules, strictness="lenient")
        assert result.valid is True
        assert result.warnings == ["Field 'name': must be a string"]


# ---------------------------------------------------------------------------
# Individual rules
# ---------------------------------------------------------------------------


class TestRuleMessages:
    def test_range(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({**VALID_PET, "price": -1}, pet_rules)
        assert result.errors == {"price": ["must be at least 0"]}

    def test_length_and_pattern(self, category_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({"name": ""}, category_rules)
        assert result.errors == {
            "name": ["must be at least 1 characters", "must match pattern ^[A-Za-z ]+$"]
        }

    def test_pattern(self, category_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({"name": "Cats4"}, category_rules)
        assert result.errors == {"name": ["must match pattern ^[A-Za-z ]+$"]}

    def test_array_items(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({**VALID_PET, "photoUrls": ["a.png", 3]}, pet_rules)
        assert result.errors == {"photoUrls": ["item 1 must be a string"]}

    def test_boolean_is_not_an_integer(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({**VALID_PET, "stock": True}, pet_rules)
        assert result.errors == {"stock": ["must be an integer"]}

    def test_invalid_pattern_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        rules = ValidationRuleSet(
            fields={"code": (TypeRule(type="string"), PatternRule(pattern="[unclosed"))}
        )
        with caplog.at_level(logging.WARNING, logger="specmodel.validation.engine"):
            result = ValidationEngine().validate({"code": "abc"}, rules)
        assert result.valid is True
        assert "Skipping invalid pattern" in caplog.text


# ---------------------------------------------------------------------------
# Auto-cast
# ---------------------------------------------------------------------------


class TestAutoCast:
    def test_numeric_strings_are_cast(self, pet_rules: ValidationRuleSet) -> None:
        payload = {**VALID_PET, "price": "150.50", "stock": "3", "vaccinated": "yes"}
        result = ValidationEngine().validate(payload, pet_rules)
        assert result.valid is True
        assert result.data["price"] == 150.5
        assert result.data["stock"] == 3
        assert result.data["vaccinated"] is True

    def test_input_not_modified(self, pet_rules: ValidationRuleSet) -> None:
        payload = {**VALID_PET, "stock": "3"}
        ValidationEngine().validate(payload, pet_rules)
        assert payload["stock"] == "3"

    def test_json_array_string(self, pet_rules: ValidationRuleSet) -> None:
        payload = {**VALID_PET, "photoUrls": '["https://petstore.io/1.png"]'}
        result = ValidationEngine().validate(payload, pet_rules)
        assert result.data["photoUrls"] == ["https://petstore.io/1.png"]

    def test_cast_disabled(self, pet_rules: ValidationRuleSet) -> None:
        engine = ValidationEngine(ValidationConfig(auto_cast_types=False))
        result = engine.validate({**VALID_PET, "price": "150.50", "stock": "3"}, pet_rules)
        assert result.errors == {"price": ["must be a number"], "stock": ["must be an integer"]}
        assert result.data["stock"] == "3"

    @pytest.mark.parametrize(
        "value, type_name, expected",
        [
            ("150.50", "number", 150.5),
            ("10", "number", 10),
            ("3", "integer", 3),
            (" 7 ", "integer", 7),
            ("3.0", "integer", 3),
            ("3.5", "integer", "3.5"),
            ("abc", "integer", "abc"),
            ("inf", "number", "inf"),
            ("1_000", "integer", "1_000"),
            ("1_000.5", "number", "1_000.5"),
            ("yes", "boolean", True),
            ("OFF", "boolean", False),
            (1, "boolean", True),
            (0, "boolean", False),
            (2, "boolean", 2),
            ("maybe", "boolean", "maybe"),
            ('{"a": 1}', "object", {"a": 1}),
            ("[1]", "object", "[1]"),
            ("[1, 2]", "array", [1, 2]),
            ("not json", "array", "not json"),
            (42, "string", "42"),
            (True, "string", True),
            ("x", "any", "x"),
        ],
    )
    def test_cast_value(self, value, type_name: str, expected) -> None:
        assert cast_value(value, type_name) == expected
        assert type(cast_value(value, type_name)) is type(expected)

    def test_nan_not_cast(self) -> None:
        assert cast_value("nan", "number") == "nan"
        assert cast_value("nan", "integer") == "nan"

    def test_digit_separators_fail_validation(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate({**VALID_PET, "stock": "1_000"}, pet_rules)
        assert result.errors == {"stock": ["must be an integer"]}
        assert result.data["stock"] == "1_000"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestConfiguration:
    def test_default_is_strict(self) -> None:
        assert ValidationEngine().strictness is StrictnessLevel.STRICT

    def test_set_strictness(self) -> None:
        engine = ValidationEngine().set_strictness("MODERATE")
        assert engine.strictness is StrictnessLevel.MODERATE

    def test_invalid_level(self, pet_rules: ValidationRuleSet) -> None:
        engine = ValidationEngine()
        with pytest.raises(ConfigurationError, match="Invalid strictness level: 'relaxed'"):
            engine.set_strictness("relaxed")
        with pytest.raises(ConfigurationError):
            engine.validate(VALID_PET, pet_rules, strictness="relaxed")
        assert engine.strictness is StrictnessLevel.STRICT

    def test_update_config(self, pet_rules: ValidationRuleSet) -> None:
        engine = ValidationEngine().update_config(auto_cast_types=False, strictness="lenient")
        assert engine.config.auto_cast_types is False
        assert engine.strictness is StrictnessLevel.LENIENT

    def test_update_config_rejects_bad_values(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid validation settings"):
            ValidationEngine().update_config(strictness="bogus")

    def test_changes_do_not_alter_earlier_results(self, pet_rules: ValidationRuleSet) -> None:
        engine = ValidationEngine()
        before = engine.validate(BAD_PET, pet_rules)

        engine.set_strictness("lenient")
        after = engine.validate(BAD_PET, pet_rules)

        assert before.valid is False
        assert before.strictness is StrictnessLevel.STRICT
        assert after.valid is True
        assert after.strictness is StrictnessLevel.LENIENT

    def test_per_call_override_does_not_stick(self, pet_rules: ValidationRuleSet) -> None:
        engine = ValidationEngine()
        engine.validate(BAD_PET, pet_rules, strictness="lenient")
        assert engine.strictness is StrictnessLevel.STRICT

    def test_for_group(self) -> None:
        settings = Settings(
            groups={
                "primary": SchemaGroupConfig(),
                "legacy": SchemaGroupConfig(validation=ValidationConfig(strictness="moderate")),
            }
        )
        assert ValidationEngine.for_group(settings).strictness is StrictnessLevel.STRICT
        assert ValidationEngine.for_group(settings, "legacy").strictness is StrictnessLevel.MODERATE
        with pytest.raises(ConfigurationError, match="Unknown schema group 'missing'"):
            ValidationEngine.for_group(settings, "missing")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class TestResult:
    def test_result_is_frozen(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(BAD_PET, pet_rules)
        with pytest.raises(ValidationError):
            result.valid = True  # type: ignore[misc]

    def test_raise_for_errors(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(BAD_PET, pet_rules)
        with pytest.raises(ValidationFailure) as exc_info:
            result.raise_for_errors()
        assert exc_info.value.errors == result.errors
        assert exc_info.value.exit_code == EXIT_VALIDATION_FAILURE
        assert "name, status" in str(exc_info.value)

    def test_raise_for_errors_returns_valid_result(self, pet_rules: ValidationRuleSet) -> None:
        result = ValidationEngine().validate(VALID_PET, pet_rules)
        assert result.raise_for_errors() is result
