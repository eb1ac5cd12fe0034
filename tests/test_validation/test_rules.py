"""Tests for specmodel.validation.rules."""

from __future__ import annotations

import pytest

from specmodel.exceptions import NotFoundError
from specmodel.models import (
    DescriptorSet,
    EndpointDescriptor,
    EnumRule,
    FormatRule,
    HTTPMethod,
    LengthRule,
    NullableRule,
    PropertySpec,
    RangeRule,
    RequiredRule,
    SchemaDescriptor,
    TypeRule,
)
from specmodel.validation.rules import generate_endpoint_rules, generate_rules


def _kinds(rules) -> list[str]:
    return [rule.kind for rule in rules]


class TestGenerateRules:
    """Rule sets generated from schema descriptors."""

    def test_required_string_with_length(self, petstore_descriptors: DescriptorSet) -> None:
        rules = generate_rules(petstore_descriptors.get_schema("Pet"))
        assert rules.schema_name == "Pet"
        assert rules.rules_for("name") == (
            RequiredRule(),
            TypeRule(type="string"),
            LengthRule(max=100),
        )

    def test_enum(self, petstore_descriptors: DescriptorSet) -> None:
        rules = generate_rules(petstore_descriptors.get_schema("Pet"))
        assert _kinds(rules.rules_for("status")) == ["required", "type", "enum"]
        assert rules.rules_for("status")[-1] == EnumRule(values=("available", "pending", "sold"))

    def test_nullable_and_range(self, petstore_descriptors: DescriptorSet) -> None:
        rules = generate_rules(petstore_descriptors.get_schema("Pet"))
        assert _kinds(rules.rules_for("tag")) == ["type", "nullable"]
        assert rules.rules_for("price") == (TypeRule(type="number"), RangeRule(minimum=0))

    def test_array_of_primitives_records_item_type(
        self, petstore_descriptors: DescriptorSet
    ) -> None:
        rules = generate_rules(petstore_descriptors.get_schema("Pet"))
        assert rules.rules_for("photoUrls") == (TypeRule(type="array", item_type="string"),)

    def test_linked_schema_is_object_type(self, petstore_descriptors: DescriptorSet) -> None:
        rules = generate_rules(petstore_descriptors.get_schema("Pet"))
        assert rules.rules_for("owner") == (TypeRule(type="object"),)

    def test_strengthened_formats_marked(self, petstore_descriptors: DescriptorSet) -> None:
        rules = generate_rules(petstore_descriptors.get_schema("Owner"))
        assert rules.rules_for("email") == (
            RequiredRule(),
            TypeRule(type="string"),
            FormatRule(format="email", strict=True),
        )
        assert rules.rules_for("website")[-1] == FormatRule(format="uri", strict=True)

    def test_unsupported_format_has_no_rule(self, petstore_descriptors: DescriptorSet) -> None:
        rules = generate_rules(petstore_descriptors.get_schema("Pet"))
        assert not rules.has_rule("id", "format")

    def test_full_rule_order(self) -> None:
        schema = SchemaDescriptor(
            name="Code",
            required=("code",),
            properties={
                "code": PropertySpec(
                    name="code",
                    type="string",
                    format="uuid",
                    nullable=True,
                    min_length=36,
                    max_length=36,
                    pattern="^[0-9a-f-]+$",
                    enum=("00000000-0000-0000-0000-000000000000",),
                    minimum=0,
                ),
            },
        )
        assert _kinds(generate_rules(schema).rules_for("code")) == [
            "required",
            "type",
            "nullable",
            "length",
            "range",
            "pattern",
            "enum",
            "format",
        ]

    def test_any_type_has_no_type_rule(self) -> None:
        schema = SchemaDescriptor(
            name="Blob", properties={"payload": PropertySpec(name="payload", type="any")}
        )
        assert generate_rules(schema).rules_for("payload") == ()

    def test_every_property_has_an_entry(self, petstore_descriptors: DescriptorSet) -> None:
        pet = petstore_descriptors.get_schema("Pet")
        assert list(generate_rules(pet).fields) == list(pet.properties)

    def test_deterministic(self, petstore_descriptors: DescriptorSet) -> None:
        pet = petstore_descriptors.get_schema("Pet")
        assert generate_rules(pet) == generate_rules(pet)


class TestGenerateEndpointRules:
    """Rule sets covering an endpoint's parameters and body."""

    def test_parameters_then_body(self, petstore_descriptors: DescriptorSet) -> None:
        update = petstore_descriptors.get_endpoint("updatePet")
        rules = generate_endpoint_rules(update, petstore_descriptors.schemas)

        assert rules.schema_name == "updatePet"
        assert list(rules.fields)[:2] == ["petId", "X-Request-Id"]
        assert "name" in rules.fields
        assert rules.rules_for("petId") == (RequiredRule(), TypeRule(type="integer"))
        assert rules.rules_for("X-Request-Id") == (
            RequiredRule(),
            TypeRule(type="string"),
            FormatRule(format="uuid"),
        )

    def test_parameter_constraints(self, petstore_descriptors: DescriptorSet) -> None:
        listing = petstore_descriptors.get_endpoint("listPets")
        rules = generate_endpoint_rules(listing, petstore_descriptors.schemas)
        assert rules.rules_for("limit") == (
            TypeRule(type="integer"),
            RangeRule(minimum=1, maximum=100),
        )
        assert _kinds(rules.rules_for("status")) == ["type", "enum"]

    def test_parameter_wins_over_body_property(
        self, petstore_descriptors: DescriptorSet
    ) -> None:
        endpoint = EndpointDescriptor(
            path="/pets/{name}",
            method=HTTPMethod.PUT,
            operation_id="renamePet",
            parameters=(
                petstore_descriptors.get_endpoint("showPetById").parameter("petId").model_copy(
                    update={"name": "name"}
                ),
            ),
            request_schema="Pet",
        )
        rules = generate_endpoint_rules(endpoint, petstore_descriptors.schemas)
        assert rules.rules_for("name") == (RequiredRule(), TypeRule(type="integer"))

    def test_missing_request_schema(self) -> None:
        endpoint = EndpointDescriptor(
            path="/pets", method=HTTPMethod.POST, operation_id="createPet", request_schema="Pet"
        )
        with pytest.raises(NotFoundError, match="Request schema 'Pet'"):
            generate_endpoint_rules(endpoint, {})

    def test_endpoint_without_inputs(self, petstore_descriptors: DescriptorSet) -> None:
        purge = petstore_descriptors.get_endpoint("purgeCache")
        assert generate_endpoint_rules(purge, petstore_descriptors.schemas).fields == {}

    def test_nullable_rule_never_added_for_parameters(
        self, petstore_descriptors: DescriptorSet
    ) -> None:
        listing = petstore_descriptors.get_endpoint("listPets")
        rules = generate_endpoint_rules(listing, petstore_descriptors.schemas)
        assert NullableRule() not in rules.rules_for("limit")
