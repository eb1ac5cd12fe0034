"""specmodel -- Resolve OpenAPI documents into descriptors and validate payloads.

This package ingests an OpenAPI 3.x or Swagger 2.0 document, resolves its
``$ref`` pointers (cycles included), and builds immutable descriptors for
its schemas, endpoints, parameters, and relationships. Those descriptors
drive field-level validation rule sets, which are applied to payloads under
a strict, moderate, or lenient policy.

Typical workflow::

    from specmodel.parser import parse_spec
    from specmodel.validation import ValidationEngine, generate_rules

    descriptors = parse_spec("petstore.yaml")
    rules = generate_rules(descriptors.get_schema("Pet"))
    result = ValidationEngine().validate({"name": "Fluffy"}, rules)

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware settings management.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
