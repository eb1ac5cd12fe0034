"""Validation rules and the strictness policy engine.

Typical usage::

    from specmodel.validation import ValidationEngine, generate_rules

    rules = generate_rules(descriptors.get_schema("Pet"))
    result = ValidationEngine().validate(payload, rules, strictness="moderate")

Sub-modules:

* :mod:`~specmodel.validation.rules` -- descriptor to rule-set generation.
* :mod:`~specmodel.validation.formats` -- string format checks.
* :mod:`~specmodel.validation.engine` -- auto-casting and strict, moderate,
  and lenient policies.
"""

from specmodel.validation.engine import ValidationEngine
from specmodel.validation.formats import check_format
from specmodel.validation.rules import generate_endpoint_rules, generate_rules

__all__ = ["ValidationEngine", "check_format", "generate_rules", "generate_endpoint_rules"]
