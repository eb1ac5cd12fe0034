"""OpenAPI document parser -- load, resolve ``$ref`` pointers, and build descriptors.

This sub-package is responsible for the first half of the specmodel
pipeline: turning a raw OpenAPI 3.x or Swagger 2.0 document (JSON or YAML,
inline mapping, local file, remote URL, or stdin) into a
:class:`~specmodel.models.DescriptorSet` that the validation layer can
consume.

Typical usage::

    from specmodel.parser import parse_spec

    descriptors = parse_spec("https://petstore3.swagger.io/api/v3/openapi.json")
    pet = descriptors.get_schema("Pet")

Sub-modules:

* :mod:`~specmodel.parser.loader` -- I/O layer (mapping, URL, file, stdin,
  text) plus format detection, required-field and version checks.
* :mod:`~specmodel.parser.resolver` -- ``$ref`` resolution with cycle
  back-references and an unresolved-reference table.
* :mod:`~specmodel.parser.extractor` -- Walks the resolved document and
  produces schema, endpoint, and model-mapping descriptors.
* :mod:`~specmodel.parser.pipeline` -- The three stages above as one unit,
  wrapped by the artifact cache.
"""

from specmodel.parser.extractor import extract_descriptors
from specmodel.parser.loader import load_document, validate_openapi_version
from specmodel.parser.pipeline import parse_spec
from specmodel.parser.resolver import resolve_document

__all__ = [
    "load_document",
    "validate_openapi_version",
    "resolve_document",
    "extract_descriptors",
    "parse_spec",
]
