"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specmodel.exceptions.SpecmodelError` subclass.
CI scripts that run ``specmodel validate`` can inspect the exit code to tell
a broken document apart from a payload that failed validation.

Example::

    $ specmodel validate openapi.yaml Pet payload.json
    $ echo $?
    8   # EXIT_VALIDATION_FAILURE -- the payload did not satisfy the schema
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration problems)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_NOT_FOUND = 4
"""A named schema or endpoint does not exist in the document."""

EXIT_SPEC_PARSE_ERROR = 7
"""The API description could not be loaded, decoded, or is incomplete."""

EXIT_VALIDATION_FAILURE = 8
"""A payload failed validation under the active strictness level."""
