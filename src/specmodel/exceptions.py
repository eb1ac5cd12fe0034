"""Exception hierarchy for specmodel.

All exceptions inherit from :class:`SpecmodelError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specmodel.exit_codes`.
The CLI entry point catches ``SpecmodelError`` and exits with the
appropriate code.

Subclass hierarchy::

    SpecmodelError (exit 1)
    +-- ParsingError          (exit 7)
    |   +-- MissingFieldError (exit 7)
    +-- ReferenceError_       (exit 7, recorded by the resolver, not raised to callers)
    +-- ConfigurationError    (exit 1)
    +-- NotFoundError         (exit 4)
    +-- ValidationFailure     (exit 8)
"""

from __future__ import annotations

from typing import Optional

from specmodel.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_VALIDATION_FAILURE,
)


class SpecmodelError(Exception):
    """Base exception for all specmodel errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ParsingError(SpecmodelError):
    """Raised when a document cannot be fetched, decoded, or has the wrong shape.

    Args:
        message: Human-readable error description.
        timed_out: ``True`` when the failure was a network timeout while
            fetching a remote document.
    """

    exit_code = EXIT_SPEC_PARSE_ERROR

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out


class MissingFieldError(ParsingError):
    """Raised when a required top-level field (version marker, ``info``, ``paths``) is absent."""

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Document is missing required top-level field '{field}'")
        self.field = field


class ReferenceError_(SpecmodelError):
    """Raised when a ``$ref`` pointer cannot be followed.

    Named with a trailing underscore to avoid shadowing the built-in
    ``ReferenceError``. The resolver catches it and records an
    :class:`~specmodel.models.UnresolvedReference` instead of aborting.
    """

    exit_code = EXIT_SPEC_PARSE_ERROR

    def __init__(self, pointer: str, reason: str):
        super().__init__(f"Cannot resolve $ref '{pointer}': {reason}")
        self.pointer = pointer
        self.reason = reason


class ConfigurationError(SpecmodelError):
    """Raised for unknown strictness levels, invalid settings files, or bad numeric settings."""

    exit_code = EXIT_GENERIC_FAILURE


class NotFoundError(SpecmodelError):
    """Raised when a requested schema or endpoint is not part of the descriptor set."""

    exit_code = EXIT_NOT_FOUND


class ValidationFailure(SpecmodelError):
    """Raised at the boundary when a caller asks a failed result to raise.

    Validation itself never raises; see
    :meth:`~specmodel.models.ValidationResult.raise_for_errors`.
    """

    exit_code = EXIT_VALIDATION_FAILURE

    def __init__(self, errors: dict[str, list[str]]):
        fields = ", ".join(errors) or "<none>"
        super().__init__(f"Validation failed for field(s): {fields}")
        self.errors = errors
