"""Load API descriptions from an inline mapping, file, URL, stdin, or raw text.

This module handles all I/O for fetching raw OpenAPI/Swagger documents and
converting them into :class:`~specmodel.models` friendly dictionaries. It
supports both JSON and YAML formats with automatic format detection, and
checks that the document carries the top-level fields every later stage
depends on.

Loading happens in two steps so the artifact cache can key on the raw bytes
before anything is decoded:

* :func:`read_source` -- fetch the content (no decoding) and compute its digest.
* :func:`parse_source` -- decode into a :class:`RawDocument`, then verify the
  required fields and version marker.

:func:`load_document` runs both steps for callers that do not cache.
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import httpx
import yaml
from pydantic import BaseModel, ConfigDict

from specmodel.exceptions import MissingFieldError, ParsingError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_BYTES = 10 * 1024 * 1024

SourceHandle = Union[Mapping[str, Any], Path, str]
"""Anything :func:`read_source` accepts."""


class RawDocument(BaseModel):
    """The decoded, unresolved document tree.

    Produced exactly once per source by :func:`parse_source`. The model is
    frozen and no stage after the loader mutates ``tree``; the resolver
    builds new containers instead of editing it in place.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    tree: dict[str, Any]
    digest: str
    version: str

    @property
    def is_swagger2(self) -> bool:
        return self.version.startswith("2.")


@dataclass(frozen=True)
class SourceContent:
    """Undecoded content read from a source handle.

    Exactly one of ``text`` and ``tree`` is set: ``tree`` for inline
    mappings, ``text`` for everything read from a file, URL, stdin, or
    passed as a raw string.
    """

    origin: str
    digest: str
    text: Optional[str] = None
    tree: Optional[dict[str, Any]] = None
    hint: str = ""


def load_document(
    source: SourceHandle,
    content_type: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> RawDocument:
    """Load, decode, and check a document from any supported source.

    Args:
        source: An inline mapping, a :class:`~pathlib.Path`, a file path,
            an ``http(s)://`` URL, ``'-'`` for stdin, or raw JSON/YAML text.
        content_type: Optional ``'json'`` or ``'yaml'`` hint that overrides
            detection from the file suffix or HTTP headers.
        timeout: Seconds to wait for a remote document.
        max_bytes: Largest accepted document size.

    Returns:
        The decoded :class:`RawDocument`.

    Raises:
        ParsingError: If the source cannot be read or decoded, or is not a
            mapping.
        MissingFieldError: If ``openapi``/``swagger``, ``info``, or ``paths``
            is absent.
    """
    content = read_source(source, timeout=timeout, max_bytes=max_bytes)
    return parse_source(content, content_type=content_type)


def read_source(
    source: SourceHandle,
    timeout: float = DEFAULT_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> SourceContent:
    """Read undecoded content from a source handle.

    Strings are dispatched in this order: ``'-'`` means stdin, an
    ``http(s)://`` prefix means URL, text that starts with ``{`` or ``[`` or contains
    a newline is raw content, and anything else is a file path.

    Raises:
        ParsingError: If the handle is not a supported type or the content
            cannot be read.
    """
    if isinstance(source, Mapping):
        tree = copy.deepcopy(dict(source))
        return SourceContent(origin="<inline>", digest=_digest_tree(tree), tree=tree)
    if isinstance(source, Path):
        return _read_file(source, max_bytes)
    if not isinstance(source, str):
        raise ParsingError(
            "Document source must be a mapping, path, URL, or text "
            f"(got {type(source).__name__})"
        )

    if source == "-":
        return _read_stdin()
    if source.startswith(("http://", "https://")):
        return _read_url(source, timeout, max_bytes)
    if _looks_like_content(source):
        return _from_text(source, origin="<text>")
    return _read_file(Path(source), max_bytes)


def parse_source(content: SourceContent, content_type: Optional[str] = None) -> RawDocument:
    """Decode a :class:`SourceContent` into a checked :class:`RawDocument`.

    Raises:
        ParsingError: If the content is empty, undecodable, not a mapping,
            or declares an unsupported version.
        MissingFieldError: If a required top-level field is absent.
    """
    if content.tree is not None:
        tree = content.tree
    else:
        hint = (content_type or content.hint or "").lower()
        tree = _parse_content(content.text or "", hint=hint)

    check_required_fields(tree)
    version = validate_openapi_version(tree)
    logger.debug("Loaded %s document from %s", version, content.origin)
    return RawDocument(source=content.origin, tree=tree, digest=content.digest, version=version)


def check_required_fields(tree: Mapping[str, Any]) -> None:
    """Verify that the version marker, ``info``, and ``paths`` are present.

    Fields are checked in that order, so a document missing several of them
    reports the version marker first.

    Raises:
        MissingFieldError: Naming the first absent field.
    """
    if "openapi" not in tree and "swagger" not in tree:
        raise MissingFieldError(
            "openapi",
            "Document is missing required top-level field 'openapi' "
            "(or 'swagger' for 2.0 documents)",
        )
    for field in ("info", "paths"):
        if field not in tree:
            raise MissingFieldError(field)
    if not isinstance(tree["info"], Mapping):
        raise ParsingError(
            f"Top-level field 'info' must be an object (got {type(tree['info']).__name__})"
        )


def validate_openapi_version(tree: Mapping[str, Any]) -> str:
    """Validate and return the document's version string.

    Accepts OpenAPI 3.x and Swagger 2.0.

    Raises:
        ParsingError: If the declared version is not supported.
    """
    if "swagger" in tree and "openapi" not in tree:
        version_str = str(tree["swagger"])
        if version_str.startswith("2."):
            return version_str
        raise ParsingError(
            f"Unsupported Swagger version: {version_str}. Only Swagger 2.0 is supported."
        )

    version_str = str(tree.get("openapi"))
    if version_str.startswith("3."):
        return version_str

    raise ParsingError(
        f"Unsupported OpenAPI version: {version_str}. "
        "Only OpenAPI 3.x and Swagger 2.0 are supported."
    )


def _digest_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _digest_tree(tree: Mapping[str, Any]) -> str:
    try:
        canonical = json.dumps(tree, sort_keys=True, separators=(",", ":"), default=str)
    except (TypeError, ValueError) as exc:
        raise ParsingError(f"Inline document is not JSON-serialisable: {exc}") from exc
    return _digest_text(canonical)


def _looks_like_content(value: str) -> bool:
    stripped = value.lstrip()
    return stripped.startswith(("{", "[")) or "\n" in value


def _from_text(text: str, origin: str, hint: str = "") -> SourceContent:
    if not text.strip():
        raise ParsingError(f"Document is empty: {origin}")
    return SourceContent(origin=origin, digest=_digest_text(text), text=text, hint=hint)


def _read_stdin() -> SourceContent:
    """Read a document from stdin.

    Raises:
        ParsingError: If stdin cannot be read or is empty.
    """
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise ParsingError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise ParsingError("No input received from stdin")

    return _from_text(content, origin="<stdin>")


def _read_url(url: str, timeout: float, max_bytes: int) -> SourceContent:
    """Fetch a document from a URL.

    The calling thread blocks for at most *timeout* seconds. A timeout is
    reported as :class:`~specmodel.exceptions.ParsingError` with
    ``timed_out=True`` rather than as a transport exception.

    Raises:
        ParsingError: On timeout, transport failure, non-2xx status, or an
            oversized body.
    """
    logger.debug("Fetching document from %s (timeout %.1fs)", url, timeout)
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.TimeoutException as exc:
        raise ParsingError(
            f"Timed out after {timeout:g}s fetching document from {url}", timed_out=True
        ) from exc
    except httpx.HTTPStatusError as exc:
        raise ParsingError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise ParsingError(f"Failed to fetch document from {url}: {exc}") from exc

    if len(response.content) > max_bytes:
        raise ParsingError(
            f"Document too large: {len(response.content)} bytes (limit {max_bytes}) at {url}"
        )

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _from_text(response.text, origin=url, hint=hint)


def _read_file(path: Path, max_bytes: int) -> SourceContent:
    """Read a document from a local file.

    Raises:
        ParsingError: If the file is missing, unreadable, empty, or too large.
    """
    if not path.is_file():
        raise ParsingError(f"Document file not found: {path}")

    size = path.stat().st_size
    if size > max_bytes:
        raise ParsingError(f"Document too large: {size} bytes (limit {max_bytes}) at {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ParsingError(f"Failed to read document file {path}: {exc}") from exc

    suffix = path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _from_text(content, origin=str(path), hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.

    Raises:
        ParsingError: If the content cannot be parsed as either format, or
            does not decode to a mapping.
    """
    if not content.strip():
        raise ParsingError("Document is empty")

    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise ParsingError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to parse document as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise ParsingError(msg) from exc

    return _require_mapping(result)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise ParsingError(f"Document must be a JSON/YAML object (got {kind})")
    return result
