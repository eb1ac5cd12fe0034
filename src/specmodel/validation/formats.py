"""String format checks used by :class:`~specmodel.models.FormatRule`.

Each check returns ``None`` when the value is acceptable and a short
message (``"must be a valid email address"``) otherwise. A few formats have
a strengthened variant selected with ``strict=True``:

* ``email`` -- full syntax and domain plausibility through pydantic's
  ``validate_email`` (backed by ``email-validator``).
* ``url`` / ``uri`` -- an absolute ``http(s)`` URL with a host, through
  pydantic's :class:`~pydantic.HttpUrl`.
* ``date-time`` -- a pinned RFC 3339 timestamp pattern on top of the
  calendar check.

Formats not listed in :data:`SUPPORTED_FORMATS` are never checked.
"""

from __future__ import annotations

import ipaddress
import re
import uuid
from datetime import date, datetime
from typing import Callable, Optional
from urllib.parse import urlsplit

from pydantic import HttpUrl, TypeAdapter, ValidationError, validate_email

_EMAIL_BASIC = re.compile(r"^[^@\s]+@[^@\s]+$")
_RFC3339 = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$"
)

_http_url = TypeAdapter(HttpUrl)

STRENGTHENED_FORMATS = frozenset({"email", "url", "uri", "date-time"})


def _email(value: str, strict: bool) -> bool:
    if not strict:
        return bool(_EMAIL_BASIC.match(value))
    try:
        validate_email(value)
    except ValueError:
        return False
    return True


def _url(value: str, strict: bool) -> bool:
    if strict:
        try:
            _http_url.validate_python(value)
        except ValidationError:
            return False
        return True
    parts = urlsplit(value)
    return bool(parts.scheme and (parts.netloc or parts.path))


def _parse_datetime(value: str) -> bool:
    candidate = value[:-1] + "+00:00" if value[-1:] in ("Z", "z") else value
    try:
        datetime.fromisoformat(candidate)
    except ValueError:
        return False
    return True


def _date_time(value: str, strict: bool) -> bool:
    if strict and not _RFC3339.match(value):
        return False
    return _parse_datetime(value)


def _date(value: str, strict: bool) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _uuid(value: str, strict: bool) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _ipv4(value: str, strict: bool) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def _ipv6(value: str, strict: bool) -> bool:
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


_CHECKS: dict[str, tuple[Callable[[str, bool], bool], str]] = {
    "email": (_email, "must be a valid email address"),
    "url": (_url, "must be a valid URL"),
    "uri": (_url, "must be a valid URL"),
    "date-time": (_date_time, "must be a valid date-time"),
    "date": (_date, "must be a valid date"),
    "uuid": (_uuid, "must be a valid UUID"),
    "ipv4": (_ipv4, "must be a valid IPv4 address"),
    "ipv6": (_ipv6, "must be a valid IPv6 address"),
}

SUPPORTED_FORMATS = frozenset(_CHECKS)


def check_format(fmt: str, value: str, strict: bool = False) -> Optional[str]:
    """Check *value* against a named format.

    Args:
        fmt: The OpenAPI ``format`` keyword.
        value: The string to check. Non-strings are the type rule's concern
            and always pass here.
        strict: Use the strengthened variant where one exists.

    Returns:
        ``None`` if the value is acceptable or the format is unknown,
        otherwise the violation message.
    """
    entry = _CHECKS.get(fmt)
    if entry is None or not isinstance(value, str):
        return None
    check, message = entry
    return None if check(value, strict) else message
