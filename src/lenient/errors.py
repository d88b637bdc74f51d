"""Lenient exception hierarchy.

Only two kinds of decode failure ever reach a caller:

- ``StructuralError``: the input as a whole does not have the record's shape
  (not a mapping, invalid JSON text).
- ``RequiredFieldError``: a strict field is absent or malformed.

Failures inside lenient/optional fields are absorbed by the wrapper and never
surface here. ``DecodeError`` is a ``ValueError`` so that pydantic turns it into
an ordinary field error when a nested record fails inside a larger schema.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError


class LenientError(Exception):
    """Base exception for all lenient errors."""


class DecodeError(LenientError, ValueError):
    """A record could not be decoded."""

    def __init__(self, record: str, message: str) -> None:
        super().__init__(f"{record}: {message}")
        self.record = record
        self.message = message


class StructuralError(DecodeError):
    """The input's outer shape does not match the record."""


class RequiredFieldError(DecodeError):
    """A strict field is missing or failed to decode."""

    def __init__(self, record: str, field: str, cause: str, *, missing: bool = False) -> None:
        super().__init__(record, f"field {field!r}: {cause}")
        self.field = field
        self.cause = cause
        self.missing = missing


class NoDefaultError(LenientError, TypeError):
    """Raised at definition time when a wrapped type has no default value."""


class ConfigError(LenientError):
    """Raised for an unreadable configuration file."""


def format_validation_error(exc: ValidationError) -> str:
    """Render a pydantic error as one line: ``loc: msg; loc: msg``."""
    parts: list[str] = []
    for error in exc.errors(include_url=False):
        loc = ".".join(str(part) for part in error["loc"])
        parts.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return "; ".join(parts)
