"""Fallback notifications.

When a wrapper with diagnostics enabled replaces a malformed value by its
default it emits exactly one event: an ``error`` record on the stdlib
``lenient.fallback`` logger, then the ``lenient_fallback`` plugin hook. The
payload travels as record attributes; ``configure_logging`` renders them as
structured fields.

INVARIANT: Emission never affects the decode outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

FALLBACK_EVENT = "lenient.fallback"

logger = logging.getLogger(FALLBACK_EVENT)


@dataclass(frozen=True)
class FallbackEvent:
    """A malformed value that was replaced by a default."""

    wrapper: str
    field: str | None
    error: str
    default: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "wrapper": self.wrapper,
            "field": self.field,
            "error": self.error,
            "default": self.default,
        }


def report_fallback(event: FallbackEvent) -> None:
    """Log *event* and hand it to registered plugins."""
    logger.error(FALLBACK_EVENT, extra=event.to_dict())

    from lenient.plugins.manager import get_plugin_manager

    get_plugin_manager().notify_fallback(event)
