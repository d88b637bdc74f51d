"""structlog rendering for the ``lenient`` logger tree.

Library modules log through stdlib ``logging``; ``configure_logging`` renders
those records with structlog's ``ProcessorFormatter`` on a handler owned by
the ``lenient`` logger. The root logger and the host's structlog
configuration are left alone.

Fallback events are emitted at ``error`` level on the ``lenient.fallback``
logger, so they show in both modes without ``verbose``.

Two output modes:
- Human (default): colored console output to stderr
- JSON (``log_json``): Structured JSON lines to stderr
"""

from __future__ import annotations

import logging
import sys

import structlog

LIBRARY_LOGGER = "lenient"


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Install the ``lenient`` stderr handler, replacing any earlier one.

    Args:
        verbose: Enable DEBUG-level output. When False, only WARNING+.
        log_json: Use JSON renderer instead of console renderer.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if log_json:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    lib_logger = logging.getLogger(LIBRARY_LOGGER)
    lib_logger.handlers.clear()
    lib_logger.addHandler(handler)
    lib_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    lib_logger.propagate = False
