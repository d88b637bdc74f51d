"""Shared pytest fixtures for lenient tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator

import pytest

from lenient.diagnostics import FALLBACK_EVENT, FallbackEvent
from lenient.plugins import get_plugin_manager, hookimpl


class RecordingPlugin:
    """Plugin that records every fallback event it receives."""

    def __init__(self) -> None:
        self.events: list[FallbackEvent] = []

    @hookimpl
    def lenient_fallback(self, event: FallbackEvent) -> None:
        self.events.append(event)


@pytest.fixture
def fallback_events() -> Generator[list[FallbackEvent]]:
    """Fallback events dispatched while the test runs."""
    plugin = RecordingPlugin()
    manager = get_plugin_manager()
    manager.register_plugin(plugin, name="test-recorder")
    try:
        yield plugin.events
    finally:
        manager.unregister(plugin)


@pytest.fixture
def fallback_logs(
    caplog: pytest.LogCaptureFixture,
) -> Callable[[], list[logging.LogRecord]]:
    """Return a reader for ``lenient.fallback`` records logged so far."""
    caplog.set_level(logging.DEBUG, logger="lenient")
    return lambda: [r for r in caplog.records if r.name == FALLBACK_EVENT]


@pytest.fixture(autouse=True)
def _restore_library_logger() -> Generator[None]:
    """Undo handler, level and propagation changes made by ``configure_logging``."""
    lib = logging.getLogger("lenient")
    handlers = lib.handlers[:]
    level = lib.level
    propagate = lib.propagate
    yield
    lib.handlers = handlers
    lib.setLevel(level)
    lib.propagate = propagate
