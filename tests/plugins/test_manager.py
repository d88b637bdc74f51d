"""Tests for PluginManager: registration, discovery and fallback dispatch."""

from __future__ import annotations

import pytest

from lenient.diagnostics import FallbackEvent
from lenient.plugins import get_plugin_manager, hookimpl
from lenient.plugins.manager import PluginManager
from lenient.wrapper import Lenient


def _event(field: str | None = "port") -> FallbackEvent:
    return FallbackEvent(wrapper="Lenient[int]", field=field, error="bad", default="0")


class _DummyPlugin:
    """Minimal plugin for registration tests."""

    def __init__(self) -> None:
        self.seen: list[FallbackEvent] = []

    @hookimpl
    def lenient_fallback(self, event: FallbackEvent) -> None:
        self.seen.append(event)


class _FailingPlugin:
    @hookimpl
    def lenient_fallback(self, event: FallbackEvent) -> None:
        raise RuntimeError("plugin exploded")


class TestPluginManager:
    def test_hook_relay_accessible(self) -> None:
        pm = PluginManager()
        assert hasattr(pm.hook, "lenient_fallback")

    def test_register_plugin(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin(), name="dummy")
        assert "dummy" in pm.list_plugin_names()

    def test_register_plugin_default_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin())
        assert "_DummyPlugin" in pm.list_plugin_names()

    def test_unregister_plugin(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin, name="dummy")
        pm.unregister(plugin)
        assert "dummy" not in pm.list_plugin_names()

    def test_get_plugins_returns_registered(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin, name="test")
        assert plugin in pm.get_plugins()

    def test_is_loaded_false_before_discover(self) -> None:
        assert PluginManager().is_loaded is False

    def test_discover_marks_loaded(self) -> None:
        pm = PluginManager()
        names = pm.discover_and_load()
        assert pm.is_loaded is True
        assert isinstance(names, list)

    def test_discover_instantiates_plugin_classes(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin, name="by-class")
        pm.discover_and_load()
        (plugin,) = pm.get_plugins()
        assert isinstance(plugin, _DummyPlugin)
        assert pm.list_plugin_names() == ["by-class"]


class TestNotifyFallback:
    def test_dispatches_to_plugins(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin)
        event = _event()
        pm.notify_fallback(event)
        assert plugin.seen == [event]

    def test_no_plugins_is_noop(self) -> None:
        PluginManager().notify_fallback(_event())

    def test_plugin_failure_is_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        pm = PluginManager()
        pm.register_plugin(_FailingPlugin())
        with caplog.at_level("WARNING", logger="lenient.plugins.manager"):
            pm.notify_fallback(_event())
        assert "lenient_fallback hook failed" in caplog.text


class TestProcessManager:
    def test_singleton(self) -> None:
        assert get_plugin_manager() is get_plugin_manager()

    def test_failing_plugin_does_not_affect_decode(self) -> None:
        manager = get_plugin_manager()
        plugin = _FailingPlugin()
        manager.register_plugin(plugin, name="failing")
        try:
            assert Lenient[int].decode("x").value == 0
        finally:
            manager.unregister(plugin)
