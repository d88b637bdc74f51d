"""Extension layer: plugin system via pluggy.

Plugins observe fallback events; they cannot change a decode outcome.
INVARIANT: Plugin failures are warnings, never errors.
"""

import pluggy

from lenient.plugins.manager import PluginManager, get_plugin_manager

hookimpl = pluggy.HookimplMarker("lenient")

__all__ = ["PluginManager", "get_plugin_manager", "hookimpl"]
