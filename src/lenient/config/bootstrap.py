"""Process setup: apply a LenientSettings object to logging and plugins."""

from __future__ import annotations

import logging

from lenient.config.logging import configure_logging
from lenient.config.settings import LenientSettings

logger = logging.getLogger(__name__)


def setup(settings: LenientSettings | None = None) -> LenientSettings:
    """Apply *settings* (loaded from the environment if omitted) to the process.

    Configures structured logging for the ``lenient`` logger tree and, when
    enabled, loads entry-point plugins into the manager that receives
    fallback events.
    """
    if settings is None:
        settings = LenientSettings.load()

    configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    if settings.load_plugins:
        from lenient.plugins.manager import get_plugin_manager

        manager = get_plugin_manager()
        if not manager.is_loaded:
            names = manager.discover_and_load()
            logger.debug("Loaded plugins: %s", ", ".join(names) or "(none)")
    return settings
