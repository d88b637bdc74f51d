"""Configuration layer: settings, config discovery and logging setup."""

from lenient.config.bootstrap import setup
from lenient.config.logging import configure_logging
from lenient.config.settings import LenientSettings

__all__ = ["LenientSettings", "configure_logging", "setup"]
