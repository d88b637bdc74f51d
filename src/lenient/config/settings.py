"""Process-level settings: env vars, TOML config and code defaults in one object.

Priority chain (highest to lowest):
  1. Init kwargs: explicit overrides
  2. Env vars: ``LENIENT_*`` prefix
  3. TOML file: ``lenient.toml`` or ``[tool.lenient]`` found via walk-up
  4. Code defaults

Settings only drive process setup (logging, plugin loading). Decoding never
reads them: a wrapper's diagnostics toggle is fixed where the field type is
declared.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from lenient.config.discovery import find_config, read_config


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a discovered config file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            self._data = read_config(toml_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for the TOML path during construction.
_tls = threading.local()


class LenientSettings(BaseSettings):
    """Settings for applications using lenient decoding.

    Attributes:
        verbose: DEBUG logging for the ``lenient`` logger tree.
        log_json: JSON log lines instead of console output.
        load_plugins: Load ``lenient.plugins`` entry points during setup.
        config_path: The file the settings were read from, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "LENIENT_",
        "extra": "ignore",
    }

    verbose: bool = False
    log_json: bool = False
    load_plugins: bool = True
    config_path: Path | None = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        start: Path | None = None,
        **overrides: Any,
    ) -> LenientSettings:
        """Construct settings, discovering the config file unless *config_path* is given."""
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(start)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None
