"""Configuration resolver with layered priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (INSTALLWIZARD_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from installwizard.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"

DEFAULT_SPEC_DIRS = [
    "/usr/share/installer/spec.d",
    "/etc/installer/spec.d",
    "/var/lib/installer/spec.d",
]

ENV_PREFIX = "INSTALLWIZARD_"


@dataclass
class ConfigSource:
    """Represents where a config value came from."""

    value: Any
    source: str  # 'cli' | 'env' | 'user_config' | 'system_config' | 'default'


class ConfigResolver:
    """Resolve configuration with strict layered priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'output_path': '/tmp/out.json'},
            user_config_path=Path('~/.config/installwizard/config.yaml')
        )

        path, source = resolver.resolve('output_path')
        # path = '/tmp/out.json', source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Arguments from CLI (highest priority). None values are ignored.
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = {k: v for k, v in (cli_args or {}).items() if v is not None}
        self.user_config_path = (
            user_config_path or Path.home() / ".config/installwizard/config.yaml"
        )
        self.system_config_path = system_config_path or Path("/etc/installwizard/config.yaml")
        self.defaults = defaults if defaults is not None else self._default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'web.port')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._get_nested(self.cli_args, key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_user_config(), key)
        if value is not None:
            return value, "user_config"

        value = self._get_nested(self._get_system_config(), key)
        if value is not None:
            return value, "system_config"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_source(self, key: str) -> ConfigSource:
        value, source = self.resolve(key)
        return ConfigSource(value=value, source=source)

    def resolve_spec_dirs(self) -> list[Path]:
        """Resolve spec_dirs as an ordered list of paths.

        Environment values are split on os.pathsep.
        """
        value, source = self.resolve("spec_dirs")
        if isinstance(value, str):
            parts = value.split(os.pathsep) if source == "env" else [value]
            value = [p for p in parts if p.strip()]
        if not isinstance(value, list) or not all(isinstance(v, (str, Path)) for v in value):
            raise ConfigError("Config key 'spec_dirs' must be a list of paths")
        return [Path(v).expanduser() for v in value]

    def resolve_output_path(self) -> Path:
        return self._resolve_path("output_path")

    def resolve_state_path(self) -> Path:
        return self._resolve_path("state_path")

    def resolve_web_host(self) -> str:
        value, _src = self.resolve("web.host")
        return str(value)

    def resolve_web_port(self) -> int:
        value, _src = self.resolve("web.port")
        if isinstance(value, bool):
            raise ConfigError("Config key 'web.port' must be an int")
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        raise ConfigError(f"Config key 'web.port' must be an int, got {value!r}")

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Allowed values (after normalization):
            quiet | normal | verbose | debug

        Raises:
            ConfigError: If the resolved value is invalid.
        """
        key = "logging.level"
        try:
            value, _src = self.resolve(key)
        except ConfigError:
            return DEFAULT_LOGGING_LEVEL

        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")
        return norm

    def _resolve_path(self, key: str) -> Path:
        value, _src = self.resolve(key)
        if not isinstance(value, (str, Path)) or str(value).strip() == "":
            raise ConfigError(f"Config key '{key}' must be a non-empty path")
        return Path(value).expanduser()

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Example: web.port -> INSTALLWIZARD_WEB_PORT
        """
        env_key = f"{ENV_PREFIX}{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'web': {'port': 8080}}
            _get_nested(data, 'web.port') -> 8080
        """
        if key in data:
            return data[key]

        current: Any = data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None

        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        """Default configuration."""
        return {
            "spec_dirs": list(DEFAULT_SPEC_DIRS),
            "output_path": "/var/lib/installer/output.json",
            "state_path": "/var/lib/installer/wizard-state.json",
            "logging": {
                "level": DEFAULT_LOGGING_LEVEL,
            },
            "web": {
                "host": "127.0.0.1",
                "port": 8080,
            },
        }
