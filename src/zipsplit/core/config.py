"""Configuration resolver with 4-level priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (ZIPSPLIT_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from zipsplit.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"

ENV_PREFIX = "ZIPSPLIT_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class ConfigSource:
    """Represents where a config value came from."""

    value: Any
    source: str  # 'cli' | 'env' | 'user_config' | 'system_config' | 'default'


def _flatten_items(data: dict[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    """Flatten nested dicts to dot-notation key paths."""
    items: list[tuple[str, Any]] = []
    for key, value in data.items():
        key_path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            items.extend(_flatten_items(value, key_path))
        else:
            items.append((key_path, value))
    return items


class ConfigResolver:
    """Resolve configuration with strict 4-level priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'split': {'max_size_bytes': 50 * 1024 * 1024}},
            user_config_path=Path('~/.config/zipsplit/config.yaml'),
        )

        value, source = resolver.resolve('split.max_size_bytes')
        # value = 52428800, source = 'cli'

    CLI args may be nested dicts or flat dot-notation keys.
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/zipsplit/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/zipsplit/config.yaml")
        self.defaults = defaults or self._default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (dot notation: 'split.max_size_bytes')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._from_cli(key)
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

    def resolve_int(self, key: str) -> int:
        value, src = self.resolve(key)
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be an int, got bool (from {src})")
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
        raise ConfigError(f"Config key '{key}' must be an int, got {value!r} (from {src})")

    def resolve_float(self, key: str) -> float:
        value, src = self.resolve(key)
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be a number, got bool (from {src})")
        if isinstance(value, int | float):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                pass
        raise ConfigError(f"Config key '{key}' must be a number, got {value!r} (from {src})")

    def resolve_bool(self, key: str) -> bool:
        value, src = self.resolve(key)
        if isinstance(value, bool):
            return value
        s = str(value).strip().lower()
        if s in _TRUE_VALUES:
            return True
        if s in _FALSE_VALUES:
            return False
        raise ConfigError(f"Config key '{key}' must be a bool, got {value!r} (from {src})")

    def resolve_str(self, key: str) -> str:
        value, src = self.resolve(key)
        if not isinstance(value, str):
            raise ConfigError(
                f"Config key '{key}' must be a string, got {type(value).__name__} (from {src})"
            )
        return value

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Returns DEFAULT_LOGGING_LEVEL when no source provides the key.

        Raises:
            ConfigError: If the resolved value is not one of quiet|normal|verbose|debug.
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

    def resolve_all(self) -> dict[str, ConfigSource]:
        """Resolve every key known to defaults or any loaded source."""
        keys: set[str] = {k for k, _v in _flatten_items(self.defaults)}
        keys.update(k for k, _v in _flatten_items(self._get_user_config()))
        keys.update(k for k, _v in _flatten_items(self._get_system_config()))
        keys.update(k for k, _v in _flatten_items(self.cli_args))

        result: dict[str, ConfigSource] = {}
        for key in sorted(keys):
            try:
                value, source = self.resolve(key)
            except ConfigError:
                continue
            result[key] = ConfigSource(value=value, source=source)
        return result

    def _from_cli(self, key: str) -> Any | None:
        if key in self.cli_args:
            return self.cli_args[key]
        return self._get_nested(self.cli_args, key)

    def _from_env(self, key: str) -> Any | None:
        """Environment variable format: ZIPSPLIT_SPLIT_MAX_SIZE_BYTES."""
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
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'logging': {'level': 'debug'}}
            _get_nested(data, 'logging.level') -> 'debug'
        """
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
        return {
            "split": {
                "strategy": "split_by_size",
                "max_size_bytes": 100 * 1024 * 1024,
                "size_limit_kind": "uncompressed",
                "compression_ratio": 0.7,
                "oversized_policy": "isolate",
                "single_archive_name": "archive.zip",
                "cleanup_on_failure": False,
                "chunk_size": 81920,
                "deterministic_entries": True,
            },
            "logging": {
                "level": "normal",
                "color": True,
            },
            "diagnostics": {
                "enabled": False,
                "path": str(Path.home() / ".zipsplit" / "diagnostics.jsonl"),
            },
        }
