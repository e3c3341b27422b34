"""Unit tests for core.config module."""

from pathlib import Path

import pytest

from zipsplit.core.config import ConfigResolver
from zipsplit.core.errors import ConfigError


class TestConfigResolver:
    """Tests for ConfigResolver."""

    def test_cli_priority(self, tmp_path):
        """CLI args have highest priority."""
        user_config = tmp_path / "config.yaml"
        user_config.write_text("split:\n  strategy: single_archive\n")

        resolver = ConfigResolver(
            cli_args={"split": {"strategy": "split_by_size"}},
            user_config_path=user_config,
        )

        value, source = resolver.resolve("split.strategy")
        assert value == "split_by_size"
        assert source == "cli"

    def test_cli_flat_dot_keys(self, tmp_path):
        resolver = ConfigResolver(
            cli_args={"split.max_size_bytes": 2097152},
            user_config_path=tmp_path / "none.yaml",
            system_config_path=tmp_path / "none2.yaml",
        )
        assert resolver.resolve("split.max_size_bytes") == (2097152, "cli")

    def test_env_priority(self, tmp_path, monkeypatch):
        """ENV overrides config files."""
        user_config = tmp_path / "config.yaml"
        user_config.write_text("split:\n  oversized_policy: fail\n")

        monkeypatch.setenv("ZIPSPLIT_SPLIT_OVERSIZED_POLICY", "skip")

        resolver = ConfigResolver(cli_args={}, user_config_path=user_config)

        value, source = resolver.resolve("split.oversized_policy")
        assert value == "skip"
        assert source == "env"

    def test_user_config_priority(self, tmp_path):
        """User config overrides system config."""
        user_config = tmp_path / "user.yaml"
        user_config.write_text("split:\n  chunk_size: 1024\n")

        system_config = tmp_path / "system.yaml"
        system_config.write_text("split:\n  chunk_size: 2048\n")

        resolver = ConfigResolver(
            cli_args={},
            user_config_path=user_config,
            system_config_path=system_config,
        )

        value, source = resolver.resolve("split.chunk_size")
        assert value == 1024
        assert source == "user_config"

    def test_system_config_over_defaults(self, tmp_path):
        system_config = tmp_path / "system.yaml"
        system_config.write_text("split:\n  chunk_size: 2048\n")

        resolver = ConfigResolver(
            user_config_path=tmp_path / "missing.yaml",
            system_config_path=system_config,
        )
        assert resolver.resolve("split.chunk_size") == (2048, "system_config")

    def test_defaults(self, tmp_path):
        resolver = ConfigResolver(
            user_config_path=tmp_path / "none.yaml",
            system_config_path=tmp_path / "none2.yaml",
        )

        value, source = resolver.resolve("split.max_size_bytes")
        assert value == 100 * 1024 * 1024
        assert source == "default"

    def test_missing_key_raises_error(self, tmp_path):
        resolver = ConfigResolver(
            user_config_path=tmp_path / "none.yaml",
            system_config_path=tmp_path / "none2.yaml",
        )

        with pytest.raises(ConfigError):
            resolver.resolve("split.nonexistent")

    def test_false_values_work(self, tmp_path):
        """False from a higher source is not skipped."""
        resolver = ConfigResolver(
            cli_args={"split": {"deterministic_entries": False}},
            user_config_path=tmp_path / "none.yaml",
        )
        assert resolver.resolve_bool("split.deterministic_entries") is False

    def test_invalid_yaml_raises(self, tmp_path):
        user_config = tmp_path / "config.yaml"
        user_config.write_text("split: [unclosed\n")

        resolver = ConfigResolver(user_config_path=user_config)
        with pytest.raises(ConfigError, match="Failed to load config"):
            resolver.resolve("split.strategy")

    def test_resolve_bool_rejects_garbage(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ZIPSPLIT_SPLIT_CLEANUP_ON_FAILURE", "maybe")
        resolver = ConfigResolver(user_config_path=tmp_path / "none.yaml")
        with pytest.raises(ConfigError, match="must be a bool"):
            resolver.resolve_bool("split.cleanup_on_failure")

    def test_resolve_float_accepts_int(self, tmp_path):
        resolver = ConfigResolver(
            cli_args={"split.compression_ratio": 1},
            user_config_path=tmp_path / "none.yaml",
        )
        assert resolver.resolve_float("split.compression_ratio") == 1.0

    def test_resolve_logging_level_default_is_normal(self, tmp_path):
        resolver = ConfigResolver(
            user_config_path=tmp_path / "none.yaml",
            system_config_path=tmp_path / "none2.yaml",
            defaults={},
        )
        assert resolver.resolve_logging_level() == "normal"

    def test_resolve_logging_level_normalizes(self, tmp_path):
        resolver = ConfigResolver(
            cli_args={"logging": {"level": "  DEBUG "}},
            user_config_path=tmp_path / "none.yaml",
        )
        assert resolver.resolve_logging_level() == "debug"

    def test_resolve_logging_level_invalid_string_raises(self, tmp_path):
        resolver = ConfigResolver(
            cli_args={"logging": {"level": "loud"}},
            user_config_path=tmp_path / "none.yaml",
        )
        with pytest.raises(ConfigError, match="Allowed values"):
            resolver.resolve_logging_level()

    def test_resolve_logging_level_non_string_raises(self, tmp_path):
        resolver = ConfigResolver(
            cli_args={"logging": {"level": 3}},
            user_config_path=tmp_path / "none.yaml",
        )
        with pytest.raises(ConfigError, match="must be a string"):
            resolver.resolve_logging_level()

    def test_resolve_all(self, tmp_path):
        user_config = tmp_path / "config.yaml"
        user_config.write_text("split:\n  chunk_size: 4096\n")

        resolver = ConfigResolver(
            cli_args={"logging.level": "verbose"},
            user_config_path=user_config,
            system_config_path=tmp_path / "none.yaml",
        )
        all_config = resolver.resolve_all()

        assert all_config["split.chunk_size"].value == 4096
        assert all_config["split.chunk_size"].source == "user_config"
        assert all_config["logging.level"].source == "cli"
        assert all_config["split.strategy"].source == "default"


def test_default_user_config_path_is_under_home():
    resolver = ConfigResolver()
    assert resolver.user_config_path == Path.home() / ".config/zipsplit/config.yaml"
