"""Tests for SplitOptions validation and config loading."""

from __future__ import annotations

import pytest

from zipsplit.archives.types import (
    ArchiveStrategy,
    OversizedPolicy,
    SizeLimitKind,
    SplitOptions,
)
from zipsplit.core.config import ConfigResolver
from zipsplit.core.errors import ConfigError, InvalidConfigurationError

MIB = 1024 * 1024


def _resolver(tmp_path, **cli) -> ConfigResolver:
    return ConfigResolver(
        cli_args=cli,
        user_config_path=tmp_path / "user.yaml",
        system_config_path=tmp_path / "system.yaml",
    )


class TestValidate:
    def test_defaults_are_valid(self):
        SplitOptions().validate()

    def test_split_requires_one_mib(self):
        with pytest.raises(InvalidConfigurationError, match="at least 1MB"):
            SplitOptions(max_size_bytes=MIB - 1).validate()

    def test_single_archive_ignores_size_minimum(self):
        SplitOptions(strategy=ArchiveStrategy.SINGLE_ARCHIVE, max_size_bytes=10).validate()

    def test_ratio_checked_for_every_strategy(self):
        opts = SplitOptions(strategy=ArchiveStrategy.SINGLE_ARCHIVE, compression_ratio=0.0)
        with pytest.raises(InvalidConfigurationError, match="Compression ratio"):
            opts.validate()

    def test_chunk_size_must_be_positive(self):
        with pytest.raises(InvalidConfigurationError, match="Chunk size"):
            SplitOptions(chunk_size=0).validate()

    @pytest.mark.parametrize("name", ["", "   ", "archive.tar", "archive"])
    def test_single_archive_name_needs_zip_suffix(self, name):
        with pytest.raises(InvalidConfigurationError):
            SplitOptions(single_archive_name=name).validate()

    @pytest.mark.parametrize("name", ["sub/out.zip", "..\\out.zip", ".zip"])
    def test_single_archive_name_must_be_plain(self, name):
        with pytest.raises(InvalidConfigurationError, match="plain file name"):
            SplitOptions(single_archive_name=name).validate()

    def test_single_archive_name_suffix_case_insensitive(self):
        SplitOptions(single_archive_name="Backup.ZIP").validate()

    def test_error_is_config_error(self):
        assert InvalidConfigurationError is ConfigError

    def test_with_overrides_returns_copy(self):
        base = SplitOptions()
        changed = base.with_overrides(oversized_policy=OversizedPolicy.SKIP)
        assert base.oversized_policy == OversizedPolicy.ISOLATE
        assert changed.oversized_policy == OversizedPolicy.SKIP


class TestFromResolver:
    def test_defaults(self, tmp_path):
        assert SplitOptions.from_resolver(_resolver(tmp_path)) == SplitOptions()

    def test_cli_values(self, tmp_path):
        opts = SplitOptions.from_resolver(
            _resolver(
                tmp_path,
                **{
                    "split.strategy": "single_archive",
                    "split.size_limit_kind": "compressed",
                    "split.compression_ratio": 0.5,
                    "split.single_archive_name": "all.zip",
                },
            )
        )
        assert opts.strategy == ArchiveStrategy.SINGLE_ARCHIVE
        assert opts.size_limit_kind == SizeLimitKind.COMPRESSED_ARCHIVE_ESTIMATE
        assert opts.compression_ratio == 0.5
        assert opts.single_archive_name == "all.zip"

    def test_env_strings_are_coerced(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ZIPSPLIT_SPLIT_MAX_SIZE_BYTES", "2097152")
        monkeypatch.setenv("ZIPSPLIT_SPLIT_OVERSIZED_POLICY", "SKIP")
        monkeypatch.setenv("ZIPSPLIT_SPLIT_CLEANUP_ON_FAILURE", "yes")
        monkeypatch.setenv("ZIPSPLIT_SPLIT_COMPRESSION_RATIO", "0.25")

        opts = SplitOptions.from_resolver(_resolver(tmp_path))
        assert opts.max_size_bytes == 2 * MIB
        assert opts.oversized_policy == OversizedPolicy.SKIP
        assert opts.cleanup_on_failure is True
        assert opts.compression_ratio == 0.25

    def test_yaml_values(self, tmp_path):
        (tmp_path / "user.yaml").write_text(
            "split:\n  oversized_policy: copy_uncompressed\n  chunk_size: 4096\n"
        )
        opts = SplitOptions.from_resolver(_resolver(tmp_path))
        assert opts.oversized_policy == OversizedPolicy.COPY_UNCOMPRESSED
        assert opts.chunk_size == 4096

    def test_unknown_enum_value_raises(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ZIPSPLIT_SPLIT_STRATEGY", "zip_everything")
        with pytest.raises(ConfigError, match="split.strategy"):
            SplitOptions.from_resolver(_resolver(tmp_path))

    def test_malformed_int_raises(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ZIPSPLIT_SPLIT_MAX_SIZE_BYTES", "lots")
        with pytest.raises(ConfigError, match="must be an int"):
            SplitOptions.from_resolver(_resolver(tmp_path))
