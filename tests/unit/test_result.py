"""Tests for results, progress records and errors."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from zipsplit.archives.types import (
    ArchiveStrategy,
    OversizedPolicy,
    ProgressInfo,
    ResultCollector,
    SpecialHandlingRecord,
    SplitResult,
)
from zipsplit.core.errors import (
    FileAccessError,
    FileError,
    OperationCanceledError,
    OversizedFileError,
    ZipSplitError,
)


def _special(name: str, policy: OversizedPolicy) -> SpecialHandlingRecord:
    return SpecialHandlingRecord(
        file_path=f"/src/{name}",
        file_size=10,
        policy=policy,
        output_path=None if policy == OversizedPolicy.SKIP else f"/out/{name}",
        reason="too big",
    )


def test_progress_info_str() -> None:
    info = ProgressInfo(
        percentage=42.26, archive_index=3, bytes_processed=1234567, description="Processing: a/b.txt"
    )
    assert str(info) == "42.3% - Archive 3 - 1,234,567 bytes - Processing: a/b.txt"


def test_collector_freezes_in_order() -> None:
    collector = ResultCollector(strategy=ArchiveStrategy.SPLIT_BY_SIZE)
    collector.add_archive(Path("/out/large_file_x.zip"))
    collector.add_archive(Path("/out/archive001.zip"))
    collector.add_special(_special("x", OversizedPolicy.ISOLATE))

    result = collector.freeze(total_bytes_processed=99, duration=timedelta(seconds=1.5))

    assert result.created_archives == ("/out/large_file_x.zip", "/out/archive001.zip")
    assert len(result.special_files) == 1
    assert result.total_bytes_processed == 99
    assert result.strategy == ArchiveStrategy.SPLIT_BY_SIZE

    # Frozen snapshot is independent of the collector.
    collector.add_archive(Path("/out/archive002.zip"))
    assert len(result.created_archives) == 2


def test_result_views() -> None:
    result = SplitResult(
        created_archives=(),
        special_files=(
            _special("a", OversizedPolicy.SKIP),
            _special("b", OversizedPolicy.COPY_UNCOMPRESSED),
            _special("c", OversizedPolicy.ISOLATE),
            _special("d", OversizedPolicy.SKIP),
        ),
        total_bytes_processed=40,
        duration=timedelta(seconds=2),
        strategy=ArchiveStrategy.SPLIT_BY_SIZE,
    )

    assert result.has_warnings
    assert [s.file_path for s in result.skipped_files] == ["/src/a", "/src/d"]
    assert [s.file_path for s in result.uncompressed_files] == ["/src/b"]
    assert [s.file_path for s in result.separate_archive_files] == ["/src/c"]


def test_result_str() -> None:
    result = SplitResult(
        created_archives=("/out/archive001.zip", "/out/archive002.zip"),
        special_files=(),
        total_bytes_processed=2_500_000,
        duration=timedelta(milliseconds=1250),
        strategy=ArchiveStrategy.SPLIT_BY_SIZE,
    )
    assert not result.has_warnings
    assert str(result) == (
        "Strategy: split_by_size, Archives: 2, Total Size: 2,500,000 bytes, Duration: 1.25s"
    )


def test_result_is_immutable() -> None:
    result = ResultCollector(strategy=ArchiveStrategy.SINGLE_ARCHIVE).freeze(
        total_bytes_processed=0, duration=timedelta()
    )
    with pytest.raises(AttributeError):
        result.total_bytes_processed = 5  # type: ignore[misc]


class TestErrors:
    def test_suggestion_in_str(self):
        err = ZipSplitError("Bad thing", "Do the other thing")
        assert str(err) == "Bad thing\nSuggestion: Do the other thing"
        assert ZipSplitError("Bad thing").suggestion is None

    def test_oversized_message(self):
        err = OversizedFileError("/src/big.bin", 5 * 1024 * 1024, 2 * 1024 * 1024)
        assert err.message == (
            "File /src/big.bin (5242880 bytes) exceeds maximum archive size (2097152 bytes)"
        )

    def test_file_access_error(self):
        err = FileAccessError("Access denied to file: /x", Path("/x"))
        assert isinstance(err, FileError)
        assert err.path == "/x"

    def test_cancellation_is_not_an_application_error(self):
        err = OperationCanceledError()
        assert not isinstance(err, ZipSplitError)
        assert str(err) == "Operation was cancelled"
