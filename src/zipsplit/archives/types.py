"""Archive splitting types.

Options, records and results exchanged between the engine stages and its
callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import timedelta
from enum import StrEnum
from pathlib import Path
from typing import Any

from zipsplit.core.config import ConfigResolver
from zipsplit.core.errors import ConfigError, InvalidConfigurationError

ARCHIVE_SUFFIX = ".zip"
MIN_SPLIT_SIZE_BYTES = 1024 * 1024
DEFAULT_CHUNK_SIZE = 81920


class ArchiveStrategy(StrEnum):
    SPLIT_BY_SIZE = "split_by_size"
    SINGLE_ARCHIVE = "single_archive"


class SizeLimitKind(StrEnum):
    """What max_size_bytes measures."""

    UNCOMPRESSED_DATA = "uncompressed"
    COMPRESSED_ARCHIVE_ESTIMATE = "compressed"


class OversizedPolicy(StrEnum):
    """How files above the effective threshold are handled."""

    FAIL = "fail"
    ISOLATE = "isolate"
    SKIP = "skip"
    COPY_UNCOMPRESSED = "copy_uncompressed"


def _enum_from_value(enum_cls: type[StrEnum], key: str, value: Any) -> Any:
    norm = str(value).strip().lower()
    for member in enum_cls:
        if member.value == norm or member.name.lower() == norm:
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")


@dataclass(frozen=True)
class SplitOptions:
    """Configuration for one archive job.

    Attributes
    ----------
    strategy
        Split into size-bounded archives or write a single archive.
    max_size_bytes
        Size limit per archive; meaning depends on size_limit_kind.
        Ignored for SINGLE_ARCHIVE.
    size_limit_kind
        Whether the limit counts raw input bytes or estimated compressed bytes.
    compression_ratio
        Expected compressed/raw ratio in (0, 1]; used for
        COMPRESSED_ARCHIVE_ESTIMATE only.
    oversized_policy
        Handling of files whose raw size exceeds the effective threshold.
    single_archive_name
        Output file name for SINGLE_ARCHIVE; must end with ``.zip``.
    cleanup_on_failure
        Delete outputs created by the job when it fails with a fatal error.
    chunk_size
        Streaming copy buffer size in bytes.
    deterministic_entries
        Use fixed entry timestamps and permissions.
    """

    strategy: ArchiveStrategy = ArchiveStrategy.SPLIT_BY_SIZE
    max_size_bytes: int = 100 * 1024 * 1024
    size_limit_kind: SizeLimitKind = SizeLimitKind.UNCOMPRESSED_DATA
    compression_ratio: float = 0.7
    oversized_policy: OversizedPolicy = OversizedPolicy.ISOLATE
    single_archive_name: str = "archive.zip"
    cleanup_on_failure: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE
    deterministic_entries: bool = True

    def validate(self) -> None:
        """Raise InvalidConfigurationError if the options are unusable."""
        if self.strategy == ArchiveStrategy.SPLIT_BY_SIZE and self.max_size_bytes < MIN_SPLIT_SIZE_BYTES:
            raise InvalidConfigurationError(
                f"Maximum size must be at least 1MB when using split_by_size strategy "
                f"(got {self.max_size_bytes} bytes)",
                f"Use max_size_bytes >= {MIN_SPLIT_SIZE_BYTES}",
            )

        if not 0 < self.compression_ratio <= 1.0:
            raise InvalidConfigurationError(
                f"Compression ratio must be between 0 and 1.0 (got {self.compression_ratio})"
            )

        if self.chunk_size < 1:
            raise InvalidConfigurationError(f"Chunk size must be positive (got {self.chunk_size})")

        name = self.single_archive_name
        if not name or not name.strip():
            raise InvalidConfigurationError("Single archive name cannot be empty")
        if not name.lower().endswith(ARCHIVE_SUFFIX):
            raise InvalidConfigurationError(
                f"Single archive name must end with {ARCHIVE_SUFFIX} extension: {name!r}"
            )
        if "/" in name or "\\" in name or name in (ARCHIVE_SUFFIX, ".", ".."):
            raise InvalidConfigurationError(
                f"Single archive name must be a plain file name: {name!r}"
            )

    def with_overrides(self, **changes: Any) -> SplitOptions:
        return replace(self, **changes)

    @classmethod
    def from_resolver(cls, resolver: ConfigResolver) -> SplitOptions:
        """Build options from the ``split.*`` configuration keys.

        String values (environment variables) are coerced; malformed values
        raise ConfigError. The result is not validated.
        """
        return cls(
            strategy=_enum_from_value(
                ArchiveStrategy, "split.strategy", resolver.resolve("split.strategy")[0]
            ),
            max_size_bytes=resolver.resolve_int("split.max_size_bytes"),
            size_limit_kind=_enum_from_value(
                SizeLimitKind, "split.size_limit_kind", resolver.resolve("split.size_limit_kind")[0]
            ),
            compression_ratio=resolver.resolve_float("split.compression_ratio"),
            oversized_policy=_enum_from_value(
                OversizedPolicy,
                "split.oversized_policy",
                resolver.resolve("split.oversized_policy")[0],
            ),
            single_archive_name=resolver.resolve_str("split.single_archive_name"),
            cleanup_on_failure=resolver.resolve_bool("split.cleanup_on_failure"),
            chunk_size=resolver.resolve_int("split.chunk_size"),
            deterministic_entries=resolver.resolve_bool("split.deterministic_entries"),
        )


@dataclass(frozen=True)
class FileRecord:
    """One enumerated source file.

    ``relative_posix`` is the archive entry name: forward slashes on every host.
    """

    absolute_path: Path
    relative_posix: str
    size: int


@dataclass(frozen=True)
class SpecialHandlingRecord:
    """Outcome for one oversized file."""

    file_path: str
    file_size: int
    policy: OversizedPolicy
    output_path: str | None
    reason: str


@dataclass(frozen=True)
class ProgressInfo:
    percentage: float
    archive_index: int
    bytes_processed: int
    description: str

    def __str__(self) -> str:
        return (
            f"{self.percentage:.1f}% - Archive {self.archive_index} - "
            f"{self.bytes_processed:,} bytes - {self.description}"
        )


@dataclass(frozen=True)
class SplitResult:
    created_archives: tuple[str, ...]
    special_files: tuple[SpecialHandlingRecord, ...]
    total_bytes_processed: int
    duration: timedelta
    strategy: ArchiveStrategy

    @property
    def has_warnings(self) -> bool:
        return len(self.special_files) > 0

    @property
    def skipped_files(self) -> list[SpecialHandlingRecord]:
        return [f for f in self.special_files if f.policy == OversizedPolicy.SKIP]

    @property
    def uncompressed_files(self) -> list[SpecialHandlingRecord]:
        return [f for f in self.special_files if f.policy == OversizedPolicy.COPY_UNCOMPRESSED]

    @property
    def separate_archive_files(self) -> list[SpecialHandlingRecord]:
        return [f for f in self.special_files if f.policy == OversizedPolicy.ISOLATE]

    def __str__(self) -> str:
        text = (
            f"Strategy: {self.strategy.value}, Archives: {len(self.created_archives)}, "
            f"Total Size: {self.total_bytes_processed:,} bytes, "
            f"Duration: {self.duration.total_seconds():.2f}s"
        )
        if self.has_warnings:
            text += f", Warnings: {len(self.special_files)}"
        return text


@dataclass
class ResultCollector:
    """Mutable accumulator for a job's outcome; ``freeze`` yields the SplitResult."""

    strategy: ArchiveStrategy
    created_archives: list[Path] = field(default_factory=list)
    special_files: list[SpecialHandlingRecord] = field(default_factory=list)
    copied_files: list[Path] = field(default_factory=list)

    def add_archive(self, path: Path) -> None:
        self.created_archives.append(path)

    def add_special(self, record: SpecialHandlingRecord) -> None:
        self.special_files.append(record)

    @property
    def has_warnings(self) -> bool:
        return len(self.special_files) > 0

    def freeze(self, *, total_bytes_processed: int, duration: timedelta) -> SplitResult:
        return SplitResult(
            created_archives=tuple(str(p) for p in self.created_archives),
            special_files=tuple(self.special_files),
            total_bytes_processed=total_bytes_processed,
            duration=duration,
            strategy=self.strategy,
        )
