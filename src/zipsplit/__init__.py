"""zipsplit - split a directory tree into size-bounded zip archives."""

__version__ = "1.0.0"

from zipsplit.archives import (  # noqa: E402
    ArchiveStrategy,
    OversizedPolicy,
    ProgressInfo,
    SizeLimitKind,
    SpecialHandlingRecord,
    SplitOptions,
    SplitResult,
    create_archives,
    create_archives_sync,
    create_split_archives,
    create_split_archives_with_progress,
)
from zipsplit.core import (  # noqa: E402
    FileAccessError,
    InvalidConfigurationError,
    OperationCanceledError,
    OversizedFileError,
    ZipSplitError,
)

__all__ = [
    "__version__",
    "ArchiveStrategy",
    "OversizedPolicy",
    "ProgressInfo",
    "SizeLimitKind",
    "SpecialHandlingRecord",
    "SplitOptions",
    "SplitResult",
    "create_archives",
    "create_archives_sync",
    "create_split_archives",
    "create_split_archives_with_progress",
    "FileAccessError",
    "InvalidConfigurationError",
    "OperationCanceledError",
    "OversizedFileError",
    "ZipSplitError",
]
