"""Size-bounded zip archive splitting engine."""

from .budget import compute_effective_threshold
from .classify import classify
from .discovery import enumerate_files
from .progress import ProgressAccumulator, ProgressSink
from .sequencer import ArchiveSequencer, sequential_archive_name
from .service import (
    create_archives,
    create_archives_sync,
    create_split_archives,
    create_split_archives_with_progress,
)
from .types import (
    ArchiveStrategy,
    FileRecord,
    OversizedPolicy,
    ProgressInfo,
    SizeLimitKind,
    SpecialHandlingRecord,
    SplitOptions,
    SplitResult,
)

__all__ = [
    "ArchiveSequencer",
    "ArchiveStrategy",
    "FileRecord",
    "OversizedPolicy",
    "ProgressAccumulator",
    "ProgressInfo",
    "ProgressSink",
    "SizeLimitKind",
    "SpecialHandlingRecord",
    "SplitOptions",
    "SplitResult",
    "classify",
    "compute_effective_threshold",
    "create_archives",
    "create_archives_sync",
    "create_split_archives",
    "create_split_archives_with_progress",
    "enumerate_files",
    "sequential_archive_name",
]
