"""Per-job mutable state threaded through every engine stage."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from zipsplit.core.errors import OperationCanceledError

from .progress import ProgressAccumulator
from .types import ResultCollector, SplitOptions


@dataclass
class JobContext:
    """State owned by one archive job.

    Nothing here is shared between jobs, so independent jobs can run
    concurrently on the same event loop.
    """

    options: SplitOptions
    progress: ProgressAccumulator
    result: ResultCollector
    cancel_event: asyncio.Event | None = None
    archive_index: int = 1
    isolated_names: set[str] = field(default_factory=set)
    # Top-level source name -> name used for it under the destination.
    copied_roots: dict[str, str] = field(default_factory=dict)

    def check_cancelled(self) -> None:
        """Raise OperationCanceledError if cancellation was requested."""
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise OperationCanceledError()
