"""Job-wide progress accounting.

One accumulator spans every archive and every oversized-file decision of a
job, so percentages describe the whole job rather than the current archive.
"""

from __future__ import annotations

from collections.abc import Callable

from zipsplit.core.errors import OperationCanceledError
from zipsplit.core.logging import get_logger

from .types import ProgressInfo

log = get_logger(__name__)

ProgressSink = Callable[[ProgressInfo], None]


class ProgressAccumulator:
    """Monotonic byte counter converted to a 0-100 percentage.

    ``total_bytes`` is fixed at job start. A total of zero (only empty files)
    reports 100. Percentages are clamped and never decrease, even when a
    file grows while it is being read.
    """

    def __init__(self, total_bytes: int, sink: ProgressSink | None = None) -> None:
        self.total_bytes = total_bytes
        self.bytes_processed = 0
        self._sink = sink
        self._last_percentage = 0.0

    @property
    def percentage(self) -> float:
        if self.total_bytes <= 0:
            pct = 100.0
        else:
            pct = min(100.0, self.bytes_processed / self.total_bytes * 100.0)
        self._last_percentage = max(self._last_percentage, pct)
        return self._last_percentage

    def advance(self, nbytes: int, *, archive_index: int, description: str) -> int:
        """Add processed bytes, emit an event and return the new cumulative count."""
        if nbytes > 0:
            self.bytes_processed += nbytes
        self.report(archive_index=archive_index, description=description)
        return self.bytes_processed

    def report(self, *, archive_index: int, description: str) -> None:
        self._emit(
            ProgressInfo(
                percentage=self.percentage,
                archive_index=archive_index,
                bytes_processed=self.bytes_processed,
                description=description,
            )
        )

    def complete(self, *, archive_index: int, description: str = "Compression completed") -> None:
        self._last_percentage = 100.0
        self._emit(
            ProgressInfo(
                percentage=100.0,
                archive_index=archive_index,
                bytes_processed=self.bytes_processed,
                description=description,
            )
        )

    def _emit(self, info: ProgressInfo) -> None:
        if self._sink is None:
            return
        try:
            self._sink(info)
        except OperationCanceledError:
            raise
        except Exception as e:
            # A broken renderer must not abort the archive job.
            log.error(f"Progress sink raised: {type(e).__name__}: {e}")
