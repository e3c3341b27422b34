"""Rolling bin-packer for files that fit under the effective threshold."""

from __future__ import annotations

import re
import zipfile
from collections.abc import Iterable
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path

from zipsplit.core.logging import get_logger

from .context import JobContext
from .streams import open_archive, write_entry
from .types import ARCHIVE_SUFFIX, FileRecord

log = get_logger(__name__)

SEQUENTIAL_ARCHIVE_BASE = "archive"

# Any name sequential_archive_name() can return, in any letter case.
SEQUENTIAL_ARCHIVE_RE = re.compile(
    rf"{SEQUENTIAL_ARCHIVE_BASE}\d{{3,}}{re.escape(ARCHIVE_SUFFIX)}", re.IGNORECASE
)


def sequential_archive_name(index: int) -> str:
    return f"{SEQUENTIAL_ARCHIVE_BASE}{index:03d}{ARCHIVE_SUFFIX}"


@dataclass
class ArchiveInFlight:
    index: int
    path: Path
    handle: zipfile.ZipFile
    raw_bytes: int = 0


class ArchiveSequencer:
    """Greedy first-fit-into-current-archive packer.

    Files are consumed strictly in order. The current archive is closed and a
    new one opened when the next file would push it past the threshold and it
    already holds data; a file larger than the threshold is therefore still
    admitted alone into a fresh archive. No look-ahead, no reordering.
    """

    def __init__(self, destination_dir: Path, effective_threshold: int, ctx: JobContext) -> None:
        self._destination = destination_dir
        self._threshold = effective_threshold
        self._ctx = ctx

    async def run(self, files: Iterable[FileRecord]) -> list[Path]:
        """Pack files into ``archive<NNN>.zip`` and return the archives created."""
        created: list[Path] = []
        current: ArchiveInFlight | None = None

        with ExitStack() as stack:
            for record in files:
                self._ctx.check_cancelled()

                if (
                    current is not None
                    and current.raw_bytes > 0
                    and current.raw_bytes + record.size > self._threshold
                ):
                    stack.close()
                    log.verbose(
                        f"closed {current.path.name} raw_bytes={current.raw_bytes} "
                        f"threshold={self._threshold}"
                    )
                    current = None
                    self._ctx.archive_index += 1

                if current is None:
                    current = self._open(stack)
                    created.append(current.path)

                await write_entry(record, record.relative_posix, current.handle, self._ctx)
                current.raw_bytes += record.size

            if current is not None:
                log.verbose(f"closing {current.path.name} raw_bytes={current.raw_bytes}")

        return created

    def _open(self, stack: ExitStack) -> ArchiveInFlight:
        index = self._ctx.archive_index
        path = self._destination / sequential_archive_name(index)
        handle = stack.enter_context(open_archive(path))
        self._ctx.result.add_archive(path)
        log.verbose(f"opened {path.name}")
        return ArchiveInFlight(index=index, path=path, handle=handle)
