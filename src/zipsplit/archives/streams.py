"""Streaming helpers: archive handles, chunked entry writes, verbatim copies.

Source files are never read whole; each entry is filled chunk by chunk with
blocking calls pushed to a worker thread, so the event loop stays responsive
and cancellation is observed between chunks.
"""

from __future__ import annotations

import asyncio
import shutil
import zipfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, BinaryIO, TypeVar

from zipsplit.core.errors import FileAccessError
from zipsplit.core.logging import get_logger

from .context import JobContext
from .types import FileRecord

log = get_logger(__name__)

T = TypeVar("T")


async def _in_thread(fn: Callable[..., T], *args: Any) -> T:
    """Run blocking I/O in a worker thread.

    On task cancellation the worker is awaited before CancelledError
    propagates, so callers never close a handle that is still being used.
    """
    fut = asyncio.ensure_future(asyncio.to_thread(fn, *args))
    try:
        return await asyncio.shield(fut)
    except asyncio.CancelledError:
        await asyncio.wait({fut})
        if not fut.cancelled() and fut.exception() is not None:
            log.debug(f"worker failed after cancellation: {fut.exception()!r}")
        raise


def _access_error(action: str, path: Path, exc: OSError) -> FileAccessError:
    if isinstance(exc, PermissionError):
        return FileAccessError(f"Access denied to file: {path}", path)
    return FileAccessError(f"I/O error {action}: {path}", path)


def _zipinfo_for(record: FileRecord, entry_name: str, *, deterministic: bool) -> zipfile.ZipInfo:
    if deterministic:
        zi = zipfile.ZipInfo(filename=entry_name)
        zi.date_time = (1980, 1, 1, 0, 0, 0)
        zi.external_attr = 0o644 << 16
    else:
        zi = zipfile.ZipInfo.from_file(
            record.absolute_path, arcname=entry_name, strict_timestamps=False
        )
    zi.compress_type = zipfile.ZIP_DEFLATED
    # Lets zipfile pick zip64 headers up front for large entries.
    zi.file_size = record.size
    return zi


@contextmanager
def open_archive(path: Path) -> Iterator[zipfile.ZipFile]:
    """Create a new archive at path; the handle is closed on every exit path."""
    try:
        zf = zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED)
    except OSError as e:
        raise _access_error("creating archive", path, e) from e

    try:
        yield zf
    except BaseException:
        # The body's error wins over a failed close.
        try:
            zf.close()
        except OSError as e:
            log.warning(f"could not finalize {path.name} after failure: {e}")
        raise
    try:
        zf.close()
    except OSError as e:
        raise _access_error("finalizing archive", path, e) from e


async def _copy_chunks(src: BinaryIO, dst: BinaryIO, entry_name: str, ctx: JobContext) -> None:
    chunk_size = ctx.options.chunk_size
    description = f"Processing: {entry_name}"
    while True:
        ctx.check_cancelled()
        chunk = await _in_thread(src.read, chunk_size)
        if not chunk:
            return
        await _in_thread(dst.write, chunk)
        ctx.progress.advance(len(chunk), archive_index=ctx.archive_index, description=description)


async def write_entry(
    record: FileRecord, entry_name: str, archive: zipfile.ZipFile, ctx: JobContext
) -> int:
    """Stream one source file into a new DEFLATE entry of an open archive.

    Returns the job's cumulative processed byte count.

    Raises:
        FileAccessError: source unreadable or entry unwritable (wraps the OSError)
        OperationCanceledError: cancellation observed between chunks
    """
    path = record.absolute_path
    try:
        src = open(path, "rb")
    except OSError as e:
        raise _access_error("opening source file", path, e) from e

    with src:
        try:
            zi = _zipinfo_for(record, entry_name, deterministic=ctx.options.deterministic_entries)
            with archive.open(zi, "w") as dst:
                await _copy_chunks(src, dst, entry_name, ctx)
        except OSError as e:
            raise _access_error("processing file", path, e) from e

    log.debug(f"entry written name={entry_name!r} size={record.size}")
    return ctx.progress.bytes_processed


async def copy_verbatim(record: FileRecord, dst_path: Path) -> None:
    """Copy a file byte-for-byte, creating parents and overwriting any existing file."""
    try:
        dst_path.parent.mkdir(parents=True, exist_ok=True)
        await _in_thread(shutil.copy2, record.absolute_path, dst_path)
    except OSError as e:
        raise _access_error("copying file", record.absolute_path, e) from e
