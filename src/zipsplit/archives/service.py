"""Archive job orchestration.

`create_archives` is the single entry point of the engine: it validates
options and paths, enumerates the source tree, then either streams everything
into one archive or classifies files and hands them to the oversized-file
policy and the sequencer. Every stage shares one JobContext.
"""

from __future__ import annotations

import asyncio
import time
import traceback
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path
from typing import Any

from zipsplit.core.diagnostics import build_envelope, safe_publish
from zipsplit.core.errors import (
    FileAccessError,
    InvalidConfigurationError,
    OperationCanceledError,
    OversizedFileError,
)
from zipsplit.core.logging import get_logger

from .budget import compute_effective_threshold
from .classify import classify
from .context import JobContext
from .discovery import enumerate_files
from .oversized import handle_oversized
from .progress import ProgressAccumulator, ProgressSink
from .sequencer import ArchiveSequencer
from .streams import open_archive, write_entry
from .types import (
    ArchiveStrategy,
    FileRecord,
    OversizedPolicy,
    ResultCollector,
    SizeLimitKind,
    SplitOptions,
    SplitResult,
)

_logger = get_logger(__name__)

COMPONENT = "archives"


def _short_traceback(*, max_lines: int = 20) -> str:
    tb_lines = traceback.format_exc().strip().splitlines()
    return "\n".join(tb_lines[-max_lines:])


def _publish_end(operation: str, data: dict[str, Any]) -> None:
    safe_publish(
        "operation.end",
        build_envelope(event="operation.end", component=COMPONENT, operation=operation, data=data),
    )


@contextmanager
def _observe_operation(*, operation: str, base: dict[str, Any]) -> Iterator[dict[str, Any]]:
    start = time.perf_counter()
    safe_publish(
        "operation.start",
        build_envelope(
            event="operation.start", component=COMPONENT, operation=operation, data=dict(base)
        ),
    )

    summary: dict[str, Any] = {}
    try:
        yield summary
    except OperationCanceledError:
        duration_ms = int((time.perf_counter() - start) * 1000)
        _publish_end(operation, {**base, **summary, "status": "cancelled", "duration_ms": duration_ms})
        _logger.info(f"{operation} status=cancelled duration_ms={duration_ms}")
        raise
    except Exception as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        _publish_end(
            operation,
            {
                **base,
                **summary,
                "status": "failed",
                "duration_ms": duration_ms,
                "error_type": type(e).__name__,
                "error_message": str(e),
                "traceback": _short_traceback(),
            },
        )
        _logger.warning(
            f"{operation} status=failed duration_ms={duration_ms} "
            f"source={base.get('source')!r} error={type(e).__name__}"
        )
        raise
    else:
        duration_ms = int((time.perf_counter() - start) * 1000)
        _publish_end(
            operation, {**base, **summary, "status": "succeeded", "duration_ms": duration_ms}
        )
        _logger.info(
            f"{operation} status=succeeded duration_ms={duration_ms} "
            f"archives={summary.get('archives_count')} bytes={summary.get('bytes')}"
        )


def _prepare_paths(source: Path | str, destination: Path | str) -> tuple[Path, Path]:
    src = Path(source).expanduser()
    dst = Path(destination).expanduser()

    if not src.exists():
        raise InvalidConfigurationError(f"Source directory does not exist: {src}")
    if not src.is_dir():
        raise InvalidConfigurationError(f"Source path is not a directory: {src}")

    if dst.exists() and not dst.is_dir():
        raise InvalidConfigurationError(f"Destination path is not a directory: {dst}")
    try:
        dst.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise InvalidConfigurationError(
            f"Cannot create destination directory: {dst}",
            "Check that the parent directory exists and is writable",
        ) from e

    return src, dst


def _nested_destination(src: Path, dst: Path) -> Path | None:
    src_r = src.resolve()
    dst_r = dst.resolve()
    if dst_r != src_r and dst_r.is_relative_to(src_r):
        return dst_r
    return None


def _cleanup_outputs(result: ResultCollector) -> None:
    for path in [*result.created_archives, *result.copied_files]:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            _logger.warning(f"cleanup failed for {path}: {type(e).__name__}: {e}")
        else:
            _logger.verbose(f"removed {path}")


async def _run_single(files: list[FileRecord], destination: Path, ctx: JobContext) -> None:
    path = destination / ctx.options.single_archive_name
    ctx.result.add_archive(path)
    _logger.verbose(f"opened {path.name}")
    with open_archive(path) as zf:
        for record in files:
            ctx.check_cancelled()
            await write_entry(record, record.relative_posix, zf, ctx)


async def _run_split(files: list[FileRecord], destination: Path, ctx: JobContext) -> None:
    opts = ctx.options
    threshold = compute_effective_threshold(
        opts.max_size_bytes, opts.size_limit_kind, opts.compression_ratio
    )
    normal, oversized = classify(files, threshold)
    _logger.verbose(
        f"threshold={threshold} normal={len(normal)} oversized={len(oversized)} "
        f"policy={opts.oversized_policy.value}"
    )

    for record in oversized:
        await handle_oversized(record, opts.oversized_policy, destination, ctx, limit=threshold)

    await ArchiveSequencer(destination, threshold, ctx).run(normal)


async def create_archives(
    source: Path | str,
    destination: Path | str,
    options: SplitOptions | None = None,
    progress: ProgressSink | None = None,
    cancel_event: asyncio.Event | None = None,
) -> SplitResult:
    """Archive every file under source into destination.

    Args:
        source: directory tree to archive
        destination: output directory, created when missing
        options: job configuration; defaults to ``SplitOptions()``
        progress: callback receiving ProgressInfo events; the last event of a
            successful job is at 100%
        cancel_event: checked before each file and between chunks

    Returns:
        Frozen SplitResult.

    Raises:
        InvalidConfigurationError: bad options or paths (before any archive I/O)
        OversizedFileError: oversized file under the FAIL policy
        FileAccessError: a source or output file could not be read or written
        OperationCanceledError: cancel_event was set
    """
    started = time.perf_counter()
    opts = options if options is not None else SplitOptions()
    opts.validate()
    src, dst = _prepare_paths(source, destination)

    base = {
        "source": str(src),
        "destination": str(dst),
        "strategy": opts.strategy.value,
        "max_size_bytes": opts.max_size_bytes,
        "oversized_policy": opts.oversized_policy.value,
    }

    with _observe_operation(operation="create_archives", base=base) as summary:
        files = enumerate_files(src, exclude=_nested_destination(src, dst))
        total_bytes = sum(f.size for f in files)
        _logger.info(f"archiving {len(files)} files ({total_bytes:,} bytes) from {src}")

        ctx = JobContext(
            options=opts,
            progress=ProgressAccumulator(total_bytes, progress),
            result=ResultCollector(strategy=opts.strategy),
            cancel_event=cancel_event,
        )

        if not files:
            ctx.progress.complete(archive_index=0, description="No files to compress")
        else:
            ctx.check_cancelled()
            ctx.progress.report(archive_index=ctx.archive_index, description="Analyzing files")
            try:
                match opts.strategy:
                    case ArchiveStrategy.SINGLE_ARCHIVE:
                        await _run_single(files, dst, ctx)
                    case ArchiveStrategy.SPLIT_BY_SIZE:
                        await _run_split(files, dst, ctx)
                    case _:
                        raise InvalidConfigurationError(f"Unknown strategy: {opts.strategy!r}")
            except (OversizedFileError, FileAccessError):
                if opts.cleanup_on_failure:
                    _logger.warning("job failed; removing outputs created by this job")
                    _cleanup_outputs(ctx.result)
                raise
            ctx.progress.complete(archive_index=ctx.archive_index)

        result = ctx.result.freeze(
            total_bytes_processed=ctx.progress.bytes_processed,
            duration=timedelta(seconds=time.perf_counter() - started),
        )
        summary.update(
            {
                "archives_count": len(result.created_archives),
                "special_count": len(result.special_files),
                "bytes": result.total_bytes_processed,
            }
        )

    if result.has_warnings:
        _logger.warning(f"{len(result.special_files)} oversized file(s) handled specially")
    return result


def create_archives_sync(
    source: Path | str,
    destination: Path | str,
    options: SplitOptions | None = None,
    progress: ProgressSink | None = None,
) -> SplitResult:
    """Blocking wrapper around create_archives; must not be called from a running loop."""
    return asyncio.run(create_archives(source, destination, options, progress))


def _legacy_options(max_size_bytes: int) -> SplitOptions:
    return SplitOptions(
        strategy=ArchiveStrategy.SPLIT_BY_SIZE,
        max_size_bytes=max_size_bytes,
        size_limit_kind=SizeLimitKind.UNCOMPRESSED_DATA,
        oversized_policy=OversizedPolicy.FAIL,
    )


async def create_split_archives_with_progress(
    source: Path | str,
    destination: Path | str,
    max_size_bytes: int,
    progress: ProgressSink | None = None,
    cancel_event: asyncio.Event | None = None,
) -> SplitResult:
    """Split by raw size and fail on any file larger than max_size_bytes."""
    return await create_archives(
        source, destination, _legacy_options(max_size_bytes), progress, cancel_event
    )


def create_split_archives(
    source: Path | str,
    destination: Path | str,
    max_size_bytes: int,
    progress: Callable[[float], None] | None = None,
) -> SplitResult:
    """Blocking form of create_split_archives_with_progress reporting bare percentages."""
    sink: ProgressSink | None = None
    if progress is not None:
        sink = lambda info: progress(info.percentage)  # noqa: E731

    return asyncio.run(
        create_split_archives_with_progress(source, destination, max_size_bytes, sink)
    )
