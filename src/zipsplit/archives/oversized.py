"""Policies for files larger than the effective threshold."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from zipsplit.core.errors import OversizedFileError
from zipsplit.core.logging import get_logger

from .context import JobContext
from .sequencer import SEQUENTIAL_ARCHIVE_RE
from .streams import copy_verbatim, open_archive, write_entry
from .types import ARCHIVE_SUFFIX, FileRecord, OversizedPolicy, SpecialHandlingRecord

log = get_logger(__name__)

ISOLATED_ARCHIVE_PREFIX = "large_file_"


def _rename_for_collision(taken: Callable[[str], bool], name: str) -> str:
    stem = Path(name).stem
    suffix = Path(name).suffix
    i = 1
    candidate = name
    while taken(candidate):
        candidate = f"{stem}__{i}{suffix}"
        i += 1
    return candidate


def isolated_archive_name(record: FileRecord, used: set[str]) -> str:
    """``large_file_<stem>.zip``, suffixed ``__<n>`` when the stem repeats within a job."""
    name = f"{ISOLATED_ARCHIVE_PREFIX}{record.absolute_path.stem}{ARCHIVE_SUFFIX}"
    return _rename_for_collision(used.__contains__, name)


def copy_destination(record: FileRecord, destination_dir: Path, ctx: JobContext) -> Path:
    """Mirror path for a verbatim copy, kept clear of sequential archive names.

    Copies are written before any sequential archive exists, so a top-level
    source entry named like ``archive001.zip`` is renamed with a ``__<n>``
    suffix. Every file under a renamed directory follows the same rename.
    """
    root, *rest = record.relative_posix.split("/")
    target = ctx.copied_roots.get(root)
    if target is None:
        claimed = set(ctx.copied_roots.values())

        def taken(name: str) -> bool:
            return SEQUENTIAL_ARCHIVE_RE.fullmatch(name) is not None or name in claimed

        target = _rename_for_collision(taken, root)
        if target != root:
            log.warning(f"{root} clashes with archive naming; copying it as {target}")
        ctx.copied_roots[root] = target
    return destination_dir.joinpath(target, *rest)


async def handle_oversized(
    record: FileRecord,
    policy: OversizedPolicy,
    destination_dir: Path,
    ctx: JobContext,
    *,
    limit: int,
) -> SpecialHandlingRecord:
    """Apply the configured policy to one oversized file and record the outcome.

    Every non-failing branch advances the job's byte counter by the file's
    size, so percentages stay meaningful for files that bypass archiving.

    Raises:
        OversizedFileError: policy is FAIL
        FileAccessError: the file cannot be read or its output written
        OperationCanceledError: cancellation requested
    """
    ctx.check_cancelled()
    rel = record.relative_posix
    output_path: Path | None = None

    match policy:
        case OversizedPolicy.FAIL:
            raise OversizedFileError(record.absolute_path, record.size, limit)

        case OversizedPolicy.ISOLATE:
            name = isolated_archive_name(record, ctx.isolated_names)
            ctx.isolated_names.add(name)
            output_path = destination_dir / name
            ctx.result.add_archive(output_path)
            log.verbose(f"isolating {rel} into {name}")
            with open_archive(output_path) as zf:
                await write_entry(record, rel, zf, ctx)
            reason = (
                f"File size ({record.size:,} bytes) exceeds limit ({limit:,} bytes); "
                f"placed in separate archive {name}"
            )

        case OversizedPolicy.SKIP:
            ctx.progress.advance(
                record.size, archive_index=ctx.archive_index, description=f"Skipped: {rel}"
            )
            reason = f"File size ({record.size:,} bytes) exceeds limit ({limit:,} bytes); skipped"

        case OversizedPolicy.COPY_UNCOMPRESSED:
            output_path = copy_destination(record, destination_dir, ctx)
            await copy_verbatim(record, output_path)
            ctx.result.copied_files.append(output_path)
            ctx.progress.advance(
                record.size,
                archive_index=ctx.archive_index,
                description=f"Copied uncompressed: {rel}",
            )
            reason = (
                f"File size ({record.size:,} bytes) exceeds limit ({limit:,} bytes); "
                f"copied uncompressed"
            )

        case _:
            raise ValueError(f"Unknown oversized policy: {policy!r}")

    handled = SpecialHandlingRecord(
        file_path=str(record.absolute_path),
        file_size=record.size,
        policy=policy,
        output_path=str(output_path) if output_path is not None else None,
        reason=reason,
    )
    ctx.result.add_special(handled)
    log.warning(f"oversized file {rel}: {reason}")
    return handled
