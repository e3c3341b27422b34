"""Deterministic source tree enumeration."""

from __future__ import annotations

from pathlib import Path

from zipsplit.core.errors import FileAccessError

from .types import FileRecord


def enumerate_files(root: Path, *, exclude: Path | None = None) -> list[FileRecord]:
    """List every regular file under root, depth-first, sorted by name per level.

    Parameters
    ----------
    root
        Existing source directory.
    exclude
        Directory whose subtree is skipped (the destination when it lives
        inside the source tree).

    Returns
    -------
    list[FileRecord]
        Records in traversal order with POSIX relative paths.

    Raises
    ------
    FileAccessError
        If a directory cannot be listed or a file cannot be stat'ed.
    """
    root = root.resolve()
    excluded = exclude.resolve() if exclude is not None else None
    results: list[FileRecord] = []

    def walk_dir(abs_dir: Path, rel_dir: str) -> None:
        try:
            entries = sorted(abs_dir.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise FileAccessError(f"Cannot list directory: {abs_dir}", abs_dir) from e

        for entry in entries:
            rel = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            try:
                if entry.is_dir():
                    # Directory symlinks are not followed (cycles).
                    if entry.is_symlink() or entry.resolve() == excluded:
                        continue
                    walk_dir(entry, rel)
                    continue
                if not entry.is_file():
                    continue
                size = entry.stat().st_size
            except OSError as e:
                raise FileAccessError(f"Cannot stat path: {entry}", entry) from e

            results.append(FileRecord(absolute_path=entry, relative_posix=rel, size=int(size)))

    walk_dir(root, "")
    return results
