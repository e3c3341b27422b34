"""Normal vs oversized partition of enumerated files."""

from __future__ import annotations

from collections.abc import Iterable

from .types import FileRecord


def classify(
    files: Iterable[FileRecord], effective_threshold: int
) -> tuple[list[FileRecord], list[FileRecord]]:
    """Split files into (normal, oversized), preserving input order.

    A file is oversized only when strictly larger than the threshold.
    """
    normal: list[FileRecord] = []
    oversized: list[FileRecord] = []
    for record in files:
        if record.size > effective_threshold:
            oversized.append(record)
        else:
            normal.append(record)
    return normal, oversized
