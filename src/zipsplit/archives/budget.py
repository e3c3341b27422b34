"""Effective raw-byte threshold for classification and packing."""

from __future__ import annotations

import math

from zipsplit.core.errors import InvalidConfigurationError

from .types import MIN_SPLIT_SIZE_BYTES, SizeLimitKind


def compute_effective_threshold(
    max_size_bytes: int, size_limit_kind: SizeLimitKind, compression_ratio: float
) -> int:
    """Convert a user limit into the raw-byte threshold used for every decision.

    Files are measured before compression, so a limit on the compressed
    archive is approximated by inflating the raw threshold with the inverse
    of the expected ratio. Archives produced under
    COMPRESSED_ARCHIVE_ESTIMATE may overshoot the limit when the data
    compresses worse than estimated.

    Raises
    ------
    InvalidConfigurationError
        If the ratio is outside (0, 1] or the limit is below the split minimum.
    """
    if not 0 < compression_ratio <= 1.0:
        raise InvalidConfigurationError(
            f"Compression ratio must be between 0 and 1.0 (got {compression_ratio})"
        )
    if max_size_bytes < MIN_SPLIT_SIZE_BYTES:
        raise InvalidConfigurationError(
            f"Maximum size must be at least 1MB (got {max_size_bytes} bytes)"
        )

    match size_limit_kind:
        case SizeLimitKind.UNCOMPRESSED_DATA:
            return max_size_bytes
        case SizeLimitKind.COMPRESSED_ARCHIVE_ESTIMATE:
            return math.floor(max_size_bytes / compression_ratio)
    raise InvalidConfigurationError(f"Unknown size limit kind: {size_limit_kind!r}")
