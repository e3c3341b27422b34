"""Error handling with friendly messages."""

from __future__ import annotations

from pathlib import Path


class ZipSplitError(Exception):
    """Base exception for all zipsplit errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(ZipSplitError):
    """Configuration error."""

    pass


# Raised synchronously before any archive I/O; always user-correctable.
InvalidConfigurationError = ConfigError


class FileError(ZipSplitError):
    """File operation error."""

    pass


class FileAccessError(FileError):
    """A source file could not be read or an output could not be written.

    The underlying OSError is chained as ``__cause__``.
    """

    def __init__(self, message: str, path: Path | str) -> None:
        self.path = str(path)
        super().__init__(message, "Check file permissions and free disk space")


class OversizedFileError(ZipSplitError):
    """A file exceeds the effective size limit under the FAIL policy."""

    def __init__(self, path: Path | str, size: int, limit: int) -> None:
        self.path = str(path)
        self.size = size
        self.limit = limit
        super().__init__(
            f"File {self.path} ({size} bytes) exceeds maximum archive size ({limit} bytes)",
            "Raise the size limit or choose another oversized file policy",
        )


class OperationCanceledError(Exception):
    """Cooperative cancellation was observed.

    Not a ZipSplitError: callers catching application failures must not
    treat a user-requested stop as one.
    """

    def __init__(self, message: str = "Operation was cancelled") -> None:
        self.message = message
        super().__init__(message)
