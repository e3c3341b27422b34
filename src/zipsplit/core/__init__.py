"""zipsplit core: configuration, errors, logging and diagnostics."""

from zipsplit.core.config import ConfigResolver, ConfigSource
from zipsplit.core.errors import (
    ConfigError,
    FileAccessError,
    FileError,
    InvalidConfigurationError,
    OperationCanceledError,
    OversizedFileError,
    ZipSplitError,
)
from zipsplit.core.events import EventBus, get_event_bus
from zipsplit.core.logging import (
    LogBus,
    LogRecord,
    VerbosityLevel,
    get_log_bus,
    get_logger,
    get_verbosity,
    set_colors,
    set_verbosity,
)

__all__ = [
    # Config
    "ConfigResolver",
    "ConfigSource",
    # Errors
    "ZipSplitError",
    "ConfigError",
    "InvalidConfigurationError",
    "FileError",
    "FileAccessError",
    "OversizedFileError",
    "OperationCanceledError",
    # Events
    "EventBus",
    "get_event_bus",
    # Logging
    "LogBus",
    "LogRecord",
    "VerbosityLevel",
    "get_log_bus",
    "get_logger",
    "get_verbosity",
    "set_colors",
    "set_verbosity",
]
