"""zipsplit command line.

    python -m zipsplit SOURCE DEST [options]

Options are passed to ConfigResolver as CLI-level values, so they override
environment variables and YAML config files.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from contextlib import suppress
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from zipsplit import __version__
from zipsplit.archives import (
    ArchiveStrategy,
    OversizedPolicy,
    ProgressInfo,
    SizeLimitKind,
    SplitOptions,
    SplitResult,
    create_archives,
)
from zipsplit.core import (
    ConfigError,
    ConfigResolver,
    FileAccessError,
    OperationCanceledError,
    VerbosityLevel,
    ZipSplitError,
    get_logger,
    get_verbosity,
    set_colors,
    set_verbosity,
)
from zipsplit.core.diagnostics import install_jsonl_sink, uninstall_jsonl_sink

log = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130


class ConsoleProgress:
    """Single-line progress bar fed by ProgressInfo events.

    The bar is started lazily on the first event and must be closed by the
    caller, also on failure, so the terminal is restored.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeRemainingColumn(),
            console=console,
        )
        self._task: TaskID | None = None

    def __call__(self, info: ProgressInfo) -> None:
        if self._task is None:
            self._progress.start()
            self._task = self._progress.add_task(info.description, total=100.0)
        self._progress.update(self._task, completed=info.percentage, description=info.description)

    def close(self) -> None:
        if self._task is not None:
            self._progress.stop()
            self._task = None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zipsplit",
        description="Pack a directory tree into size-bounded zip archives.",
    )
    parser.add_argument("source", type=Path, help="directory to archive")
    parser.add_argument("destination", type=Path, help="output directory (created if missing)")

    size = parser.add_mutually_exclusive_group()
    size.add_argument("--max-size-mb", type=float, help="size limit per archive in MiB")
    size.add_argument("--max-size-bytes", type=int, help="size limit per archive in bytes")

    parser.add_argument("--strategy", choices=[s.value for s in ArchiveStrategy])
    parser.add_argument(
        "--size-limit",
        choices=[k.value for k in SizeLimitKind],
        help="what the size limit measures",
    )
    parser.add_argument("--ratio", type=float, help="expected compressed/raw ratio (0-1]")
    parser.add_argument(
        "--oversized",
        choices=[p.value for p in OversizedPolicy],
        help="handling of files above the size limit",
    )
    parser.add_argument("--name", help="archive file name for single_archive")
    parser.add_argument(
        "--cleanup-on-failure",
        action="store_const",
        const=True,
        default=None,
        help="remove archives created by a failed run",
    )
    parser.add_argument("--config", type=Path, help="user config YAML")

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-q", "--quiet", dest="level", action="store_const", const="quiet")
    verbosity.add_argument("-v", "--verbose", dest="level", action="store_const", const="verbose")
    verbosity.add_argument("-d", "--debug", dest="level", action="store_const", const="debug")

    parser.add_argument("--no-color", action="store_true", help="disable ANSI colors")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.max_size_mb is not None:
        overrides["split.max_size_bytes"] = int(args.max_size_mb * 1024 * 1024)
    if args.max_size_bytes is not None:
        overrides["split.max_size_bytes"] = args.max_size_bytes
    for key, value in (
        ("split.strategy", args.strategy),
        ("split.size_limit_kind", args.size_limit),
        ("split.compression_ratio", args.ratio),
        ("split.oversized_policy", args.oversized),
        ("split.single_archive_name", args.name),
        ("split.cleanup_on_failure", args.cleanup_on_failure),
        ("logging.level", args.level),
    ):
        if value is not None:
            overrides[key] = value
    if args.no_color:
        overrides["logging.color"] = False
    return overrides


async def _run(
    source: Path, destination: Path, options: SplitOptions, renderer: ConsoleProgress | None
) -> SplitResult:
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    sigint_installed = False
    with suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
        sigint_installed = True

    try:
        return await create_archives(source, destination, options, renderer, cancel_event)
    finally:
        if renderer is not None:
            renderer.close()
        if sigint_installed:
            loop.remove_signal_handler(signal.SIGINT)


def _report(result: SplitResult, console: Console) -> None:
    log.info(str(result))
    for path in result.created_archives:
        log.verbose(f"  {path}")

    if not result.special_files:
        return
    if get_verbosity() <= VerbosityLevel.QUIET:
        for special in result.special_files:
            log.warning(f"{special.policy.value}: {special.file_path}")
        return

    table = Table(title="Oversized files")
    for header in ("File", "Size", "Policy", "Output"):
        table.add_column(header, style="cyan")
    for special in result.special_files:
        table.add_row(
            special.file_path,
            f"{special.file_size:,}",
            special.policy.value,
            special.output_path or "-",
        )
    console.print(table)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    resolver = ConfigResolver(cli_args=_cli_overrides(args), user_config_path=args.config)

    try:
        set_verbosity(resolver.resolve_logging_level())
        use_colors = resolver.resolve_bool("logging.color")
        options = SplitOptions.from_resolver(resolver)
    except ConfigError as e:
        log.error(str(e))
        return EXIT_USAGE

    set_colors(use_colors)
    console = Console(no_color=not use_colors)
    renderer = ConsoleProgress(console) if get_verbosity() > VerbosityLevel.QUIET else None

    install_jsonl_sink(resolver=resolver)
    try:
        result = asyncio.run(_run(args.source, args.destination, options, renderer))
    except ConfigError as e:
        log.error(str(e))
        return EXIT_USAGE
    except (OperationCanceledError, KeyboardInterrupt):
        log.warning("Cancelled; completed archives were kept")
        return EXIT_CANCELLED
    except FileAccessError as e:
        log.error(str(e))
        if e.__cause__ is not None:
            log.error(f"Cause: {type(e.__cause__).__name__}: {e.__cause__}")
        return EXIT_ERROR
    except ZipSplitError as e:
        log.error(str(e))
        return EXIT_ERROR
    finally:
        uninstall_jsonl_sink()

    _report(result, console)
    return EXIT_OK


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
