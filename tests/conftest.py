"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import random
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Add src to path so tests run without an editable install
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))

from zipsplit.archives.types import ProgressInfo  # noqa: E402
from zipsplit.core.diagnostics import uninstall_jsonl_sink  # noqa: E402
from zipsplit.core.events import get_event_bus  # noqa: E402
from zipsplit.core.logging import VerbosityLevel, get_log_bus, set_colors, set_verbosity  # noqa: E402

KIB = 1024
MIB = 1024 * 1024


def payload(seed: str, size: int) -> bytes:
    """Incompressible bytes, stable for a given seed."""
    return random.Random(seed).randbytes(size)


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch):
    """Reset global logging/event state and drop ZIPSPLIT_* env vars."""
    for key in list(os.environ):
        if key.startswith("ZIPSPLIT_"):
            monkeypatch.delenv(key)
    set_verbosity(VerbosityLevel.NORMAL)
    set_colors(False)
    yield
    uninstall_jsonl_sink()
    get_event_bus().clear()
    get_log_bus().clear()
    set_verbosity(VerbosityLevel.NORMAL)


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    """Build a source tree from ``{relative_path: size_or_bytes}``.

    Integer sizes are filled with seeded random bytes.
    """

    def build(files: dict[str, int | bytes], *, name: str = "source") -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            data = content if isinstance(content, bytes) else payload(f"{name}/{rel}", content)
            path.write_bytes(data)
        return root

    return build


class ProgressRecorder:
    """Progress sink collecting every event."""

    def __init__(self) -> None:
        self.events: list[ProgressInfo] = []

    def __call__(self, info: ProgressInfo) -> None:
        self.events.append(info)

    @property
    def percentages(self) -> list[float]:
        return [e.percentage for e in self.events]

    @property
    def byte_counts(self) -> list[int]:
        return [e.bytes_processed for e in self.events]


@pytest.fixture
def progress_recorder() -> ProgressRecorder:
    return ProgressRecorder()
