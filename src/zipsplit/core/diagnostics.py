"""Runtime diagnostics envelope + JSONL sink.

Archive operations publish `operation.start` / `operation.end` envelopes on
the event bus. The JSONL sink, when installed and enabled through
ConfigResolver (`diagnostics.enabled`), appends every envelope to
`diagnostics.path`.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from zipsplit.core.config import ConfigResolver
from zipsplit.core.errors import ConfigError
from zipsplit.core.events import get_event_bus
from zipsplit.core.logging import get_logger

_logger = get_logger(__name__)


def build_envelope(
    *,
    event: str,
    component: str,
    operation: str,
    data: dict[str, Any],
) -> dict[str, Any]:
    """Build the canonical diagnostics envelope.

    Schema:
        {
          "event": "<string>",
          "component": "<string>",
          "operation": "<string>",
          "timestamp": "<iso8601 utc>",
          "data": { ... }
        }
    """
    ts = datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    return {
        "event": event,
        "component": component,
        "operation": operation,
        "timestamp": ts,
        "data": data,
    }


def safe_publish(event: str, payload: dict[str, Any]) -> None:
    try:
        get_event_bus().publish(event, payload)
    except Exception as e:
        # Diagnostics must never break an archive job.
        _logger.debug(f"diagnostics publish failed: {type(e).__name__}: {e}")


def is_diagnostics_enabled(resolver: ConfigResolver) -> bool:
    try:
        return resolver.resolve_bool("diagnostics.enabled")
    except ConfigError as e:
        _logger.warning(f"Invalid diagnostics.enabled; treating as disabled. {e.message}")
        return False


_SINK: Callable[[str, dict[str, Any]], None] | None = None


def install_jsonl_sink(*, resolver: ConfigResolver) -> None:
    """Install the JSONL diagnostics subscriber (idempotent per process).

    When diagnostics are disabled the subscriber performs no file I/O.
    """
    global _SINK
    if _SINK is not None:
        return

    def _on_any_event(event: str, data: dict[str, Any]) -> None:
        if not is_diagnostics_enabled(resolver):
            return

        try:
            out_path = Path(resolver.resolve_str("diagnostics.path")).expanduser()
        except ConfigError:
            _logger.warning("Missing diagnostics.path; cannot write diagnostics JSONL.")
            return

        payload = data
        if set(data.keys()) != {"event", "component", "operation", "timestamp", "data"}:
            payload = build_envelope(event=event, component="unknown", operation="unknown", data=data)

        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            line = json.dumps(payload, ensure_ascii=True, separators=(",", ":"), sort_keys=True)
            with out_path.open("a", encoding="utf-8") as f:
                f.write(line)
                f.write("\n")
        except OSError as e:
            _logger.warning(f"Diagnostics sink write failed: {type(e).__name__}: {e}")

    get_event_bus().subscribe_all(_on_any_event)
    _SINK = _on_any_event


def uninstall_jsonl_sink() -> None:
    global _SINK
    if _SINK is None:
        return
    get_event_bus().unsubscribe_all(_SINK)
    _SINK = None
