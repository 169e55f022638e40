"""Per-scheme timings for protocol handler activation.

``PluginRuntime`` keeps one ``ActivationReport`` for its ``activate()`` call.
The CLI prints it after a dry run and ``export_diagnostics`` appends it to the
exported file. Set ``PLUGHUB_INSTRUMENTATION_LOG=1`` to also log every
measurement as a structured event.
"""

from __future__ import annotations

import json
import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

    from plughub.descriptors import ProtocolDescriptor

log = logging.getLogger(__name__)

_ENABLED_VALUES = frozenset({"1", "true", "yes", "on"})
_INSTRUMENTATION_LOG_ENV = "PLUGHUB_INSTRUMENTATION_LOG"


def _is_env_enabled(name: str) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return False
    return raw.strip().lower() in _ENABLED_VALUES


@dataclass(frozen=True, slots=True)
class SchemeActivation:
    """Outcome of one protocol's register routine."""

    scheme: str
    plugin: str
    duration_ms: float
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class PluginTiming:
    """Activation time summed over one plugin's schemes."""

    count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0

    def add(self, duration_ms: float) -> None:
        self.count += 1
        self.total_ms += duration_ms
        self.max_ms = max(self.max_ms, duration_ms)


class ActivationReport:
    """Ordered record of every register routine the activator ran."""

    def __init__(self, *, log_events: bool | None = None) -> None:
        self.entries: list[SchemeActivation] = []
        self.log_events = (
            _is_env_enabled(_INSTRUMENTATION_LOG_ENV) if log_events is None else log_events
        )

    @contextmanager
    def measure(self, proto: ProtocolDescriptor) -> Iterator[None]:
        """Time ``proto``'s registration; a raised exception is recorded and re-raised."""
        started_at = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self._record(proto, started_at, f"{type(exc).__name__}: {exc}")
            raise
        self._record(proto, started_at, None)

    @property
    def registered(self) -> list[str]:
        return [entry.scheme for entry in self.entries if entry.ok]

    @property
    def failure(self) -> SchemeActivation | None:
        return next((entry for entry in self.entries if not entry.ok), None)

    @property
    def total_ms(self) -> float:
        return sum(entry.duration_ms for entry in self.entries)

    def by_plugin(self) -> dict[str, PluginTiming]:
        """Timings grouped by owning plugin, in activation order."""
        timings: dict[str, PluginTiming] = {}
        for entry in self.entries:
            timings.setdefault(entry.plugin, PluginTiming()).add(entry.duration_ms)
        return timings

    def format_lines(self) -> list[str]:
        lines = []
        for entry in self.entries:
            status = "ok" if entry.ok else f"failed ({entry.error})"
            lines.append(f"{entry.scheme}  {entry.plugin}  {entry.duration_ms:.2f} ms  {status}")
        return lines

    def _record(self, proto: ProtocolDescriptor, started_at: float, error: str | None) -> None:
        elapsed_ms = (time.perf_counter() - started_at) * 1000.0
        entry = SchemeActivation(
            scheme=proto.scheme,
            plugin=proto.plugin,
            duration_ms=elapsed_ms,
            error=error,
        )
        self.entries.append(entry)
        log.debug("Protocol %s (%s) registered in %.2f ms", entry.scheme, entry.plugin, elapsed_ms)
        if self.log_events:
            self._emit(entry)

    @staticmethod
    def _emit(entry: SchemeActivation) -> None:
        payload: dict[str, Any] = {
            "kind": "activation",
            "scheme": entry.scheme,
            "plugin": entry.plugin,
            "duration_ms": entry.duration_ms,
            "ok": entry.ok,
        }
        if entry.error:
            payload["error"] = entry.error
        log.info("plughub.instrumentation %s", json.dumps(payload, sort_keys=True))


__all__ = [
    "ActivationReport",
    "PluginTiming",
    "SchemeActivation",
]
