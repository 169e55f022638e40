"""Logging setup with an in-memory diagnostics buffer.

Warnings and errors from the ``plughub`` loggers (failed plugin loads,
skipped declarations, activation failures) are kept in a ring buffer so the
host can show them after startup or export them to a file.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from plughub.instrumentation import ActivationReport

_LOGGER_NAME = "plughub"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(slots=True)
class DiagnosticEntry:
    """A captured log record."""

    level: str
    logger: str
    message: str
    timestamp: float


class DiagnosticsHandler(logging.Handler):
    """Logging handler that keeps the most recent records in memory."""

    def __init__(self, capacity: int = 500, level: int = logging.WARNING) -> None:
        super().__init__(level)
        self.entries: deque[DiagnosticEntry] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.entries.append(
                DiagnosticEntry(
                    level=record.levelname,
                    logger=record.name,
                    message=record.getMessage(),
                    timestamp=record.created,
                )
            )
        except Exception:
            self.handleError(record)


def setup_logging(level: str = "INFO", *, buffer_size: int = 500) -> DiagnosticsHandler:
    """Configure the ``plughub`` logger and return its diagnostics handler.

    Idempotent: repeated calls update the level and reuse the installed handler.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)

    handler = next((h for h in logger.handlers if isinstance(h, DiagnosticsHandler)), None)
    if handler is None:
        handler = DiagnosticsHandler(buffer_size)
        logger.addHandler(handler)

        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(stream)
    return handler


def export_diagnostics(
    handler: DiagnosticsHandler,
    file_path: Path,
    report: ActivationReport | None = None,
) -> int:
    """Write buffered diagnostics to ``file_path``.

    When ``report`` holds activation timings they follow the log entries.

    Returns:
        Number of entries written
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("w", encoding="utf-8") as f:
        f.write("# plughub diagnostics\n")
        f.write(f"# Total entries: {len(handler.entries)}\n\n")
        for entry in handler.entries:
            ts = datetime.fromtimestamp(entry.timestamp).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
            f.write(f"{ts} [{entry.level}] {entry.logger}: {entry.message}\n")
        if report is not None and report.entries:
            f.write(f"\n# Activation ({report.total_ms:.2f} ms)\n")
            for line in report.format_lines():
                f.write(f"{line}\n")
    return len(handler.entries)


__all__ = [
    "DiagnosticEntry",
    "DiagnosticsHandler",
    "export_diagnostics",
    "setup_logging",
]
