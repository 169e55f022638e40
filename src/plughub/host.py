"""Contracts for the host primitives the aggregator drives.

The host application supplies these; plughub never implements a transport.
``RecordingHost`` is an in-process implementation that records every call,
used by the CLI dry run and by tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


@runtime_checkable
class SchemeRegistry(Protocol):
    """Host primitive that grants schemes standard-URL parsing semantics."""

    def register_standard_schemes(self, schemes: Sequence[str]) -> None:
        """Register all standard schemes in one batch, before host readiness."""


@runtime_checkable
class MessageChannel(Protocol):
    """Capability for sending messages to the host's primary UI surface."""

    def __call__(self, *args: Any) -> Any:
        """Deliver one message."""


@runtime_checkable
class CapabilityExporter(Protocol):
    """Host primitive exposing functions over a remote-call boundary."""

    def export_api(
        self,
        channel_name: str,
        functions: Mapping[str, Any],
        methods: Any,
    ) -> None:
        """Expose ``functions`` under ``channel_name``."""


@dataclass(slots=True)
class RecordingHost:
    """Host double that records scheme registrations, messages and exports."""

    standard_schemes: list[str] = field(default_factory=list)
    scheme_batches: int = 0
    messages: list[tuple[Any, ...]] = field(default_factory=list)
    exports: dict[str, dict[str, Any]] = field(default_factory=dict)
    export_methods: dict[str, Any] = field(default_factory=dict)

    def register_standard_schemes(self, schemes: Sequence[str]) -> None:
        self.scheme_batches += 1
        self.standard_schemes.extend(schemes)

    def send(self, *args: Any) -> None:
        self.messages.append(args)

    def export_api(
        self,
        channel_name: str,
        functions: Mapping[str, Any],
        methods: Any,
    ) -> None:
        self.exports[channel_name] = dict(functions)
        self.export_methods[channel_name] = methods


__all__ = [
    "CapabilityExporter",
    "MessageChannel",
    "RecordingHost",
    "SchemeRegistry",
]
