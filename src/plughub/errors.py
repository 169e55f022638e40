"""Exception hierarchy for plugin loading, aggregation and activation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class PlughubError(Exception):
    """Base error for plughub failures."""


class PluginLoadError(PlughubError):
    """Raised when a plugin module cannot be imported."""

    def __init__(self, name: str, path: Path | None = None, reason: str = "") -> None:
        self.name = name
        self.path = path
        message = f"Failed to load plugin '{name}'"
        if path is not None:
            message += f" from {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class DescriptorError(PlughubError, ValueError):
    """Raised when a plugin declares a capability with an invalid shape."""

    def __init__(self, plugin: str, key: str, reason: str) -> None:
        self.plugin = plugin
        self.key = key
        super().__init__(f"Plugin '{plugin}' declares invalid '{key}': {reason}")


class SchemeCollisionError(PlughubError):
    """Raised when two plugins declare the same scheme and collisions are rejected."""

    def __init__(self, scheme: str, plugins: Sequence[str]) -> None:
        self.scheme = scheme
        self.plugins = tuple(plugins)
        owners = ", ".join(self.plugins)
        super().__init__(f"Scheme '{scheme}' is declared by more than one plugin: {owners}")


class ProtocolActivationError(PlughubError):
    """Raised when a protocol descriptor's register routine fails."""

    def __init__(self, scheme: str, reason: str = "") -> None:
        self.scheme = scheme
        message = f"Protocol handler registration failed for scheme '{scheme}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class RuntimeStateError(PlughubError, RuntimeError):
    """Raised when the startup sequence is driven out of order."""


__all__ = [
    "DescriptorError",
    "PluginLoadError",
    "PlughubError",
    "ProtocolActivationError",
    "RuntimeStateError",
    "SchemeCollisionError",
]
