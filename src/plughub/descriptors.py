"""Typed capability descriptors declared by plugins.

Plugins may declare descriptors either as instances of the classes below or as
plain mappings (snake_case or the legacy camelCase keys such as
``isStandardURL``). Declarations are validated when the capability index
aggregates them, not when the plugin module is imported.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*$")

_MISSING = object()


class CallingConvention(StrEnum):
    """How a web API function is invoked across the export boundary."""

    PLAIN = "plain"
    CALLBACK = "callback"
    ASYNC_CALLBACK = "async_callback"
    STATIC_OBJECT = "static_object"

    @property
    def prefix(self) -> str:
        """Name prefix identifying the convention in manifests and channel names."""
        return _CONVENTION_PREFIXES[self]


_CONVENTION_PREFIXES: dict[CallingConvention, str] = {
    CallingConvention.PLAIN: "",
    CallingConvention.CALLBACK: "_with_cb_",
    CallingConvention.ASYNC_CALLBACK: "_with_async_cb_",
    CallingConvention.STATIC_OBJECT: "_export_as_static_obj_",
}

# Checked in order; the three prefixes are disjoint.
_PREFIXED_CONVENTIONS: tuple[CallingConvention, ...] = (
    CallingConvention.CALLBACK,
    CallingConvention.ASYNC_CALLBACK,
    CallingConvention.STATIC_OBJECT,
)


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    """A manifest function with its calling convention declared explicitly."""

    function: Any
    convention: CallingConvention = CallingConvention.PLAIN


def classify_entry(key: str, value: Any) -> tuple[CallingConvention, str, Any]:
    """Classify one manifest entry.

    Returns the calling convention, the exported function name and the value
    to export. Explicit ``ManifestEntry`` declarations win over the legacy
    name prefix; keys without a known prefix are plain.
    """
    if isinstance(value, ManifestEntry):
        convention = value.convention
        name = key.removeprefix(convention.prefix) if convention.prefix else key
        return convention, name, value.function

    for convention in _PREFIXED_CONVENTIONS:
        if key.startswith(convention.prefix):
            return convention, key.removeprefix(convention.prefix), value
    return CallingConvention.PLAIN, key, value


def _read(source: Any, *names: str, default: Any = _MISSING) -> Any:
    for name in names:
        if isinstance(source, Mapping):
            if name in source:
                return source[name]
        elif hasattr(source, name):
            return getattr(source, name)
    return default


def _validate_scheme(value: Any) -> str:
    if not isinstance(value, str) or not _SCHEME_PATTERN.fullmatch(value):
        msg = f"scheme must match {_SCHEME_PATTERN.pattern}, got {value!r}"
        raise ValueError(msg)
    return value


@dataclass(frozen=True, slots=True, kw_only=True)
class ProtocolDescriptor:
    """A URL scheme handler contributed by a plugin."""

    scheme: str
    register: Callable[[Any], Any]
    is_standard_url: bool = False
    is_internal: bool = False
    plugin: str = ""

    @classmethod
    def from_declaration(cls, value: Any, *, plugin: str = "") -> ProtocolDescriptor:
        """Validate a plugin declaration into a descriptor.

        Raises:
            ValueError: If the declaration lacks a valid scheme or register callable.
        """
        if isinstance(value, cls):
            return value if value.plugin or not plugin else replace(value, plugin=plugin)

        scheme = _validate_scheme(_read(value, "scheme", default=None))
        register = _read(value, "register", default=None)
        if not callable(register):
            msg = f"protocol '{scheme}' must provide a callable register routine"
            raise ValueError(msg)
        return cls(
            scheme=scheme,
            register=register,
            is_standard_url=bool(_read(value, "is_standard_url", "isStandardURL", default=False)),
            is_internal=bool(_read(value, "is_internal", "isInternal", default=False)),
            plugin=plugin,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class WebAPIDescriptor:
    """A named, remotely callable function manifest contributed by a plugin."""

    name: str
    manifest: Mapping[str, Any] = field(default_factory=dict)
    methods: Any = None
    scheme: str | None = None
    schemes: tuple[str, ...] | None = None
    is_internal: bool = False
    plugin: str = ""

    @classmethod
    def from_declaration(cls, value: Any, *, plugin: str = "") -> WebAPIDescriptor:
        """Validate a plugin declaration into a descriptor.

        Raises:
            ValueError: If the declaration lacks a name or has a non-mapping manifest.
        """
        if isinstance(value, cls):
            return value if value.plugin or not plugin else replace(value, plugin=plugin)

        name = _read(value, "name", default=None)
        if not isinstance(name, str) or not name:
            msg = f"web API name must be a non-empty string, got {name!r}"
            raise ValueError(msg)
        manifest = _read(value, "manifest", default=None) or {}
        if not isinstance(manifest, Mapping):
            msg = f"web API '{name}' manifest must be a mapping"
            raise ValueError(msg)

        scheme = _read(value, "scheme", default=None) or None
        if scheme is not None:
            scheme = _validate_scheme(scheme)
        schemes = _read(value, "schemes", default=None)
        return cls(
            name=name,
            manifest=dict(manifest),
            methods=_read(value, "methods", default=None),
            scheme=scheme,
            schemes=None if schemes is None else _ordered_unique(schemes),
            is_internal=bool(_read(value, "is_internal", "isInternal", default=False)),
            plugin=plugin,
        )

    @property
    def is_attributed(self) -> bool:
        """Whether the descriptor names the scheme(s) it belongs to."""
        return bool(self.scheme) or self.schemes is not None

    def with_schemes(self, schemes: Iterable[str]) -> WebAPIDescriptor:
        """Return a copy attributed to the owning plugin's schemes.

        A single scheme populates ``scheme``; several populate ``schemes``.
        """
        ordered = _ordered_unique(schemes)
        if len(ordered) == 1:
            return replace(self, scheme=ordered[0])
        return replace(self, schemes=ordered)

    def serves(self, scheme: str) -> bool:
        """Whether the descriptor is attributed to ``scheme``."""
        return self.scheme == scheme or (self.schemes is not None and scheme in self.schemes)


def _ordered_unique(values: Iterable[str]) -> tuple[str, ...]:
    if isinstance(values, str):
        values = (values,)
    return tuple(dict.fromkeys(values))


class PluginMetadata(BaseModel):
    """Package metadata for one discovered plugin."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1)
    author: str | None = None
    description: str | None = None
    homepage: str | None = None
    version: str | None = None
    status: str = "installed"

    @field_validator("author", mode="before")
    @classmethod
    def normalize_author(cls, value: object) -> str | None:
        """Accept npm-style author objects (``{"name": ..., "email": ...}``)."""
        match value:
            case None:
                return None
            case str():
                return value
            case Mapping():
                name = value.get("name")
                return str(name) if name else None
            case _:
                return str(value)

    @classmethod
    def fallback(cls, name: str) -> PluginMetadata:
        """Minimal record used when a plugin ships no readable package descriptor."""
        return cls(name=name)


__all__ = [
    "CallingConvention",
    "ManifestEntry",
    "PluginMetadata",
    "ProtocolDescriptor",
    "WebAPIDescriptor",
    "classify_entry",
]
