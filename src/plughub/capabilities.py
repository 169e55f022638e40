"""Memoized aggregation of plugin capability declarations.

The index flattens what every loaded plugin exports under a capability key
into one tuple (plugin load order, then declaration order) and caches it. The
cache is written once per key: plugins registered after a key was first
requested are not reflected in that key.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any, cast

from plughub.descriptors import ProtocolDescriptor, WebAPIDescriptor
from plughub.errors import DescriptorError, SchemeCollisionError

if TYPE_CHECKING:
    from plughub.discovery import LoadedPlugin

log = logging.getLogger(__name__)

PROTOCOLS_KEY = "protocols"
WEB_APIS_KEY = "webAPIs"


class SchemeCollisionPolicy(StrEnum):
    """What to do when two protocol descriptors declare the same scheme."""

    LAST_WINS = "last_wins"
    FIRST_WINS = "first_wins"
    ERROR = "error"


def _as_sequence(value: Any) -> list[Any]:
    if isinstance(value, list | tuple):
        return list(value)
    return [value]


class CapabilityIndex:
    """Per-key aggregation over a shared, ordered plugin list."""

    def __init__(
        self,
        plugins: Sequence[LoadedPlugin],
        *,
        collision_policy: SchemeCollisionPolicy = SchemeCollisionPolicy.LAST_WINS,
    ) -> None:
        self._plugins = plugins
        self._collision_policy = collision_policy
        self._cache: dict[str, tuple[Any, ...]] = {}

    def get_all_info(self, key: str) -> tuple[Any, ...]:
        """Return every declaration exported under ``key`` across all plugins.

        ``protocols`` and ``webAPIs`` are validated into descriptors; other keys
        are returned as declared. Repeated calls return the same tuple.

        Raises:
            SchemeCollisionError: Duplicate schemes under the ``error`` policy.
        """
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        values: list[Any] = []
        for plugin in self._plugins:
            declared = plugin.declarations(key)
            if declared is None:
                continue
            for item in _as_sequence(declared):
                try:
                    values.append(self._normalize(key, plugin, item))
                except (DescriptorError, ValueError) as exc:
                    log.warning("Skipping '%s' declaration from plugin %s: %s", key, plugin.name, exc)

        if key == PROTOCOLS_KEY:
            values = self._resolve_collisions(cast("list[ProtocolDescriptor]", values))

        result = tuple(values)
        self._cache[key] = result
        return result

    def warm(self, *keys: str) -> None:
        """Aggregate ``keys`` now so later consumers read a settled cache."""
        for key in keys or (PROTOCOLS_KEY, WEB_APIS_KEY):
            self.get_all_info(key)

    def is_cached(self, key: str) -> bool:
        return key in self._cache

    def protocols(self) -> tuple[ProtocolDescriptor, ...]:
        return cast("tuple[ProtocolDescriptor, ...]", self.get_all_info(PROTOCOLS_KEY))

    def web_apis(self) -> tuple[WebAPIDescriptor, ...]:
        return cast("tuple[WebAPIDescriptor, ...]", self.get_all_info(WEB_APIS_KEY))

    def find_protocol(self, scheme: str) -> ProtocolDescriptor | None:
        """Return the protocol descriptor registered for ``scheme``, if any."""
        return next((proto for proto in self.protocols() if proto.scheme == scheme), None)

    def _normalize(self, key: str, plugin: LoadedPlugin, item: Any) -> Any:
        match key:
            case "protocols":
                return ProtocolDescriptor.from_declaration(item, plugin=plugin.name)
            case "webAPIs":
                api = WebAPIDescriptor.from_declaration(item, plugin=plugin.name)
                if api.is_attributed:
                    return api
                schemes = self._owned_schemes(plugin)
                if not schemes:
                    raise DescriptorError(
                        plugin.name,
                        key,
                        f"web API '{api.name}' has no scheme and the plugin declares no protocols"
                        " left in the index",
                    )
                return api.with_schemes(schemes)
            case _:
                return item

    def _owned_schemes(self, plugin: LoadedPlugin) -> list[str]:
        # Only protocols that validated and survived the collision policy.
        return [proto.scheme for proto in self.protocols() if proto.plugin == plugin.name]

    def _resolve_collisions(
        self, protocols: list[ProtocolDescriptor]
    ) -> list[ProtocolDescriptor]:
        by_scheme: dict[str, ProtocolDescriptor] = {}
        for proto in protocols:
            existing = by_scheme.get(proto.scheme)
            if existing is None:
                by_scheme[proto.scheme] = proto
                continue
            match self._collision_policy:
                case SchemeCollisionPolicy.ERROR:
                    raise SchemeCollisionError(proto.scheme, [existing.plugin, proto.plugin])
                case SchemeCollisionPolicy.FIRST_WINS:
                    log.warning(
                        "Scheme '%s' from plugin %s ignored; already declared by %s",
                        proto.scheme,
                        proto.plugin,
                        existing.plugin,
                    )
                case SchemeCollisionPolicy.LAST_WINS:
                    log.warning(
                        "Scheme '%s' from plugin %s shadows the one declared by %s",
                        proto.scheme,
                        proto.plugin,
                        existing.plugin,
                    )
                    del by_scheme[proto.scheme]
                    by_scheme[proto.scheme] = proto
        return list(by_scheme.values())


__all__ = [
    "PROTOCOLS_KEY",
    "WEB_APIS_KEY",
    "CapabilityIndex",
    "SchemeCollisionPolicy",
]
