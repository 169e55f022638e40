"""Host startup sequence over discovered plugins.

The host constructs one ``PluginRuntime`` and drives it in two phases:

1. ``prepare(registry)`` before the host is ready: warms the capability cache
   and registers standard-URL schemes.
2. ``await activate(channel, exporter)`` once the host is ready: activates
   protocol handlers one at a time, then exports every web API.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from plughub.activation import setup_protocol_handlers
from plughub.capabilities import (
    PROTOCOLS_KEY,
    WEB_APIS_KEY,
    CapabilityIndex,
    SchemeCollisionPolicy,
)
from plughub.discovery import PluginDiscoverer
from plughub.errors import ProtocolActivationError, RuntimeStateError
from plughub.exporter import setup_web_apis
from plughub.instrumentation import ActivationReport
from plughub.lookup import get_web_api_manifests
from plughub.registrar import register_standard_schemes

if TYPE_CHECKING:
    from pathlib import Path

    from plughub.config import PlughubConfig
    from plughub.descriptors import PluginMetadata
    from plughub.discovery import LoadedPlugin
    from plughub.host import CapabilityExporter, MessageChannel, SchemeRegistry

log = logging.getLogger(__name__)


class PluginRuntime:
    """Owns the discovered plugins and their capability index."""

    def __init__(
        self,
        discoverer: PluginDiscoverer,
        *,
        collision_policy: SchemeCollisionPolicy = SchemeCollisionPolicy.LAST_WINS,
        export_web_apis_on_failure: bool = False,
    ) -> None:
        self.discoverer = discoverer
        self.index = CapabilityIndex(discoverer.result.plugins, collision_policy=collision_policy)
        self.export_web_apis_on_failure = export_web_apis_on_failure
        self.report = ActivationReport()
        self._prepared = False
        self._activated = False

    @classmethod
    def from_config(cls, config: PlughubConfig, *, plugin_dir: Path | None = None) -> PluginRuntime:
        """Discover plugins as configured and build a runtime over them."""
        discoverer = PluginDiscoverer(
            name_prefix=config.plugins.name_prefix,
            entry_point_group=config.plugins.entry_point_group,
        )
        discoverer.discover(plugin_dir or config.plugins.plugin_directory)
        if config.plugins.load_entry_points:
            discoverer.discover_entry_points()
        log.info(
            "Discovered %d plugin(s), %d failed to load",
            len(discoverer.result.plugins),
            len(discoverer.result.failures),
        )
        return cls(
            discoverer,
            collision_policy=config.plugins.scheme_collision,
            export_web_apis_on_failure=config.activation.export_web_apis_on_failure,
        )

    @property
    def plugins(self) -> list[LoadedPlugin]:
        return self.discoverer.result.plugins

    @property
    def metadata(self) -> dict[str, PluginMetadata]:
        return self.discoverer.result.metadata

    @property
    def prepared(self) -> bool:
        return self._prepared

    def prepare(self, registry: SchemeRegistry) -> list[str]:
        """Warm the capability cache and register standard schemes.

        Call exactly once, before the host signals readiness.

        Raises:
            RuntimeStateError: If called more than once.
        """
        if self._prepared:
            msg = "PluginRuntime.prepare() has already run"
            raise RuntimeStateError(msg)
        self.index.warm(PROTOCOLS_KEY, WEB_APIS_KEY)
        schemes = register_standard_schemes(self.index, registry)
        self._prepared = True
        return schemes

    async def activate(self, channel: MessageChannel, exporter: CapabilityExporter) -> list[str]:
        """Activate protocol handlers sequentially, then export web APIs.

        Returns the exported channel names. Per-scheme timings land in
        ``self.report`` whether or not activation succeeds.

        Raises:
            RuntimeStateError: If ``prepare()`` has not run or activation already ran.
            ProtocolActivationError: If a protocol handler fails to register.
        """
        if not self._prepared:
            msg = "PluginRuntime.prepare() must run before activate()"
            raise RuntimeStateError(msg)
        if self._activated:
            msg = "PluginRuntime.activate() has already run"
            raise RuntimeStateError(msg)
        self._activated = True

        try:
            await setup_protocol_handlers(self.index, channel, self.report)
        except ProtocolActivationError:
            if self.export_web_apis_on_failure:
                log.warning("Protocol activation failed; exporting web APIs anyway")
                setup_web_apis(self.index, exporter)
            raise
        return setup_web_apis(self.index, exporter)

    def get_web_api_manifests(self, scheme: str) -> dict[str, Any]:
        return get_web_api_manifests(self.index, scheme)


__all__ = ["PluginRuntime"]
