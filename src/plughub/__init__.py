"""plughub: aggregate plugin protocol handlers and web API manifests for a host."""

from plughub.capabilities import PROTOCOLS_KEY, WEB_APIS_KEY, CapabilityIndex
from plughub.discovery import DiscoveryResult, LoadedPlugin, PluginDiscoverer
from plughub.runtime import PluginRuntime

__version__ = "0.1.0"

__all__ = [
    "PROTOCOLS_KEY",
    "WEB_APIS_KEY",
    "CapabilityIndex",
    "DiscoveryResult",
    "LoadedPlugin",
    "PluginDiscoverer",
    "PluginRuntime",
]
