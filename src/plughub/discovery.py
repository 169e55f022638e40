"""Plugin discovery from a plugin directory, entry points or explicit registration.

Every plugin is loaded in isolation: a plugin that fails to import is logged
and skipped, and discovery of the remaining plugins continues.
"""

from __future__ import annotations

import importlib.util
import json
import logging
import re
import sys
from dataclasses import dataclass, field
from importlib.metadata import entry_points
from pathlib import Path
from types import ModuleType
from typing import Any

from pydantic import ValidationError

from plughub.descriptors import PluginMetadata
from plughub.errors import PluginLoadError

log = logging.getLogger(__name__)

DEFAULT_NAME_PREFIX = "plughub-plugin-"
DEFAULT_ENTRY_POINT_GROUP = "plughub.plugins"
METADATA_FILENAMES: tuple[str, ...] = ("package.json", "plugin.json")
_METADATA_FIELDS: tuple[str, ...] = ("name", "author", "description", "homepage", "version")
_MODULE_NAMESPACE = "plughub_plugins"


@dataclass(frozen=True, slots=True)
class LoadedPlugin:
    """A plugin module and where it came from."""

    name: str
    module: Any
    path: Path | None = None

    def declarations(self, key: str) -> Any:
        """Return the raw value the plugin exports under ``key`` (None when absent)."""
        return getattr(self.module, key, None)


@dataclass(slots=True)
class DiscoveryResult:
    """Plugins in load order plus their metadata keyed by plugin name."""

    plugins: list[LoadedPlugin] = field(default_factory=list)
    metadata: dict[str, PluginMetadata] = field(default_factory=dict)
    failures: list[PluginLoadError] = field(default_factory=list)

    @property
    def modules(self) -> list[Any]:
        return [plugin.module for plugin in self.plugins]


def load_package_metadata(plugin_dir: Path, name: str) -> PluginMetadata:
    """Read the plugin's package descriptor, falling back to a minimal record."""
    for filename in METADATA_FILENAMES:
        candidate = plugin_dir / filename
        if not candidate.is_file():
            continue
        try:
            payload = json.loads(candidate.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                break
            attrs = {key: payload.get(key) for key in _METADATA_FIELDS}
            attrs["name"] = attrs["name"] or name
            return PluginMetadata.model_validate(attrs)
        except (OSError, ValueError, ValidationError):
            break
    return PluginMetadata.fallback(name)


def _module_name(name: str) -> str:
    safe_name = re.sub(r"\W", "_", name)
    return f"{_MODULE_NAMESPACE}.{safe_name}"


def _import_from_path(name: str, path: Path) -> ModuleType:
    if path.is_dir():
        location = path / "__init__.py"
        search_locations: list[str] | None = [str(path)]
    else:
        location = path
        search_locations = None
    if not location.is_file():
        raise PluginLoadError(name, path, "no __init__.py or module file found")

    module_name = _module_name(name)
    spec = importlib.util.spec_from_file_location(
        module_name, location, submodule_search_locations=search_locations
    )
    if spec is None or spec.loader is None:
        raise PluginLoadError(name, path, "unable to build an import spec")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise PluginLoadError(name, path, f"{type(exc).__name__}: {exc}") from exc
    return module


class PluginDiscoverer:
    """Collects plugin modules and metadata in a deterministic load order."""

    def __init__(
        self,
        *,
        name_prefix: str = DEFAULT_NAME_PREFIX,
        entry_point_group: str = DEFAULT_ENTRY_POINT_GROUP,
    ) -> None:
        self.name_prefix = name_prefix
        self.entry_point_group = entry_point_group
        self._result = DiscoveryResult()

    @property
    def result(self) -> DiscoveryResult:
        """Everything discovered or registered so far."""
        return self._result

    def discover(self, directory: Path) -> DiscoveryResult:
        """Scan ``directory`` for plugin packages and load each of them.

        A missing directory yields zero plugins. Returns the accumulated result.
        """
        if not directory.is_dir():
            log.debug("Plugin directory does not exist: %s", directory)
            return self._result

        log.debug("Loading plugins from %s", directory)
        candidates = sorted(
            entry for entry in directory.iterdir() if entry.name.startswith(self.name_prefix)
        )
        for entry in candidates:
            name = entry.stem if entry.is_file() else entry.name
            if entry.is_file() and entry.suffix != ".py":
                continue
            try:
                module = _import_from_path(name, entry)
            except PluginLoadError as exc:
                self._record_failure(exc)
                continue
            metadata = (
                load_package_metadata(entry, name)
                if entry.is_dir()
                else PluginMetadata.fallback(name)
            )
            self._add(LoadedPlugin(name=name, module=module, path=entry), metadata)
        return self._result

    def discover_entry_points(self, group: str | None = None) -> DiscoveryResult:
        """Load plugins advertised by installed distributions under ``group``."""
        group = group or self.entry_point_group
        for ep in entry_points(group=group):
            try:
                module = ep.load()
            except Exception as exc:
                self._record_failure(PluginLoadError(ep.name, None, f"{type(exc).__name__}: {exc}"))
                continue
            metadata = PluginMetadata.fallback(ep.name)
            if ep.dist is not None:
                dist_meta = ep.dist.metadata
                metadata = PluginMetadata(
                    name=ep.name,
                    author=dist_meta.get("Author"),
                    description=dist_meta.get("Summary"),
                    homepage=dist_meta.get("Home-page"),
                    version=ep.dist.version,
                )
            self._add(LoadedPlugin(name=ep.name, module=module), metadata)
        return self._result

    def register(
        self,
        name: str,
        module: Any,
        metadata: PluginMetadata | None = None,
    ) -> LoadedPlugin | None:
        """Register an in-process plugin handle explicitly.

        Returns the loaded plugin, or None when ``name`` is already taken.
        """
        plugin = LoadedPlugin(name=name, module=module)
        if not self._add(plugin, metadata or PluginMetadata.fallback(name)):
            return None
        return plugin

    def _add(self, plugin: LoadedPlugin, metadata: PluginMetadata) -> bool:
        if plugin.name in self._result.metadata:
            log.warning("Skipping duplicate plugin %s (already loaded)", plugin.name)
            return False
        self._result.plugins.append(plugin)
        self._result.metadata[plugin.name] = metadata
        log.debug("Loaded plugin %s", plugin.name)
        return True

    def _record_failure(self, error: PluginLoadError) -> None:
        self._result.failures.append(error)
        log.warning("%s", error)


__all__ = [
    "DEFAULT_ENTRY_POINT_GROUP",
    "DEFAULT_NAME_PREFIX",
    "DiscoveryResult",
    "LoadedPlugin",
    "PluginDiscoverer",
    "load_package_metadata",
]
