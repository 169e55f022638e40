"""Builders for in-memory and on-disk test plugins."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from textwrap import dedent
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

from plughub.discovery import LoadedPlugin

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def make_plugin(name: str, **declarations: Any) -> LoadedPlugin:
    """Loaded plugin whose module exports ``declarations`` as attributes."""
    return LoadedPlugin(name=name, module=SimpleNamespace(**declarations))


def ordered_register(
    events: list[str],
    scheme: str,
    *,
    fail: bool = False,
) -> Callable[[Any], Any]:
    """Async register routine that records start/end events around a suspension."""

    async def register(channel: Any) -> None:
        del channel
        events.append(f"start:{scheme}")
        await asyncio.sleep(0)
        if fail:
            msg = f"{scheme} backend unavailable"
            raise RuntimeError(msg)
        events.append(f"end:{scheme}")

    return register


@dataclass(slots=True)
class PluginWriter:
    """Writes plugin packages under a plugin directory."""

    root: Path

    def package(
        self,
        name: str,
        source: str,
        *,
        package_json: dict[str, Any] | str | None = None,
    ) -> Path:
        plugin_dir = self.root / name
        plugin_dir.mkdir()
        (plugin_dir / "__init__.py").write_text(dedent(source), encoding="utf-8")
        if package_json is not None:
            content = package_json if isinstance(package_json, str) else json.dumps(package_json)
            (plugin_dir / "package.json").write_text(content, encoding="utf-8")
        return plugin_dir

    def module(self, name: str, source: str) -> Path:
        path = self.root / f"{name}.py"
        path.write_text(dedent(source), encoding="utf-8")
        return path


PROTOCOL_PLUGIN_SOURCE = """
def register(channel):
    channel("{scheme}", "ready")


protocols = {{
    "scheme": "{scheme}",
    "isStandardURL": {standard},
    "isInternal": False,
    "register": register,
}}
webAPIs = [{{"name": "{scheme}API", "manifest": {{"ping": "promise", "_with_cb_watch": "readable"}}}}]
"""


def protocol_plugin_source(scheme: str, *, standard: bool = True) -> str:
    return PROTOCOL_PLUGIN_SOURCE.format(scheme=scheme, standard=standard)
