"""Test helpers package."""

from tests.helpers.plugins import PluginWriter, make_plugin, ordered_register

__all__ = ["PluginWriter", "make_plugin", "ordered_register"]
