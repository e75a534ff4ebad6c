"""Dynamic plugin discovery and loading."""

from officepdf.plugins.loader import PluginLoader, PluginNotFoundError

__all__ = ["PluginLoader", "PluginNotFoundError"]
