"""Dynamic plugin discovery and loading via entry points."""

from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from officepdf.converter.base import Renderer

if TYPE_CHECKING:
    from officepdf.config.models import OfficePdfConfig

logger = logging.getLogger(__name__)


class PluginNotFoundError(Exception):
    """Raised when a requested plugin cannot be found."""

    def __init__(self, plugin_type: str, name: str | None = None):
        self.plugin_type = plugin_type
        self.name = name
        msg = f"No {plugin_type} plugin found"
        if name:
            msg += f" with name '{name}'"
        super().__init__(msg)


class PluginLoader:
    """Discovers native renderers and extra storage drivers via entry points."""

    # Entry point group names
    GROUPS = {
        "renderer": "officepdf.plugins.renderer",
        "disk": "officepdf.plugins.disk",
    }

    def __init__(self, config: OfficePdfConfig):
        self._config = config

    def discover(self) -> dict[str, list[str]]:
        """Scan entry_points for registered plugins. Returns {type: [name, ...]}."""
        result: dict[str, list[str]] = {}
        for plugin_type, group in self.GROUPS.items():
            eps = importlib.metadata.entry_points(group=group)
            result[plugin_type] = [ep.name for ep in eps]
        return result

    def _load_from_entry_point(self, plugin_type: str, name: str) -> Any | None:
        """Try to load a specific named entry point."""
        group = self.GROUPS[plugin_type]
        eps = importlib.metadata.entry_points(group=group)
        for ep in eps:
            if ep.name == name:
                return ep.load()
        return None

    def load_renderers(self) -> list[Renderer]:
        """Instantiate the native renderers named in config, in config order.

        An entry point may expose a Renderer class (instantiated with no
        arguments) or a ready-made instance.
        """
        renderers: list[Renderer] = []
        for name in self._config.plugins.renderers:
            loaded = self._load_from_entry_point("renderer", name)
            if loaded is None:
                raise PluginNotFoundError("renderer", name)
            renderer = loaded() if isinstance(loaded, type) else loaded
            if not isinstance(renderer, Renderer):
                raise TypeError(f"Renderer plugin '{name}' does not implement the Renderer protocol")
            logger.debug("loaded native renderer %s", name)
            renderers.append(renderer)
        return renderers

    def load_disk_factory(self, driver: str) -> Callable[..., Any]:
        """Return the factory registered for a storage *driver*.

        Factories are called as ``factory(name, disk_config)``.
        """
        factory = self._load_from_entry_point("disk", driver)
        if factory is None:
            raise PluginNotFoundError("disk", driver)
        return factory
