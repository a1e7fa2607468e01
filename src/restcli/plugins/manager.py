"""Plugin manager -- entry-point discovery and registration.

:class:`PluginManager` finds plugins declared in the ``restcli.plugins``
entry-point group, applies the enable/disable lists from
:class:`~restcli.models.PluginsConfig` and lets each plugin register its
components on a :class:`~restcli.client.context.PipelineBuilder`.

Third-party packages register plugins in their ``pyproject.toml``::

    [project.entry-points."restcli.plugins"]
    msgpack = "restcli_msgpack:MsgPackPlugin"
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import TYPE_CHECKING

from restcli.exceptions import PluginError, RegistryFrozenError
from restcli.models import GlobalConfig
from restcli.plugins.base import Plugin

if TYPE_CHECKING:
    from restcli.client.context import PipelineBuilder

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "restcli.plugins"
"""Entry-point group scanned for plugins."""


class PluginManager:
    """Discovers plugins and registers them on a pipeline builder.

    When ``plugins.enabled`` is non-empty only those plugins are loaded;
    otherwise every discovered plugin not listed in ``plugins.disabled`` is.

    Example::

        builder = default_builder()
        manager = PluginManager()
        manager.discover(builder, global_config)
        context = builder.build()
    """

    def __init__(self) -> None:
        self._plugins: dict[str, Plugin] = {}

    def discover(self, builder: PipelineBuilder, config: GlobalConfig) -> list[str]:
        """Load every qualifying entry-point plugin into *builder*.

        Returns:
            Names of the plugins that loaded. A plugin that fails to import
            or register is logged as a warning and skipped.
        """
        loaded: list[str] = []
        enabled = set(config.plugins.enabled)
        disabled = set(config.plugins.disabled)

        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            if enabled and ep.name not in enabled:
                logger.debug("Plugin '%s' not in enabled list, skipping", ep.name)
                continue
            if ep.name in disabled:
                logger.debug("Plugin '%s' is disabled, skipping", ep.name)
                continue
            try:
                plugin = ep.load()()
                self.load_plugin(ep.name, plugin, builder)
            except RegistryFrozenError:
                raise
            except Exception as exc:
                logger.warning("Failed to load plugin '%s': %s", ep.name, exc)
                continue
            loaded.append(ep.name)
        return loaded

    def load_plugin(self, name: str, plugin: Plugin, builder: PipelineBuilder) -> None:
        """Register a single plugin instance under *name*.

        Raises:
            PluginError: If *name* is already loaded or registration fails.
            RegistryFrozenError: If *builder* was already built.
        """
        if name in self._plugins:
            raise PluginError(f"Plugin '{name}' is already loaded")
        try:
            plugin.register(builder)
        except (PluginError, RegistryFrozenError):
            raise
        except Exception as exc:
            raise PluginError(f"Plugin '{name}' failed to register: {exc}") from exc
        self._plugins[name] = plugin
        logger.info("Loaded plugin '%s' v%s", name, plugin.version)

    def get_plugin(self, name: str) -> Plugin:
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginError(f"Plugin '{name}' is not loaded") from None

    def list_plugins(self) -> list[dict[str, str]]:
        """Name, version and description of each loaded plugin."""
        return [
            {"name": name, "version": plugin.version, "description": plugin.description}
            for name, plugin in self._plugins.items()
        ]
