"""
Sideloader Built-in Plugins

The compiled registry: plugins shipped inside the host. They are always
available and never updatable, so the registry only uses them to describe
installed plugins that share their name.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping, Type

from sideloader.core.records import CompiledPluginInfo
from sideloader.plugins.base import BasePlugin
from sideloader.plugins.builtin.plugin_manager import PluginManagerPlugin


BUILTIN_PLUGINS: list[Type[BasePlugin]] = [PluginManagerPlugin]


class CompiledRegistry(Mapping[str, CompiledPluginInfo]):
    """Read-only mapping of plugin name to compiled plugin info."""

    def __init__(self, plugins: Iterable[Type[BasePlugin]] = ()):
        self._plugins: dict[str, CompiledPluginInfo] = {}
        for plugin_class in plugins:
            info = plugin_class.info()
            self._plugins[info.name] = info

    def __getitem__(self, name: str) -> CompiledPluginInfo:
        return self._plugins[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._plugins)

    def __len__(self) -> int:
        return len(self._plugins)


def get_compiled_registry() -> CompiledRegistry:
    return CompiledRegistry(BUILTIN_PLUGINS)


__all__ = ['BUILTIN_PLUGINS', 'CompiledRegistry', 'get_compiled_registry']
