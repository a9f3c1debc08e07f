"""
Compiled Plugin Base Class

Plugins built into the host subclass BasePlugin. Only the class attributes
matter to the registry; instances are never needed to describe a plugin.
"""

from __future__ import annotations

from abc import ABC

from sideloader.core.records import CompiledPluginInfo


class BasePlugin(ABC):
    """
    Base class for plugins compiled into the host.

    The plugin class should define class attributes:
        name: str - Unique name, matched against installed plugin names
        description: str - Brief description
        version: str - Semantic version (e.g., "1.0.0")
        author: str - Plugin author
    """

    # Override these in your plugin
    name: str = ""
    description: str = ""
    version: str = "1.0.0"
    author: str = ""

    @classmethod
    def info(cls) -> CompiledPluginInfo:
        return CompiledPluginInfo(name=cls.name or cls.__name__, description=cls.description)
