"""
Sideloader Plugin Sources

Adapters for the three inputs of the registry: the plugins directory, the
compiled registry and the source probes used for update checks.
"""

from sideloader.plugins.base import BasePlugin
from sideloader.plugins.builtin import CompiledRegistry, get_compiled_registry
from sideloader.plugins.loader import discover_plugins

__all__ = ['BasePlugin', 'CompiledRegistry', 'discover_plugins', 'get_compiled_registry']
