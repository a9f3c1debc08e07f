"""
Sideloader Plugin Loader

Discovers plugin directories on disk. Plugin code is never imported here;
names are read from the manifest or the plugin source.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Optional

from sideloader.core.records import ScannedPlugin
from sideloader.exceptions import EnumerationError
from sideloader.obs import logger
from sideloader.paths import paths


DEFAULT_PLUGINS_DIR = paths.plugins

ENTRY_POINT = "plugin.py"
MANIFEST = "manifest.json"

# name = "Foo" declared as a class attribute in plugin.py
NAME_PATTERN = re.compile(r'^\s+name\s*(?::\s*str\s*)?=\s*([\'"])(?P<name>[^\'"]+)\1', re.MULTILINE)


def load_manifest(plugin_dir: Path) -> dict:
    """
    Load a plugin's manifest.

    Args:
        plugin_dir: Path to the plugin directory

    Returns:
        Manifest dictionary, empty if missing or unreadable
    """
    manifest_path = plugin_dir / MANIFEST

    if not manifest_path.exists():
        return {}

    try:
        data = json.loads(manifest_path.read_text())
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read manifest from {manifest_path}: {e}")
        return {}

    return data if isinstance(data, dict) else {}


def read_plugin_name(plugin_dir: Path) -> Optional[str]:
    """
    Work out the name a plugin directory declares.

    Looks at manifest.json first, then a `name = "..."` class attribute in
    plugin.py. Returns None if the directory is not a plugin.
    """
    manifest_path = plugin_dir / MANIFEST
    plugin_file = plugin_dir / ENTRY_POINT

    if not manifest_path.exists() and not plugin_file.exists():
        return None

    name = load_manifest(plugin_dir).get("name")
    if isinstance(name, str) and name.strip():
        return name.strip()

    if plugin_file.exists():
        try:
            match = NAME_PATTERN.search(plugin_file.read_text(errors="replace"))
        except OSError as e:
            logger.warning(f"Failed to read {plugin_file}: {e}")
            match = None
        if match:
            return match.group("name")

    return plugin_dir.name


def discover_plugins(plugins_dir: Path = DEFAULT_PLUGINS_DIR) -> list[ScannedPlugin]:
    """
    List the plugins found in the plugins directory.

    Args:
        plugins_dir: Root directory to scan for plugins

    Returns:
        One entry per plugin directory, sorted by folder name

    Raises:
        EnumerationError: if the directory exists but cannot be listed
    """
    if not plugins_dir.exists():
        logger.info(f"Plugins directory does not exist: {plugins_dir}")
        return []

    try:
        entries = sorted(plugins_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise EnumerationError(f"Cannot list {plugins_dir}: {e}") from e

    found = []
    for item in entries:
        if not item.is_dir() or item.name.startswith(('.', '_')):
            continue

        name = read_plugin_name(item)
        if name is None:
            logger.debug(f"Skipping {item.name}: no {ENTRY_POINT} or {MANIFEST} found")
            continue

        found.append(ScannedPlugin(plugin_name=name, folder_name=item.name))
        logger.debug(f"Found plugin directory: {item.name} ({name})")

    return found


class PluginDirectory:
    """Enumeration source bound to one plugins directory."""

    def __init__(self, plugins_dir: Path = DEFAULT_PLUGINS_DIR):
        self.plugins_dir = plugins_dir

    def __call__(self) -> list[ScannedPlugin]:
        return discover_plugins(self.plugins_dir)
