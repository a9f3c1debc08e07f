"""
Sideloader State Management

Persists metadata about installed plugins to JSON.
State is stored in <config>/state.json so it survives reinstalls.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from sideloader.exceptions import MetadataStoreError
from sideloader.obs import logger
from sideloader.paths import paths


DEFAULT_STATE_FILE = paths.state


@dataclass
class StoredPlugin:
    """Last known metadata for a plugin the host installed."""

    name: str
    folder_name: str
    source: str = "directory"          # "link" or "directory"
    repo_link: Optional[str] = None
    commit_hash: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "folderName": self.folder_name,
            "source": self.source,
            "repoLink": self.repo_link,
            "commitHash": self.commit_hash,
        }

    @classmethod
    def from_dict(cls, data: dict) -> StoredPlugin:
        return cls(
            name=data["name"],
            folder_name=data.get("folderName") or data.get("folder_name") or data["name"],
            source=data.get("source", "directory"),
            repo_link=data.get("repoLink"),
            commit_hash=data.get("commitHash"),
        )


@dataclass
class SideloaderState:
    """
    Complete persisted state.
    Saved to <config>/state.json
    """

    plugins: list[StoredPlugin] = field(default_factory=list)

    # Version for future migrations
    version: int = 1

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "plugins": [p.to_dict() for p in self.plugins],
        }

    @classmethod
    def from_dict(cls, data: dict) -> SideloaderState:
        state = cls()
        state.version = data.get("version", 1)
        state.plugins = [StoredPlugin.from_dict(p) for p in data.get("plugins", [])]
        return state


class StateStore:
    """
    Manages loading and saving of plugin metadata.

    `get()` always reads the file so callers see the current snapshot,
    including folder renames made by the installer since the last read.
    """

    def __init__(self, state_file: Path = DEFAULT_STATE_FILE):
        self.state_file = state_file
        self.state: SideloaderState = SideloaderState()

    def _read(self) -> Optional[SideloaderState]:
        if not self.state_file.exists():
            return None

        try:
            data = json.loads(self.state_file.read_text())
            return SideloaderState.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise MetadataStoreError(f"Failed to read {self.state_file}: {e}") from e

    def get(self) -> Optional[list[StoredPlugin]]:
        """
        Current list of stored plugins.

        Returns:
            None when nothing has been stored yet

        Raises:
            MetadataStoreError: if the state file exists but is unreadable
        """
        state = self._read()
        if state is None:
            return None
        self.state = state
        return list(state.plugins)

    def put(self, plugins: list[StoredPlugin]) -> None:
        """Replace the stored plugin list and persist it."""
        self.state.plugins = list(plugins)
        self.save()

    @logger.instrument("Loading state from {self.state_file}...")
    def load(self) -> SideloaderState:
        """Load state from disk, or fall back to defaults."""
        try:
            state = self._read()
        except MetadataStoreError as e:
            logger.error(f"  {e}")
            state = None

        if state is None:
            logger.info("  No usable state file, using defaults")
            self.state = SideloaderState()
        else:
            self.state = state
            logger.info(f"  Loaded {len(self.state.plugins)} plugin(s)")

        return self.state

    @logger.instrument("Saving state to {self.state_file}...")
    def save(self):
        """Persist state to disk."""
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            self.state_file.write_text(json.dumps(self.state.to_dict(), indent=2))
            logger.info(f"  Saved {len(self.state.plugins)} plugin(s)")
        except OSError as e:
            logger.error(f"  Failed to save state: {e}")
            raise

    @property
    def plugins(self) -> list[StoredPlugin]:
        return self.state.plugins
