"""
Plugin Records

The unified description of one plugin after the stored metadata, the
filesystem scan and the compiled registry have been merged.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Union


class PluginOrigin(str, Enum):
    """How a plugin got onto the system."""
    COMPILED = "compiled"      # Built into the host
    LINK = "link"              # Cloned from a remote repository link
    DIRECTORY = "directory"    # Dropped into the plugins directory by hand
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> PluginOrigin:
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class PartialDetails:
    """Known only from a filesystem scan."""


@dataclass(frozen=True)
class FullDetails:
    """Confirmed by the metadata store or the compiled registry."""
    description: Optional[str] = None


Details = Union[PartialDetails, FullDetails]


@dataclass
class PluginRecord:
    """
    One entry of the plugin registry.

    `name` is the unique key. Completeness is carried by `details`, so a
    record can never be partial and described at the same time.
    """

    name: str
    folder_name: Optional[str] = None
    origin: PluginOrigin = PluginOrigin.UNKNOWN
    repo_link: Optional[str] = None
    commit_hash: Optional[str] = None
    details: Details = field(default_factory=FullDetails)

    # None until a probe has completed for this record
    needs_update: Optional[bool] = None

    def __post_init__(self):
        if isinstance(self.origin, str):
            self.origin = PluginOrigin.parse(self.origin)
        if self.origin is not PluginOrigin.LINK:
            self.repo_link = None

    @property
    def partial(self) -> bool:
        return isinstance(self.details, PartialDetails)

    @property
    def description(self) -> Optional[str]:
        if isinstance(self.details, FullDetails):
            return self.details.description
        return None

    @property
    def probeable(self) -> bool:
        """Only remotely linked plugins have an upstream to compare against."""
        return self.origin is PluginOrigin.LINK

    def describe(self, description: str) -> None:
        """Upgrade to a fully described record in one step."""
        self.details = FullDetails(description=description)

    def with_probe(self, needs_update: bool, commit_hash: Optional[str]) -> PluginRecord:
        """Copy of this record carrying a successful probe's outcome."""
        return replace(self, needs_update=needs_update, commit_hash=commit_hash)


@dataclass(frozen=True)
class ScannedPlugin:
    """A directory found on disk that declares a plugin name."""
    plugin_name: str
    folder_name: str


@dataclass(frozen=True)
class CompiledPluginInfo:
    """A plugin built into the host."""
    name: str
    description: str = ""


@dataclass(frozen=True)
class ProbeSuccess:
    needs_update: bool
    revision: Optional[str] = None


@dataclass(frozen=True)
class ProbeFailure:
    reason: str


ProbeResult = Union[ProbeSuccess, ProbeFailure]
