"""
Sideloader error types.

Only enumeration failures and unexpected batch failures ever reach the
presentation boundary. Probe errors stay inside the update coordinator.
"""


class SideloaderError(Exception):
    """Base class for all sideloader errors."""


class EnumerationError(SideloaderError):
    """The plugins directory could not be listed."""


class MetadataStoreError(SideloaderError):
    """The metadata store exists but could not be read."""


class ProbeError(SideloaderError):
    """A single source probe failed."""

    def __init__(self, folder_name: str, reason: str):
        super().__init__(f"{folder_name}: {reason}")
        self.folder_name = folder_name
        self.reason = reason
