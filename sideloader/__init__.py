"""
Sideloader

Tracks side-loaded plugins for a host application and reports when a newer
upstream revision is available.
"""

from sideloader.version import __version__

__all__ = ['__version__']
