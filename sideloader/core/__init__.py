"""
Sideloader Core

Plugin records, the registry reconciler and the update coordinator.
"""

from sideloader.core.plugin_list import PluginListController
from sideloader.core.reconciler import reconcile
from sideloader.core.records import PluginOrigin, PluginRecord
from sideloader.core.session import UpdateSession
from sideloader.core.state import StateStore, StoredPlugin
from sideloader.core.updates import UpdateCheckResult, UpdateCoordinator

__all__ = [
    'PluginListController',
    'PluginOrigin',
    'PluginRecord',
    'StateStore',
    'StoredPlugin',
    'UpdateCheckResult',
    'UpdateCoordinator',
    'UpdateSession',
    'reconcile',
]
