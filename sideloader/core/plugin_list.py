"""
Plugin List

Owns the published plugin registry for one consumer (a settings page, the
web API, the CLI). Loads and reconciles the registry, runs the automatic
update check once per session, and drops results that arrive after the
consumer has gone away.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Callable, Mapping, Optional

from sideloader.core.reconciler import reconcile
from sideloader.core.records import CompiledPluginInfo, PluginRecord, ScannedPlugin
from sideloader.core.session import UpdateSession
from sideloader.core.updates import UpdateCheckResult, UpdateCoordinator, any_needs_update
from sideloader.exceptions import MetadataStoreError
from sideloader.obs import logger

if TYPE_CHECKING:
    from sideloader.core.state import StateStore


LOADING_LABEL = "Loading plugins..."
LOAD_ERROR = "Failed to load plugins"
CHECK_ERROR = "Failed to check for updates"

UpdateCheckCallback = Callable[[bool, Optional[bool]], None]
LoadingCallback = Callable[[bool, Optional[str]], None]
PluginSource = Callable[[], list[ScannedPlugin]]


class PluginListController:
    """
    Publishes the reconciled plugin list.

    `plugins` is only ever replaced as a whole, never edited in place.
    """

    def __init__(
        self,
        state_store: StateStore,
        list_plugins: PluginSource,
        compiled: Mapping[str, CompiledPluginInfo],
        coordinator: UpdateCoordinator,
        session: UpdateSession,
        on_update_check: Optional[UpdateCheckCallback] = None,
        on_loading_change: Optional[LoadingCallback] = None,
    ):
        """
        Args:
            state_store: Metadata store for previously installed plugins
            list_plugins: Enumeration source for the plugins directory
            compiled: Plugins built into the host, keyed by name
            coordinator: Runs update-check batches
            session: Session state shared with the host
            on_update_check: Called with (has_updates, is_checking)
            on_loading_change: Called with (is_loading, label)
        """
        self.state_store = state_store
        self.list_plugins = list_plugins
        self.compiled = compiled
        self.coordinator = coordinator
        self.session = session
        self.on_update_check = on_update_check
        self.on_loading_change = on_loading_change

        self.plugins: list[PluginRecord] = []
        self.error: Optional[str] = None
        self.failures: dict[str, str] = {}
        self.is_checking = False
        self._token = session.begin()
        self._loads = 0

        # Progress from the coordinator goes to the same loading callback
        coordinator.on_progress = self._batch_progress

    @property
    def alive(self) -> bool:
        return self.session.is_current(self._token)

    @property
    def has_updates(self) -> bool:
        return any_needs_update(self.plugins)

    def close(self) -> None:
        """Tear down. Results still in flight will be discarded."""
        if self.alive:
            self.session.invalidate()

    def _loading(self, active: bool, label: Optional[str] = None) -> None:
        if self.on_loading_change is not None:
            self.on_loading_change(active, label)

    def _batch_progress(self, active: bool, label: Optional[str] = None) -> None:
        # A running load clears the signal itself once it is done
        if not active and self._loads:
            return
        self._loading(active, label)

    def _notify(self, has_updates: bool, is_checking: Optional[bool] = None) -> None:
        if self.on_update_check is not None:
            self.on_update_check(has_updates, is_checking)

    def _read_stored(self):
        try:
            return self.state_store.get() or []
        except MetadataStoreError as e:
            logger.warning(f"Ignoring unreadable plugin metadata: {e}")
            return []

    async def initialize(self) -> Optional[list[PluginRecord]]:
        """
        Reconcile and publish the registry.

        The first successful load of a session also runs the update check.
        On an enumeration failure the previous list is kept and `error` is set.

        Returns:
            The published list, or None if nothing was published
        """
        token = self._token
        self._loads += 1
        try:
            self._loading(True, LOADING_LABEL)
            self.error = None

            scanned = await asyncio.to_thread(self.list_plugins)
            if not self.session.is_current(token):
                return None

            stored = await asyncio.to_thread(self._read_stored)
            records = [self.session.annotate(r) for r in reconcile(stored, scanned, self.compiled)]
            if not self.session.is_current(token):
                return None

            self.plugins = records
            logger.info(f"Loaded {len(records)} plugin(s)")

            if not self.session.checked_for_updates:
                # Flag first so a concurrent reload cannot start a second automatic run
                self.session.checked_for_updates = True
                await self.check_for_updates(records)
                if not self.session.is_current(token):
                    # Results were dropped, let the next consumer run it again
                    self.session.checked_for_updates = False

            return self.plugins
        except Exception as e:
            if self.session.is_current(token):
                self.error = LOAD_ERROR
                logger.error(f"Plugin initialization failed: {e}")
            return None
        finally:
            self._loads -= 1
            if not self._loads:
                self._loading(False)

    async def check_for_updates(self, records: Optional[list[PluginRecord]] = None) -> bool:
        """
        Run one update-check batch and publish its results.

        Returns:
            True if the batch completed and its results were applied
        """
        token = self._token
        self.error = None
        self.is_checking = True
        self._notify(self.has_updates, True)

        try:
            result = await self.coordinator.check_updates(list(self.plugins if records is None else records))
        except Exception as e:
            if self.session.is_current(token):
                self.error = CHECK_ERROR
                self._notify(self.has_updates, False)
            logger.error(f"Update check failed: {e}")
            return False
        finally:
            self.is_checking = False

        if not self.session.is_current(token):
            logger.debug("Discarding update check results for a closed plugin list")
            return False

        self.plugins, applied = self._merge_results(result)
        self.failures = {name: reason for name, reason in result.failures.items() if self.get(name) is not None}
        self.session.record(applied)
        self._notify(self.has_updates, False)
        return True

    def _merge_results(self, result: UpdateCheckResult) -> tuple[list[PluginRecord], list[PluginRecord]]:
        """
        Fold a batch into the records published now.

        The list may have been reloaded or had plugins removed while the batch
        ran, so outcomes are matched by name and only for plugins still listed.
        """
        probed = {
            r.name: r for r in result.records
            if r.probeable and r.name not in result.failures
        }
        merged, applied = [], []
        for plugin in self.plugins:
            outcome = probed.get(plugin.name)
            if outcome is not None and plugin.probeable:
                plugin = plugin.with_probe(outcome.needs_update, outcome.commit_hash)
                applied.append(plugin)
            merged.append(plugin)
        return merged, applied

    def get(self, name: str) -> Optional[PluginRecord]:
        for plugin in self.plugins:
            if plugin.name == name:
                return plugin
        return None

    def mark_updated(self, name: str) -> bool:
        """Clear the drift flag after the host applied an update."""
        if self.get(name) is None:
            return False

        self.plugins = [
            p.with_probe(False, p.commit_hash) if p.name == name else p
            for p in self.plugins
        ]
        self.session.needs_update[name] = False
        self._notify(self.has_updates, False)
        return True

    def remove(self, name: str) -> bool:
        """Drop a plugin after the host deleted it."""
        if self.get(name) is None:
            return False

        self.plugins = [p for p in self.plugins if p.name != name]
        self.session.needs_update.pop(name, None)
        self.session.current_hashes.pop(name, None)
        self._notify(self.has_updates, False)
        return True
