"""
Update Coordinator

Probes every remotely linked plugin for a newer upstream revision.
Probes run concurrently and fail independently; a failed probe leaves its
record as it was and never aborts the batch.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Protocol

from sideloader.core.records import PluginRecord, ProbeFailure, ProbeResult, ProbeSuccess
from sideloader.obs import logger

if TYPE_CHECKING:
    from sideloader.core.state import StateStore


CHECKING_LABEL = "Checking for updates..."

ProgressCallback = Callable[[bool, Optional[str]], None]


class SourceProbe(Protocol):
    """Checks one plugin folder against its upstream. Must not retry."""

    async def probe(self, folder_name: str) -> ProbeResult:
        ...


class CoordinatorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    HARD_FAILED = "hard_failed"


@dataclass
class UpdateCheckResult:
    """Outcome of one batch."""
    records: list[PluginRecord]
    has_updates: bool
    failures: dict[str, str] = field(default_factory=dict)


def any_needs_update(records: list[PluginRecord]) -> bool:
    return any(r.needs_update for r in records)


class UpdateCoordinator:
    """
    Runs update-check batches.

    The input list is never edited in place; each batch returns a new list
    so callers can swap it in as a whole.
    """

    def __init__(
        self,
        state_store: StateStore,
        probe: SourceProbe,
        on_progress: Optional[ProgressCallback] = None,
        max_concurrency: int = 8,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            state_store: Metadata store used to re-resolve folder names
            probe: Source probe issued once per linked plugin
            on_progress: Called with (active, label) when a batch starts and ends
            max_concurrency: Upper bound on probes in flight
            timeout: Seconds before a single probe counts as failed
        """
        self.state_store = state_store
        self.probe = probe
        self.on_progress = on_progress
        self.max_concurrency = max(1, max_concurrency)
        self.timeout = timeout
        self.state = CoordinatorState.IDLE

    def _progress(self, active: bool, label: Optional[str] = None) -> None:
        if self.on_progress is not None:
            self.on_progress(active, label)

    @logger.instrument("Starting update check batch...")
    async def check_updates(self, records: list[PluginRecord]) -> UpdateCheckResult:
        """
        Probe all linked plugins and aggregate the results.

        Raises:
            Any error outside a single probe, e.g. an unreadable metadata
            store. The progress signal is cleared either way.
        """
        self.state = CoordinatorState.RUNNING
        self._progress(True, CHECKING_LABEL)

        try:
            folders = await self._resolve_folders(records)

            semaphore = asyncio.Semaphore(self.max_concurrency)
            outcomes = await asyncio.gather(*(
                self._probe_one(record, folders.get(record.name) or record.folder_name, semaphore)
                if record.probeable else _passthrough(record)
                for record in records
            ))

            updated = [record for record, _ in outcomes]
            failures = {record.name: failure.reason for record, failure in outcomes if failure is not None}
            result = UpdateCheckResult(
                records=updated,
                has_updates=any_needs_update(updated),
                failures=failures,
            )
        except Exception:
            self.state = CoordinatorState.HARD_FAILED
            raise
        finally:
            self._progress(False)

        self.state = CoordinatorState.COMPLETED
        if failures:
            logger.warning(f"Update check completed with {len(failures)} failed probe(s)")
        else:
            logger.info(f"Update check completed, updates available: {result.has_updates}")
        return result

    async def _resolve_folders(self, records: list[PluginRecord]) -> dict[str, str]:
        """Current folder names from the metadata store, keyed by plugin name."""
        if not any(r.probeable for r in records):
            return {}

        stored = await asyncio.to_thread(self.state_store.get)
        return {p.name: p.folder_name for p in stored or [] if p.folder_name}

    async def _probe_one(
        self,
        record: PluginRecord,
        folder_name: Optional[str],
        semaphore: asyncio.Semaphore,
    ) -> tuple[PluginRecord, Optional[ProbeFailure]]:
        if not folder_name:
            failure = ProbeFailure(reason="no folder name")
        else:
            async with semaphore:
                failure, success = await self._run_probe(folder_name)
            if success is not None:
                return record.with_probe(success.needs_update, success.revision), None

        logger.error(f"Failed to check updates for {record.name}: {failure.reason}")
        return record, failure

    async def _run_probe(self, folder_name: str) -> tuple[Optional[ProbeFailure], Optional[ProbeSuccess]]:
        try:
            result = await asyncio.wait_for(self.probe.probe(folder_name), timeout=self.timeout)
        except asyncio.TimeoutError:
            return ProbeFailure(reason=f"timed out after {self.timeout}s"), None
        except Exception as e:
            return ProbeFailure(reason=str(e) or e.__class__.__name__), None

        if isinstance(result, ProbeSuccess):
            return None, result
        return result, None


async def _passthrough(record: PluginRecord) -> tuple[PluginRecord, None]:
    return record, None
