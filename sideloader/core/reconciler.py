"""
Registry Reconciler

Merges stored metadata, a live directory scan and the compiled registry
into one list of plugin records, one per name.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from sideloader.core.records import (
    CompiledPluginInfo,
    PartialDetails,
    PluginOrigin,
    PluginRecord,
    ScannedPlugin,
)
from sideloader.core.state import StoredPlugin
from sideloader.obs import logger


def reconcile(
    stored: Iterable[StoredPlugin],
    scanned: Iterable[ScannedPlugin],
    compiled: Mapping[str, CompiledPluginInfo],
) -> list[PluginRecord]:
    """
    Build the plugin registry.

    Precedence is stored > scanned. Compiled entries only annotate records
    that already exist; a plugin that is compiled in but was never installed
    or scanned is not tracked here.

    Args:
        stored: Metadata for previously installed plugins
        scanned: Plugin directories found on disk
        compiled: Plugins built into the host, keyed by name

    Returns:
        Records in store order, followed by scan-only records in scan order
    """
    records: list[PluginRecord] = []
    by_name: dict[str, PluginRecord] = {}

    for meta in stored:
        if meta.name in by_name:
            logger.warning(f"Duplicate stored entry for plugin {meta.name}, keeping the first")
            continue
        record = PluginRecord(
            name=meta.name,
            folder_name=meta.folder_name,
            origin=PluginOrigin.parse(meta.source),
            repo_link=meta.repo_link,
            commit_hash=meta.commit_hash,
        )
        records.append(record)
        by_name[record.name] = record

    for entry in scanned:
        if entry.plugin_name in by_name:
            continue
        record = PluginRecord(
            name=entry.plugin_name,
            folder_name=entry.folder_name,
            origin=PluginOrigin.DIRECTORY,
            details=PartialDetails(),
        )
        records.append(record)
        by_name[record.name] = record

    for info in compiled.values():
        record = by_name.get(info.name)
        if record is not None:
            record.describe(info.description)

    partial = sum(1 for r in records if r.partial)
    logger.debug(f"Reconciled {len(records)} plugin(s), {partial} partial")
    return records
