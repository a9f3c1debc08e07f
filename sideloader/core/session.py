"""
Update Session

Session-scoped state shared between the plugin list and the update
coordinator. Created when the host starts, discarded when it stops;
nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sideloader.core.records import PluginRecord


@dataclass
class UpdateSession:
    """
    Results of update checks for the current session.

    `generation` identifies the owner that is allowed to apply results.
    Every teardown bumps it, so work started under an older generation
    can tell it has gone stale.
    """

    checked_for_updates: bool = False
    current_hashes: dict[str, str] = field(default_factory=dict)
    needs_update: dict[str, bool] = field(default_factory=dict)
    generation: int = 0

    def begin(self) -> int:
        """Start a new generation and return its token."""
        self.generation += 1
        return self.generation

    def invalidate(self) -> None:
        """Mark every outstanding token as stale."""
        self.generation += 1

    def is_current(self, token: int) -> bool:
        return token == self.generation

    def record(self, records: list[PluginRecord]) -> None:
        """Remember the outcome of a completed batch."""
        self.checked_for_updates = True
        for plugin in records:
            if plugin.commit_hash:
                self.current_hashes[plugin.name] = plugin.commit_hash
            if plugin.needs_update is not None:
                self.needs_update[plugin.name] = plugin.needs_update

    def annotate(self, record: PluginRecord) -> PluginRecord:
        """Carry this session's last probe outcome onto a freshly built record."""
        if not record.probeable or record.name not in self.needs_update:
            return record
        return record.with_probe(
            self.needs_update[record.name],
            self.current_hashes.get(record.name, record.commit_hash),
        )
