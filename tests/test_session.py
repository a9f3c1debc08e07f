"""Tests for session-scoped update state."""

from sideloader.core.records import PluginOrigin, PluginRecord
from sideloader.core.session import UpdateSession


def test_generations():
    session = UpdateSession()
    first = session.begin()
    assert session.is_current(first)

    second = session.begin()
    assert not session.is_current(first)
    assert session.is_current(second)

    session.invalidate()
    assert not session.is_current(second)


def test_record_keeps_known_values_only():
    session = UpdateSession()
    session.record([
        PluginRecord(name="Foo", origin=PluginOrigin.LINK, commit_hash="abc", needs_update=True),
        PluginRecord(name="Bar", origin=PluginOrigin.LINK),
    ])

    assert session.checked_for_updates is True
    assert session.current_hashes == {"Foo": "abc"}
    assert session.needs_update == {"Foo": True}


def test_annotate_applies_cached_result():
    session = UpdateSession(current_hashes={"Foo": "def"}, needs_update={"Foo": True})
    record = PluginRecord(name="Foo", origin=PluginOrigin.LINK, commit_hash="abc")

    annotated = session.annotate(record)

    assert annotated.needs_update is True
    assert annotated.commit_hash == "def"
    assert record.needs_update is None


def test_annotate_ignores_unprobed_and_local_records():
    session = UpdateSession(needs_update={"Local": True})
    local = PluginRecord(name="Local", origin=PluginOrigin.DIRECTORY)
    other = PluginRecord(name="Other", origin=PluginOrigin.LINK)

    assert session.annotate(local) is local
    assert session.annotate(other) is other
