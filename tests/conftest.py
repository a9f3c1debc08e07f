import asyncio
from pathlib import Path

import pytest

from sideloader.core.plugin_list import PluginListController
from sideloader.core.records import ProbeSuccess
from sideloader.core.session import UpdateSession
from sideloader.core.state import StateStore, StoredPlugin
from sideloader.core.updates import UpdateCoordinator


class FakeProbe:
    """Source probe answering from a dict of folder name -> result or exception."""

    def __init__(self, results=None):
        self.results = dict(results or {})
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.delay = 0.0
        self.started = asyncio.Event()
        self.release = None

    async def probe(self, folder_name):
        self.calls.append(folder_name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.started.set()
        try:
            if self.release is not None:
                await self.release.wait()
            if self.delay:
                await asyncio.sleep(self.delay)
            result = self.results.get(folder_name, ProbeSuccess(needs_update=False))
            if isinstance(result, BaseException):
                raise result
            return result
        finally:
            self.in_flight -= 1


class Recorder:
    """Collects callback invocations."""

    def __init__(self):
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args)


def link(name, folder, commit_hash=None, repo_link=None):
    return StoredPlugin(
        name=name,
        folder_name=folder,
        source="link",
        repo_link=repo_link or f"https://github.com/example/{folder}",
        commit_hash=commit_hash,
    )


@pytest.fixture
def state_file(tmp_path) -> Path:
    return tmp_path / "state.json"


@pytest.fixture
def state_store(state_file) -> StateStore:
    return StateStore(state_file)


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def session() -> UpdateSession:
    return UpdateSession()


@pytest.fixture
def scanned() -> list:
    return []


@pytest.fixture
def compiled() -> dict:
    return {}


@pytest.fixture
def make_plugin_list(state_store, probe, session, scanned, compiled):
    """Factory for a controller over the shared fixtures."""

    def factory(list_plugins=None, **kwargs):
        coordinator = UpdateCoordinator(state_store=state_store, probe=probe)
        return PluginListController(
            state_store=state_store,
            list_plugins=list_plugins or (lambda: list(scanned)),
            compiled=compiled,
            coordinator=coordinator,
            session=session,
            **kwargs,
        )

    return factory

