"""
Main entry point for Sideloader.

Lists plugins, runs an update check, or serves the plugins API.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from contextlib import asynccontextmanager
from typing import Optional

# Setup logging first
from sideloader.obs import logger

from sideloader.core.plugin_list import PluginListController
from sideloader.core.session import UpdateSession
from sideloader.core.state import StateStore
from sideloader.core.updates import UpdateCoordinator
from sideloader.plugins.builtin import get_compiled_registry
from sideloader.plugins.loader import PluginDirectory
from sideloader.plugins.probe import create_probe
from sideloader.settings import Settings


def build_plugin_list(settings: Settings, session: Optional[UpdateSession] = None, **callbacks) -> PluginListController:
    """Wire the registry, coordinator and probe together from settings."""
    state_store = StateStore(settings.state_file)
    probe = create_probe(settings.probe_backend, settings.plugins_dir, token=settings.github_token)
    coordinator = UpdateCoordinator(
        state_store=state_store,
        probe=probe,
        max_concurrency=settings.max_concurrent_probes,
        timeout=settings.probe_timeout,
    )
    return PluginListController(
        state_store=state_store,
        list_plugins=PluginDirectory(settings.plugins_dir),
        compiled=get_compiled_registry(),
        coordinator=coordinator,
        session=session or UpdateSession(),
        **callbacks,
    )


def create_app(plugin_list: PluginListController):
    """Create the FastAPI app; the registry is loaded on startup."""
    from fastapi import FastAPI
    from sideloader.web.api import create_api_router
    from sideloader.version import __version__

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await plugin_list.initialize()
        yield
        plugin_list.close()

    app = FastAPI(title="Sideloader", version=__version__, lifespan=lifespan)
    app.include_router(create_api_router(plugin_list))
    return app


def print_plugins(plugin_list: PluginListController) -> None:
    if plugin_list.error:
        print(plugin_list.error, file=sys.stderr)
        return

    for plugin in plugin_list.plugins:
        if plugin.needs_update:
            status = "update available"
        elif plugin.name in plugin_list.failures:
            status = "check failed"
        elif plugin.partial:
            status = "untracked"
        else:
            status = "ok"
        revision = (plugin.commit_hash or "")[:7]
        print(f"{plugin.name:<32} {plugin.origin.value:<10} {revision:<8} {status}")


async def run_check(settings: Settings, check: bool) -> int:
    session = UpdateSession()
    if not check:
        # Listing alone never probes
        session.checked_for_updates = True

    plugin_list = build_plugin_list(settings, session=session)
    try:
        await plugin_list.initialize()
    finally:
        plugin_list.close()

    print_plugins(plugin_list)
    if plugin_list.error:
        return 1
    return 0


def run_server(settings: Settings):
    """Run the Sideloader web server."""
    import uvicorn

    app = create_app(build_plugin_list(settings))
    logger.info(f'Starting Sideloader server at http://{settings.host}:{settings.port}')
    uvicorn.run(app, host=settings.host, port=settings.port, log_level='info')


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Sideloader - side-loaded plugin tracker')
    parser.add_argument('command', choices=['list', 'check', 'serve'], nargs='?', default='list')
    parser.add_argument('--plugins-dir', help='Plugins directory')
    parser.add_argument('--state-file', help='Plugin metadata file')
    parser.add_argument('--host', help='Server host')
    parser.add_argument('--port', type=int, help='Server port')

    args = parser.parse_args()
    overrides = {
        key: value
        for key, value in {
            'plugins_dir': args.plugins_dir,
            'state_file': args.state_file,
            'host': args.host,
            'port': args.port,
        }.items()
        if value is not None
    }
    settings = Settings(**overrides)

    if args.command == 'serve':
        run_server(settings)
        return 0

    return asyncio.run(run_check(settings, check=args.command == 'check'))


if __name__ == '__main__':
    sys.exit(main())
