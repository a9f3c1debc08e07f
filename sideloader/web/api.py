"""
Sideloader REST API

Endpoints for the web UI to list plugins, re-run the update check and
report updates or removals the host has applied.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from sideloader.core.plugin_list import PluginListController
from sideloader.core.records import PluginRecord
from sideloader.obs import logger


# --- Response Models ---

class PluginModel(BaseModel):
    """One plugin record."""
    name: str
    folder_name: Optional[str] = None
    source: str
    repo_link: Optional[str] = None
    commit_hash: Optional[str] = None
    description: Optional[str] = None
    partial: bool = False
    needs_update: Optional[bool] = None

    @classmethod
    def from_record(cls, record: PluginRecord) -> PluginModel:
        return cls(
            name=record.name,
            folder_name=record.folder_name,
            source=record.origin.value,
            repo_link=record.repo_link,
            commit_hash=record.commit_hash,
            description=record.description,
            partial=record.partial,
            needs_update=record.needs_update,
        )


class PluginListResponse(BaseModel):
    plugins: list[PluginModel] = Field(default_factory=list)
    has_updates: bool = False
    is_checking: bool = False
    error: Optional[str] = None
    failures: dict[str, str] = Field(default_factory=dict)


def _list_response(plugin_list: PluginListController) -> PluginListResponse:
    return PluginListResponse(
        plugins=[PluginModel.from_record(p) for p in plugin_list.plugins],
        has_updates=plugin_list.has_updates,
        is_checking=plugin_list.is_checking,
        error=plugin_list.error,
        failures=plugin_list.failures,
    )


def create_api_router(plugin_list: PluginListController) -> APIRouter:
    """
    Create the plugins API router.

    Args:
        plugin_list: Controller owning the published registry
    """
    router = APIRouter(prefix="/api/plugins", tags=["plugins"])

    @router.get("", response_model=PluginListResponse)
    async def get_plugins():
        """List all plugins."""
        return _list_response(plugin_list)

    @router.post("/reload", response_model=PluginListResponse)
    async def reload_plugins():
        """Rebuild the registry from disk and stored metadata."""
        await plugin_list.initialize()
        return _list_response(plugin_list)

    @router.post("/check", response_model=PluginListResponse)
    async def check_updates():
        """Check all linked plugins for updates."""
        if plugin_list.is_checking:
            raise HTTPException(status.HTTP_409_CONFLICT, "Update check already running")
        await plugin_list.check_for_updates()
        return _list_response(plugin_list)

    @router.get("/{name}", response_model=PluginModel)
    async def get_plugin(name: str):
        """Get one plugin."""
        plugin = plugin_list.get(name)
        if plugin is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, f"Plugin not found: {name}")
        return PluginModel.from_record(plugin)

    @router.put("/{name}/updated", response_model=PluginModel)
    async def mark_updated(name: str):
        """Record that the host updated a plugin."""
        if not plugin_list.mark_updated(name):
            raise HTTPException(status.HTTP_404_NOT_FOUND, f"Plugin not found: {name}")
        logger.info(f"Marked plugin as updated: {name}")
        return PluginModel.from_record(plugin_list.get(name))

    @router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
    async def remove_plugin(name: str):
        """Drop a plugin the host deleted."""
        if not plugin_list.remove(name):
            raise HTTPException(status.HTTP_404_NOT_FOUND, f"Plugin not found: {name}")
        logger.info(f"Removed plugin: {name}")

    return router
