from __future__ import annotations

from fastapi import Depends, Request

from dreamweaver.config import Settings
from dreamweaver.runtime import Runtime
from dreamweaver.services.beat_generation import BeatGenerationCoordinator
from dreamweaver.services.generation import GenerationClient
from dreamweaver.services.story_slots import StorySlotManager
from dreamweaver.services.workspace import Workspace
from dreamweaver.ws.manager import ConnectionManager


async def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


async def get_app_settings(runtime: Runtime = Depends(get_runtime)) -> Settings:
    return runtime.settings


async def get_workspace(runtime: Runtime = Depends(get_runtime)) -> Workspace:
    return runtime.workspace


async def get_stories(runtime: Runtime = Depends(get_runtime)) -> StorySlotManager:
    return runtime.stories


async def get_client(runtime: Runtime = Depends(get_runtime)) -> GenerationClient:
    return runtime.client


async def get_coordinator(runtime: Runtime = Depends(get_runtime)) -> BeatGenerationCoordinator:
    return runtime.coordinator


async def get_ws_manager(runtime: Runtime = Depends(get_runtime)) -> ConnectionManager:
    return runtime.ws


SettingsDep = Depends(get_app_settings)
WorkspaceDep = Depends(get_workspace)
StoriesDep = Depends(get_stories)
ClientDep = Depends(get_client)
CoordinatorDep = Depends(get_coordinator)
WsManagerDep = Depends(get_ws_manager)
