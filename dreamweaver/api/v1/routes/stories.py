from __future__ import annotations

from fastapi import APIRouter, Response, status

from dreamweaver.api.deps import StoriesDep, WsManagerDep
from dreamweaver.schemas.api import CurrentStoryRead, QuickSaveResponse, StoryLoadResponse, StoryRename, StorySave
from dreamweaver.schemas.workspace import StorySummary
from dreamweaver.services.story_slots import StorySlotManager
from dreamweaver.ws.manager import ConnectionManager

router = APIRouter()


@router.get("", response_model=list[StorySummary])
async def list_stories(stories: StorySlotManager = StoriesDep):
    return stories.list()


@router.get("/current", response_model=CurrentStoryRead)
async def get_current_story(stories: StorySlotManager = StoriesDep):
    current = stories.current()
    return CurrentStoryRead(id=current.id if current else None, name=current.name if current else None)


@router.post("", response_model=StorySummary, status_code=status.HTTP_201_CREATED)
async def save_story(
    payload: StorySave,
    stories: StorySlotManager = StoriesDep,
    ws: ConnectionManager = WsManagerDep,
):
    slot = await stories.save(payload.name, payload.existing_id)
    summary = StorySummary.from_slot(slot)
    await ws.send_event({"type": "story_saved", "data": {"story": summary.to_storage()}})
    return summary


@router.post("/quick-save", response_model=QuickSaveResponse)
async def quick_save_story(stories: StorySlotManager = StoriesDep, ws: ConnectionManager = WsManagerDep):
    slot = await stories.quick_save()
    if slot is None:
        return QuickSaveResponse(saved=False)
    await ws.send_event({"type": "story_saved", "data": {"story": StorySummary.from_slot(slot).to_storage()}})
    return QuickSaveResponse(saved=True, story_id=slot.id)


@router.post("/new", status_code=status.HTTP_204_NO_CONTENT)
async def new_story(stories: StorySlotManager = StoriesDep, ws: ConnectionManager = WsManagerDep):
    await stories.start_new()
    await ws.send_event({"type": "workspace_cleared", "data": {}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{story_id}/load", response_model=StoryLoadResponse)
async def load_story(
    story_id: str,
    stories: StorySlotManager = StoriesDep,
    ws: ConnectionManager = WsManagerDep,
):
    loaded = await stories.load(story_id)
    if loaded:
        await ws.send_event({"type": "story_loaded", "data": {"id": story_id}})
    return StoryLoadResponse(loaded=loaded)


@router.patch("/{story_id}", response_model=StorySummary | None)
async def rename_story(
    story_id: str,
    payload: StoryRename,
    stories: StorySlotManager = StoriesDep,
    ws: ConnectionManager = WsManagerDep,
):
    if not await stories.rename(story_id, payload.name):
        return None
    summary = StorySummary.from_slot(stories.get(story_id))
    await ws.send_event({"type": "story_renamed", "data": {"story": summary.to_storage()}})
    return summary


@router.delete("/{story_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_story(
    story_id: str,
    stories: StorySlotManager = StoriesDep,
    ws: ConnectionManager = WsManagerDep,
):
    if await stories.delete(story_id):
        await ws.send_event({"type": "story_deleted", "data": {"id": story_id}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
