from __future__ import annotations

from fastapi import APIRouter, Response, status

from dreamweaver.api.deps import StoriesDep, WorkspaceDep, WsManagerDep
from dreamweaver.schemas.api import ContextRead, ContextUpdate, SelectionRead, SelectionUpdate
from dreamweaver.services.story_slots import StorySlotManager
from dreamweaver.services.workspace import Workspace
from dreamweaver.ws.manager import ConnectionManager

router = APIRouter()


def _selection(workspace: Workspace) -> SelectionRead:
    return SelectionRead(
        character_ids=[a.id for a in workspace.selected_characters()],
        location_ids=[a.id for a in workspace.selected_locations()],
    )


@router.get("/selection", response_model=SelectionRead)
async def get_selection(workspace: Workspace = WorkspaceDep):
    return _selection(workspace)


@router.put("/selection", response_model=SelectionRead)
async def update_selection(
    payload: SelectionUpdate,
    workspace: Workspace = WorkspaceDep,
    ws: ConnectionManager = WsManagerDep,
):
    """整体替换选中集合；不存在的 ID 会被忽略"""
    workspace.set_selection(character_ids=payload.character_ids, location_ids=payload.location_ids)
    selection = _selection(workspace)
    await ws.send_event({"type": "selection_updated", "data": selection.to_storage()})
    return selection


@router.get("/context", response_model=ContextRead)
async def get_context(workspace: Workspace = WorkspaceDep):
    return ContextRead(story_context=workspace.context.get())


@router.put("/context", response_model=ContextRead)
async def update_context(
    payload: ContextUpdate,
    workspace: Workspace = WorkspaceDep,
    ws: ConnectionManager = WsManagerDep,
):
    # 内存立即生效，落盘由合并写入器负责
    workspace.context.set(payload.story_context)
    await ws.send_event({"type": "context_updated", "data": {"storyContext": payload.story_context}})
    return ContextRead(story_context=workspace.context.get())


@router.delete("/workspace", status_code=status.HTTP_204_NO_CONTENT)
async def clear_workspace(
    stories: StorySlotManager = StoriesDep,
    ws: ConnectionManager = WsManagerDep,
):
    """清空工作区（已保存的存档保留）"""
    await stories.clear_all()
    await ws.send_event({"type": "workspace_cleared", "data": {}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
