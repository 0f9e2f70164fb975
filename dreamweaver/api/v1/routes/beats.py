from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status
from fastapi.responses import JSONResponse

from dreamweaver.api.deps import CoordinatorDep, WorkspaceDep, WsManagerDep
from dreamweaver.schemas.api import BeatRead, BeatUpdate, GenerateResponse
from dreamweaver.services.beat_generation import BeatGenerationCoordinator
from dreamweaver.services.beats import label_for
from dreamweaver.services.workspace import Workspace
from dreamweaver.ws.manager import ConnectionManager

router = APIRouter()


def _label(workspace: Workspace, beat_id: str) -> str:
    index = workspace.beats.index_of(beat_id)
    return label_for(index) if index is not None else ""


@router.get("", response_model=list[BeatRead])
async def list_beats(workspace: Workspace = WorkspaceDep):
    return [BeatRead.from_beat(label, beat) for label, beat in workspace.beats.labelled()]


@router.post("", response_model=BeatRead, status_code=status.HTTP_201_CREATED)
async def create_beat(workspace: Workspace = WorkspaceDep, ws: ConnectionManager = WsManagerDep):
    beat = await workspace.beats.add()
    read = BeatRead.from_beat(_label(workspace, beat.id), beat)
    await ws.send_event({"type": "beat_created", "data": {"beat": read.to_storage()}})
    return read


@router.patch("/{beat_id}", response_model=BeatRead | None)
async def update_beat(
    beat_id: str,
    payload: BeatUpdate,
    workspace: Workspace = WorkspaceDep,
    ws: ConnectionManager = WsManagerDep,
):
    changes = payload.model_dump(exclude_unset=True)
    try:
        beat = workspace.beats.update_many(beat_id, changes)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    if beat is None:
        return None
    read = BeatRead.from_beat(_label(workspace, beat_id), beat)
    await ws.send_event({"type": "beat_updated", "data": {"beat": read.to_storage()}})
    return read


@router.delete("/{beat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_beat(
    beat_id: str,
    workspace: Workspace = WorkspaceDep,
    ws: ConnectionManager = WsManagerDep,
):
    if await workspace.beats.remove(beat_id):
        await ws.send_event({"type": "beat_deleted", "data": {"id": beat_id}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{beat_id}/generate", response_model=GenerateResponse)
async def generate_beat_prompt(
    beat_id: str,
    workspace: Workspace = WorkspaceDep,
    coordinator: BeatGenerationCoordinator = CoordinatorDep,
):
    """进入 Pending 后立即返回 202，结果通过 WebSocket 推送。

    分镜不存在或动作描述为空时返回 200 且 ``started=false``。
    """
    task = coordinator.request(beat_id)
    beat = workspace.beats.get(beat_id)
    read = BeatRead.from_beat(_label(workspace, beat_id), beat) if beat else None
    response = GenerateResponse(started=task is not None, beat=read)
    if task is None:
        return response
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content=response.model_dump(by_alias=True, mode="json"),
    )
