"""角色 / 场景素材路由（同一个工厂实例化两次）"""
from __future__ import annotations

from pathlib import PurePath

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile, status

from dreamweaver.api.deps import SettingsDep, WorkspaceDep, WsManagerDep
from dreamweaver.config import Settings
from dreamweaver.schemas.api import AssetRename, AssetToggleRead
from dreamweaver.schemas.workspace import Asset
from dreamweaver.services.assets import AssetKind
from dreamweaver.services.workspace import Workspace
from dreamweaver.ws.manager import ConnectionManager


def _default_name(filename: str | None) -> str | None:
    # 未指定名称时使用去掉扩展名的文件名
    if not filename:
        return None
    return PurePath(filename).stem or None


def build_asset_router(kind: AssetKind) -> APIRouter:
    router = APIRouter()

    @router.get("", response_model=list[Asset])
    async def list_assets(workspace: Workspace = WorkspaceDep):
        return workspace.assets(kind).list()

    @router.post("", response_model=Asset, status_code=status.HTTP_201_CREATED)
    async def upload_asset(
        file: UploadFile = File(...),
        name: str | None = Form(None),
        workspace: Workspace = WorkspaceDep,
        settings: Settings = SettingsDep,
        ws: ConnectionManager = WsManagerDep,
    ):
        content = await file.read()
        if len(content) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"Image exceeds {settings.max_upload_bytes} bytes",
            )
        asset = await workspace.assets(kind).add(content, name or _default_name(file.filename))
        await ws.send_event({"type": "asset_created", "data": {"kind": kind, "asset": asset.to_storage()}})
        return asset

    @router.patch("/{asset_id}", response_model=Asset | None)
    async def rename_asset(
        asset_id: str,
        payload: AssetRename,
        workspace: Workspace = WorkspaceDep,
        ws: ConnectionManager = WsManagerDep,
    ):
        asset = await workspace.assets(kind).rename(asset_id, payload.name)
        if asset is not None:
            await ws.send_event({"type": "asset_updated", "data": {"kind": kind, "asset": asset.to_storage()}})
        return asset

    @router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_asset(
        asset_id: str,
        workspace: Workspace = WorkspaceDep,
        ws: ConnectionManager = WsManagerDep,
    ):
        if await workspace.remove_asset(kind, asset_id):
            await ws.send_event({"type": "asset_deleted", "data": {"kind": kind, "id": asset_id}})
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post("/{asset_id}/toggle", response_model=AssetToggleRead)
    async def toggle_asset(
        asset_id: str,
        workspace: Workspace = WorkspaceDep,
        ws: ConnectionManager = WsManagerDep,
    ):
        selected = workspace.toggle_selection(kind, asset_id)
        await ws.send_event({"type": "selection_updated", "data": _selection(workspace)})
        return AssetToggleRead(id=asset_id, selected=selected)

    return router


def _selection(workspace: Workspace) -> dict[str, list[str]]:
    return {
        "characterIds": [a.id for a in workspace.selected_characters()],
        "locationIds": [a.id for a in workspace.selected_locations()],
    }
