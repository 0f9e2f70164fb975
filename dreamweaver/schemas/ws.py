from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel


WsEventType = Literal[
    "connected",
    "pong",
    "error",
    "asset_created",             # 角色 / 场景新增
    "asset_updated",             # 角色 / 场景重命名
    "asset_deleted",             # 角色 / 场景删除
    "selection_updated",         # 选中集合变化
    "context_updated",           # 故事背景变化
    "beat_created",              # 分镜创建
    "beat_updated",              # 分镜字段更新
    "beat_deleted",              # 分镜删除
    "beat_generation_started",   # 进入 Pending
    "beat_generation_completed", # 生成成功（前端自动展开结果）
    "beat_generation_failed",    # 生成失败
    "story_saved",               # 故事存档
    "story_loaded",              # 读取存档
    "story_renamed",             # 存档重命名
    "story_deleted",             # 存档删除
    "workspace_cleared",         # 新建故事 / 清空工作区
]


class WsEvent(BaseModel):
    type: WsEventType
    data: dict[str, Any] = {}
