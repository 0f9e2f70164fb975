from __future__ import annotations

from pydantic import Field

from dreamweaver.schemas.workspace import Beat, Record


class AssetRename(Record):
    name: str = Field(min_length=1)


class AssetToggleRead(Record):
    id: str
    selected: bool


class SelectionRead(Record):
    character_ids: list[str]
    location_ids: list[str]


class SelectionUpdate(Record):
    character_ids: list[str] | None = None
    location_ids: list[str] | None = None


class ContextRead(Record):
    story_context: str


class ContextUpdate(Record):
    story_context: str = ""


class BeatRead(Beat):
    label: str

    @classmethod
    def from_beat(cls, label: str, beat: Beat) -> "BeatRead":
        return cls(label=label, **beat.model_dump())


class BeatUpdate(Record):
    """仅包含需要修改的字段；镜头参数空字符串表示 Auto"""

    action: str | None = None
    outfit_override: str | None = None
    shot_type: str | None = None
    camera_angle: str | None = None
    lighting: str | None = None


class GenerateResponse(Record):
    started: bool
    beat: BeatRead | None = None


class StorySave(Record):
    name: str = ""
    existing_id: str | None = None


class StoryRename(Record):
    name: str = Field(min_length=1)


class StoryLoadResponse(Record):
    loaded: bool


class QuickSaveResponse(Record):
    saved: bool
    # 没有当前存档时为 False，前端应弹出命名对话框
    story_id: str | None = None


class CurrentStoryRead(Record):
    id: str | None
    name: str | None


class ConfigStatus(Record):
    configured: bool
    model: str
