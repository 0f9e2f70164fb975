"""工作区持久化记录。

字段以 camelCase 别名序列化（与存储中的 JSON 结构一致），
Python 侧使用 snake_case 属性。
"""
from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from dreamweaver.schemas.cinematography import is_valid_option

logger = logging.getLogger(__name__)

# 故事存档结构版本
STORY_SCHEMA_VERSION = 1

BEAT_EDITABLE_FIELDS = ("action", "outfit_override", "shot_type", "camera_angle", "lighting")
BEAT_STATE_FIELDS = ("generated_prompt", "is_generating", "error")


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Asset(Record):
    """角色 / 场景参考图"""

    id: str = Field(min_length=1)
    name: str = ""
    image: str = Field(min_length=1)  # data:<mime>;base64,<data>
    created_at: str = ""


class Beat(Record):
    """分镜"""

    id: str = Field(min_length=1)
    action: str = ""
    outfit_override: str = ""
    shot_type: str = ""
    camera_angle: str = ""
    lighting: str = ""
    generated_prompt: str | None = None
    is_generating: bool = False
    error: str | None = None

    @field_validator("action", "outfit_override", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("shot_type", "camera_angle", "lighting", mode="before")
    @classmethod
    def _coerce_option(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return ""
        if not isinstance(value, str) or not is_valid_option(info.field_name, value):
            logger.warning(f"Unknown {info.field_name} value {value!r}, falling back to auto")
            return ""
        return value


class StoryData(Record):
    """工作区快照"""

    characters: list[Asset] = Field(default_factory=list)
    locations: list[Asset] = Field(default_factory=list)
    story_context: str = ""
    beats: list[Beat] = Field(default_factory=list)

    @field_validator("characters", "locations", "beats", mode="before")
    @classmethod
    def _drop_invalid(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return []
        model = Beat if info.field_name == "beats" else Asset
        return coerce_records(model, value, source=info.field_name)

    @field_validator("story_context", mode="before")
    @classmethod
    def _context_str(cls, value: Any) -> Any:
        return "" if value is None else value


class StorySlot(Record):
    """故事存档"""

    id: str = Field(min_length=1)
    name: str = ""
    data: StoryData = Field(default_factory=StoryData)
    created_at: str = ""
    updated_at: str = ""
    version: int = STORY_SCHEMA_VERSION


class StorySummary(Record):
    id: str
    name: str
    created_at: str
    updated_at: str
    character_count: int
    location_count: int
    beat_count: int

    @classmethod
    def from_slot(cls, slot: StorySlot) -> "StorySummary":
        return cls(
            id=slot.id,
            name=slot.name,
            created_at=slot.created_at,
            updated_at=slot.updated_at,
            character_count=len(slot.data.characters),
            location_count=len(slot.data.locations),
            beat_count=len(slot.data.beats),
        )


R = TypeVar("R", bound=Record)


def coerce_records(model: type[R], raw: Any, *, source: str) -> list[R]:
    """尽力解析持久化列表：无法校验的记录记录警告后丢弃"""
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning(f"Expected a list for {source}, got {type(raw).__name__}; ignoring")
        return []

    items: list[R] = []
    for idx, item in enumerate(raw):
        if isinstance(item, model):
            items.append(item)
            continue
        try:
            items.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning(f"Dropping invalid {source}[{idx}]: {exc.error_count()} validation error(s)")
    return items

