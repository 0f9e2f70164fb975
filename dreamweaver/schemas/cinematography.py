"""镜头语言选项：景别 / 机位角度 / 光照预设。

value 为持久化和 API 使用的取值，label 为发送给模型的可读描述。
空字符串表示 "Auto"，由模型自行决定，生成请求中不会出现。
"""
from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


AUTO_LABEL = "Auto (AI decides)"


@dataclass(frozen=True, slots=True)
class CinematographyOption:
    value: str
    label: str


SHOT_TYPES: tuple[CinematographyOption, ...] = (
    CinematographyOption("extreme_wide", "Extreme Wide Shot"),
    CinematographyOption("wide", "Wide Shot"),
    CinematographyOption("full", "Full Shot"),
    CinematographyOption("medium_wide", "Medium Wide Shot"),
    CinematographyOption("medium", "Medium Shot"),
    CinematographyOption("medium_close", "Medium Close-Up"),
    CinematographyOption("close", "Close-Up"),
    CinematographyOption("extreme_close", "Extreme Close-Up"),
    CinematographyOption("over_shoulder", "Over-the-Shoulder"),
    CinematographyOption("pov", "POV Shot"),
    CinematographyOption("two_shot", "Two Shot"),
)

CAMERA_ANGLES: tuple[CinematographyOption, ...] = (
    CinematographyOption("eye_level", "Eye Level"),
    CinematographyOption("low_angle", "Low Angle (heroic)"),
    CinematographyOption("high_angle", "High Angle (vulnerable)"),
    CinematographyOption("birds_eye", "Bird's Eye View"),
    CinematographyOption("worms_eye", "Worm's Eye View"),
    CinematographyOption("dutch_angle", "Dutch Angle (tilted)"),
    CinematographyOption("profile", "Profile View"),
    CinematographyOption("three_quarter", "Three-Quarter View"),
)

LIGHTING_PRESETS: tuple[CinematographyOption, ...] = (
    CinematographyOption("natural_daylight", "Natural Daylight"),
    CinematographyOption("golden_hour", "Golden Hour"),
    CinematographyOption("blue_hour", "Blue Hour"),
    CinematographyOption("overcast", "Overcast/Soft Light"),
    CinematographyOption("harsh_midday", "Harsh Midday Sun"),
    CinematographyOption("moonlight", "Moonlight"),
    CinematographyOption("candlelight", "Candlelight/Warm Glow"),
    CinematographyOption("neon", "Neon/Cyberpunk"),
    CinematographyOption("dramatic_shadows", "Dramatic Shadows (Noir)"),
    CinematographyOption("backlit", "Backlit/Silhouette"),
    CinematographyOption("rim_light", "Rim Lighting"),
    CinematographyOption("studio_soft", "Studio Soft Box"),
    CinematographyOption("firelight", "Firelight"),
    CinematographyOption("stormy", "Stormy/Dark Atmospheric"),
)

# 分镜字段名 -> 选项集合；顺序即生成请求中的输出顺序
CINEMATOGRAPHY_FIELDS: dict[str, tuple[CinematographyOption, ...]] = {
    "shot_type": SHOT_TYPES,
    "camera_angle": CAMERA_ANGLES,
    "lighting": LIGHTING_PRESETS,
}

_LABELS: dict[str, dict[str, str]] = {
    field: {opt.value: opt.label for opt in options}
    for field, options in CINEMATOGRAPHY_FIELDS.items()
}


def is_valid_option(field: str, value: str) -> bool:
    if field not in _LABELS:
        raise KeyError(f"Unknown cinematography field: {field}")
    return value == "" or value in _LABELS[field]


def resolve_label(field: str, value: str | None) -> str:
    """value -> label；空值或未知值返回空字符串"""
    if not value:
        return ""
    return _LABELS[field].get(value, "")


class OptionRead(BaseModel):
    value: str
    label: str


class CinematographyCatalog(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    shot_types: list[OptionRead]
    camera_angles: list[OptionRead]
    lighting: list[OptionRead]


def build_catalog() -> CinematographyCatalog:
    """供前端渲染下拉框，首项为 Auto"""

    def _options(options: tuple[CinematographyOption, ...]) -> list[OptionRead]:
        items = [OptionRead(value="", label=AUTO_LABEL)]
        items.extend(OptionRead(value=o.value, label=o.label) for o in options)
        return items

    return CinematographyCatalog(
        shot_types=_options(SHOT_TYPES),
        camera_angles=_options(CAMERA_ANGLES),
        lighting=_options(LIGHTING_PRESETS),
    )
