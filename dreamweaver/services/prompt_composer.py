"""生成请求组装（纯函数，无副作用）。

文本块在前，随后依次附上选中角色、选中场景的参考图。
相同输入总是得到相同的请求；请求本身不含时间戳或随机 ID。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from dreamweaver.prompts.scene import CLOSING_INSTRUCTION, NO_ACTION_PLACEHOLDER, NO_CONTEXT_PLACEHOLDER
from dreamweaver.schemas.cinematography import resolve_label
from dreamweaver.schemas.workspace import Asset, Beat
from dreamweaver.services.images import extract_base64_data, get_mime_type

# (分镜字段, 输出标题)
_CINEMATOGRAPHY_HEADINGS = (
    ("shot_type", "Shot Type"),
    ("camera_angle", "Camera Angle"),
    ("lighting", "Lighting"),
)


@dataclass(frozen=True, slots=True)
class ImageAttachment:
    mime_type: str
    data: str  # base64

    @classmethod
    def from_data_url(cls, data_url: str) -> "ImageAttachment":
        return cls(mime_type=get_mime_type(data_url), data=extract_base64_data(data_url))

    def to_part(self) -> dict[str, Any]:
        return {"inline_data": {"mime_type": self.mime_type, "data": self.data}}


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    text: str
    images: tuple[ImageAttachment, ...] = ()
    # 已解析为 label 的镜头参数（仅包含非空项）
    cinematography: tuple[tuple[str, str], ...] = ()

    def to_parts(self) -> list[dict[str, Any]]:
        return [{"text": self.text}, *(img.to_part() for img in self.images)]


def _cinematography_block(resolved: Sequence[tuple[str, str]]) -> str:
    if not resolved:
        return ""
    lines = ["## Cinematography Specifications (MUST USE THESE EXACTLY)"]
    lines.extend(f"- **{heading}:** {label}" for heading, label in resolved)
    lines.append("These values are mandatory. Do not alter, reinterpret or replace them.")
    return "\n".join(lines) + "\n\n"


def _outfit_block(outfit_override: str) -> str:
    if not outfit_override:
        return ""
    return (
        "## Outfit Override\n"
        f"The character(s) should be wearing: {outfit_override}\n"
        "This overrides any attire inferred from the reference images.\n\n"
    )


def _references_block(characters: Sequence[Asset], locations: Sequence[Asset]) -> str:
    lines = ["## Reference Images"]
    if characters:
        lines.append(f"Characters provided: {len(characters)} character reference(s)")
        lines.append(
            "IMPORTANT: Describe EACH character's COMPLETE outfit in detail "
            "(all clothing items, colors, materials, accessories)."
        )
        for idx, char in enumerate(characters, start=1):
            lines.append(
                f'- Reference {idx}: "{char.name}" - label only, describe their full appearance '
                "and every piece of clothing, never refer to them by this name"
            )
    if locations:
        lines.append(f"Locations provided: {len(locations)} location reference(s)")
        for idx, loc in enumerate(locations, start=1):
            lines.append(f'- Location {idx}: "{loc.name}"')
    return "\n".join(lines) + "\n"


def compose_request(
    *,
    story_context: str,
    characters: Sequence[Asset] = (),
    locations: Sequence[Asset] = (),
    beat_action: str,
    outfit_override: str = "",
    shot_type: str = "",
    camera_angle: str = "",
    lighting: str = "",
) -> GenerationRequest:
    """组装单个分镜的生成请求。镜头参数传入取值（如 ``"wide"``），空值表示 Auto 并被省略"""
    values = {"shot_type": shot_type, "camera_angle": camera_angle, "lighting": lighting}
    resolved = tuple(
        (heading, label)
        for field, heading in _CINEMATOGRAPHY_HEADINGS
        if (label := resolve_label(field, values[field]))
    )

    text = f"## Story Context\n{story_context or NO_CONTEXT_PLACEHOLDER}\n\n"
    text += f"## Beat Action\n{beat_action or NO_ACTION_PLACEHOLDER}\n\n"
    text += _cinematography_block(resolved)
    text += _outfit_block(outfit_override)
    text += _references_block(characters, locations)
    text += f"\n{CLOSING_INSTRUCTION}"

    images = tuple(
        ImageAttachment.from_data_url(asset.image)
        for asset in (*characters, *locations)
        if asset.image
    )
    return GenerationRequest(text=text, images=images, cinematography=resolved)


def compose_for_beat(
    beat: Beat,
    *,
    story_context: str,
    characters: Sequence[Asset] = (),
    locations: Sequence[Asset] = (),
) -> GenerationRequest:
    return compose_request(
        story_context=story_context,
        characters=characters,
        locations=locations,
        beat_action=beat.action,
        outfit_override=beat.outfit_override,
        shot_type=beat.shot_type,
        camera_angle=beat.camera_angle,
        lighting=beat.lighting,
    )
