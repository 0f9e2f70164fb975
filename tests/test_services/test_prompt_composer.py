from __future__ import annotations

from dreamweaver.schemas.workspace import Asset
from dreamweaver.services.prompt_composer import compose_request

MANDATORY_HEADER = "## Cinematography Specifications (MUST USE THESE EXACTLY)"


def _asset(asset_id: str, name: str, mime: str = "image/png", data: str = "QUJD") -> Asset:
    return Asset(id=asset_id, name=name, image=f"data:{mime};base64,{data}", created_at="")


def test_no_cinematography_block_when_all_auto():
    req = compose_request(story_context="ctx", beat_action="Rin opens a door")
    assert MANDATORY_HEADER not in req.text
    assert "Do not alter" not in req.text
    assert "Auto" not in req.text
    assert req.cinematography == ()


def test_only_non_empty_fields_are_included_with_labels():
    req = compose_request(story_context="ctx", beat_action="Rin opens a door", camera_angle="low_angle")
    assert MANDATORY_HEADER in req.text
    assert "- **Camera Angle:** Low Angle (heroic)" in req.text
    assert "Shot Type:**" not in req.text
    assert "Lighting:**" not in req.text
    assert "low_angle" not in req.text
    assert req.cinematography == (("Camera Angle", "Low Angle (heroic)"),)


def test_all_fields_in_fixed_order():
    req = compose_request(
        story_context="",
        beat_action="x",
        shot_type="close",
        camera_angle="dutch_angle",
        lighting="neon",
    )
    shot = req.text.index("Shot Type:** Close-Up")
    angle = req.text.index("Camera Angle:** Dutch Angle (tilted)")
    light = req.text.index("Lighting:** Neon/Cyberpunk")
    assert shot < angle < light


def test_outfit_override_instruction():
    plain = compose_request(story_context="ctx", beat_action="x")
    assert "## Outfit Override" not in plain.text

    req = compose_request(story_context="ctx", beat_action="x", outfit_override="a yellow raincoat")
    assert "## Outfit Override" in req.text
    assert "The character(s) should be wearing: a yellow raincoat" in req.text
    assert "overrides any attire" in req.text


def test_placeholders_for_empty_context_and_action():
    req = compose_request(story_context="", beat_action="")
    assert "## Story Context\nNo story context provided." in req.text
    assert "## Beat Action\nNo specific action provided." in req.text


def test_images_follow_text_characters_then_locations():
    rin = _asset("char_1", "Rin", data="UklO")
    kai = _asset("char_2", "Kai", data="S0FJ")
    harbor = _asset("loc_1", "Harbor", mime="image/jpeg", data="SEFS")

    req = compose_request(
        story_context="ctx",
        characters=[rin, kai],
        locations=[harbor],
        beat_action="Rin and Kai meet",
    )
    parts = req.to_parts()
    assert list(parts[0]) == ["text"]
    assert [p["inline_data"]["data"] for p in parts[1:]] == ["UklO", "S0FJ", "SEFS"]
    assert parts[3]["inline_data"]["mime_type"] == "image/jpeg"

    assert "Characters provided: 2 character reference(s)" in req.text
    assert '- Reference 1: "Rin"' in req.text
    assert '- Reference 2: "Kai"' in req.text
    assert "Locations provided: 1 location reference(s)" in req.text
    assert '- Location 1: "Harbor"' in req.text


def test_no_reference_lines_without_selection():
    req = compose_request(story_context="ctx", beat_action="x")
    assert "## Reference Images" in req.text
    assert "Characters provided" not in req.text
    assert "Locations provided" not in req.text
    assert req.images == ()


def test_composition_is_deterministic():
    kwargs = dict(
        story_context="ctx",
        characters=[_asset("char_1", "Rin")],
        beat_action="x",
        lighting="moonlight",
    )
    assert compose_request(**kwargs) == compose_request(**kwargs)
