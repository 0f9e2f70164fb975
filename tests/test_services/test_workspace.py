from __future__ import annotations

import pytest

from dreamweaver.services.storage import StorageKeys
from dreamweaver.services.workspace import Workspace
from tests.factories import create_character


@pytest.mark.asyncio
async def test_load_coerces_stored_records(storage):
    await storage.set_json(
        StorageKeys.BEATS,
        [
            {"id": "beat_1", "action": "Old beat without cinematography"},
            {"id": "beat_2", "action": "Bad option", "shotType": "fisheye", "isGenerating": True},
            {"action": "no id, dropped"},
            "garbage",
        ],
    )
    await storage.set_json(
        StorageKeys.CHARACTERS,
        [{"id": "char_1", "name": "Rin", "image": "data:image/png;base64,AAAA"}, {"id": "char_2"}],
    )
    await storage.set(StorageKeys.STORY_CONTEXT, "Raw context, not JSON")
    await storage.set(StorageKeys.LOCATIONS, "{broken json")

    workspace = Workspace(storage)
    await workspace.load()

    beats = workspace.beats.list()
    assert [b.id for b in beats] == ["beat_1", "beat_2"]
    assert beats[0].shot_type == beats[0].camera_angle == beats[0].lighting == ""
    assert beats[1].shot_type == ""
    assert beats[1].is_generating is False
    assert [a.id for a in workspace.characters.list()] == ["char_1"]
    assert workspace.locations.list() == []
    assert workspace.context.get() == "Raw context, not JSON"


@pytest.mark.asyncio
async def test_load_clears_selection(workspace):
    await create_character(workspace, "Rin", select=True)
    await workspace.load()
    assert len(workspace.characters) == 1
    assert workspace.selected_character_ids == set()


@pytest.mark.asyncio
async def test_clear_empties_everything(workspace, storage):
    await create_character(workspace, "Rin", select=True)
    workspace.context.set("ctx")
    await workspace.beats.add()

    await workspace.clear()
    assert workspace.is_empty()
    assert workspace.selected_character_ids == set()
    assert await storage.get(StorageKeys.STORY_CONTEXT) == ""
    assert await storage.get_json(StorageKeys.BEATS) == []


@pytest.mark.asyncio
async def test_load_keeps_beat_with_non_string_cinematography(storage):
    await storage.set_json(
        StorageKeys.BEATS,
        [
            {"id": "beat_1", "action": "Rin waits", "shotType": 5, "cameraAngle": ["low-angle"], "lighting": "golden_hour"},
        ],
    )

    workspace = Workspace(storage)
    await workspace.load()

    beats = workspace.beats.list()
    assert [b.id for b in beats] == ["beat_1"]
    assert beats[0].action == "Rin waits"
    assert beats[0].shot_type == ""
    assert beats[0].camera_angle == ""
    assert beats[0].lighting == "golden_hour"
