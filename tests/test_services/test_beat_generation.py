from __future__ import annotations

import asyncio

import pytest

from dreamweaver.exceptions import ConfigurationError, GenerationInProgressError
from dreamweaver.services.generation import NOT_CONFIGURED_MESSAGE, GenerationResult
from tests.factories import create_beat, create_character, create_location


@pytest.mark.asyncio
async def test_end_to_end_success(workspace, coordinator, generation_client, ws_manager):
    rin = await create_character(workspace, "Rin", select=True)
    beat = await create_beat(workspace, "Rin opens a door")

    result = await coordinator.generate(beat.id)

    assert result.success is True
    updated = workspace.beats.get(beat.id)
    assert updated.generated_prompt == "## Cinematic Paragraph\nA quiet room."
    assert updated.is_generating is False
    assert updated.error is None

    request = generation_client.requests[0]
    assert '"Rin"' in request.text
    assert request.images[0].data == rin.image.split(",", 1)[1]

    assert ws_manager.types() == ["beat_generation_started", "beat_generation_completed"]
    assert ws_manager.events[-1]["data"]["reveal"] is True


@pytest.mark.asyncio
async def test_not_configured_is_rejected_synchronously(workspace, coordinator, generation_client):
    generation_client.is_configured = False
    beat = await create_beat(workspace, "Rin opens a door")

    with pytest.raises(ConfigurationError):
        coordinator.request(beat.id)

    updated = workspace.beats.get(beat.id)
    assert updated.error == NOT_CONFIGURED_MESSAGE
    assert updated.is_generating is False
    assert generation_client.requests == []
    assert coordinator.is_pending(beat.id) is False


@pytest.mark.asyncio
async def test_empty_action_or_missing_beat_is_noop(workspace, coordinator, generation_client):
    beat = await create_beat(workspace, "   ")

    assert coordinator.request(beat.id) is None
    assert coordinator.request("beat_missing") is None
    assert workspace.beats.get(beat.id).is_generating is False
    assert generation_client.requests == []


@pytest.mark.asyncio
async def test_at_most_one_in_flight_per_beat(workspace, coordinator, generation_client):
    generation_client.gate = asyncio.Event()
    beat = await create_beat(workspace, "Rin opens a door")

    task = coordinator.request(beat.id)
    assert workspace.beats.get(beat.id).is_generating is True
    with pytest.raises(GenerationInProgressError):
        coordinator.request(beat.id)

    generation_client.gate.set()
    await task
    assert len(generation_client.requests) == 1
    assert workspace.beats.get(beat.id).is_generating is False
    assert coordinator.is_pending(beat.id) is False


@pytest.mark.asyncio
async def test_different_beats_generate_in_parallel(workspace, coordinator, generation_client):
    generation_client.gate = asyncio.Event()
    first = await create_beat(workspace, "first")
    second = await create_beat(workspace, "second")

    t1 = coordinator.request(first.id)
    t2 = coordinator.request(second.id)
    await asyncio.sleep(0)
    assert coordinator.is_pending(first.id) and coordinator.is_pending(second.id)

    generation_client.gate.set()
    await asyncio.gather(t1, t2)
    assert len(generation_client.requests) == 2


@pytest.mark.asyncio
async def test_failure_keeps_previous_prompt(workspace, coordinator, generation_client, ws_manager):
    beat = await create_beat(workspace, "Rin opens a door")
    await coordinator.generate(beat.id)
    previous = workspace.beats.get(beat.id).generated_prompt

    generation_client.result = GenerationResult(success=False, error="quota exceeded")
    result = await coordinator.generate(beat.id)

    assert result.success is False
    updated = workspace.beats.get(beat.id)
    assert updated.error == "quota exceeded"
    assert updated.generated_prompt == previous
    assert updated.is_generating is False
    assert ws_manager.types()[-1] == "beat_generation_failed"


@pytest.mark.asyncio
async def test_retry_clears_previous_error(workspace, coordinator, generation_client):
    beat = await create_beat(workspace, "Rin opens a door")
    generation_client.result = GenerationResult(success=False, error="boom")
    await coordinator.generate(beat.id)

    generation_client.gate = asyncio.Event()
    generation_client.result = GenerationResult(success=True, prompt="ok")
    task = coordinator.request(beat.id)
    assert workspace.beats.get(beat.id).error is None

    generation_client.gate.set()
    await task
    assert workspace.beats.get(beat.id).generated_prompt == "ok"


@pytest.mark.asyncio
async def test_deleted_beat_result_is_discarded(workspace, coordinator, generation_client):
    generation_client.gate = asyncio.Event()
    beat = await create_beat(workspace, "Rin opens a door")

    task = coordinator.request(beat.id)
    await workspace.beats.remove(beat.id)
    generation_client.gate.set()

    result = await task
    assert result.success is True
    assert workspace.beats.get(beat.id) is None
    assert workspace.beats.list() == []


@pytest.mark.asyncio
async def test_request_is_composed_at_click_time(workspace, coordinator, generation_client):
    generation_client.gate = asyncio.Event()
    await create_location(workspace, "Harbor", select=True)
    beat = await create_beat(workspace, "Arrival", lighting="moonlight")

    task = coordinator.request(beat.id)
    workspace.beats.update(beat.id, "lighting", "neon")
    workspace.clear_selection()
    generation_client.gate.set()
    await task

    request = generation_client.requests[0]
    assert "Moonlight" in request.text
    assert "Neon" not in request.text
    assert len(request.images) == 1


@pytest.mark.asyncio
async def test_result_from_before_story_load_is_discarded(workspace, stories, coordinator, generation_client):
    beat = await create_beat(workspace, "Rin opens a door")
    slot = await stories.save("Harbor")

    generation_client.gate = asyncio.Event()
    workspace.beats.update(beat.id, "action", "Rin slams the door")
    task = coordinator.request(beat.id)

    assert await stories.load(slot.id) is True
    assert workspace.beats.get(beat.id).is_generating is False
    assert coordinator.is_pending(beat.id) is False
    loaded = workspace.snapshot().to_storage()

    generation_client.gate.set()
    result = await task

    assert result.success is True
    assert workspace.snapshot().to_storage() == loaded
    assert workspace.beats.get(beat.id).generated_prompt is None


@pytest.mark.asyncio
async def test_beat_can_generate_again_after_story_load(workspace, stories, coordinator, generation_client):
    beat = await create_beat(workspace, "Rin opens a door")
    slot = await stories.save("Harbor")

    generation_client.gate = asyncio.Event()
    old_task = coordinator.request(beat.id)
    await stories.load(slot.id)

    new_task = coordinator.request(beat.id)
    assert new_task is not None
    assert coordinator.is_pending(beat.id) is True
    assert workspace.beats.get(beat.id).is_generating is True

    generation_client.gate.set()
    await coordinator.drain()

    assert old_task.done() and new_task.done()
    assert len(generation_client.requests) == 2
    updated = workspace.beats.get(beat.id)
    assert updated.generated_prompt == "## Cinematic Paragraph\nA quiet room."
    assert updated.is_generating is False
    assert coordinator.is_pending(beat.id) is False
