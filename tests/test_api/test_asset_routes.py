from __future__ import annotations

import pytest

from tests.factories import make_png


@pytest.mark.asyncio
async def test_health(async_client):
    res = await async_client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_upload_character(async_client, workspace, ws_manager):
    res = await async_client.post(
        "/api/v1/characters",
        files={"file": ("rin.png", make_png(), "image/png")},
    )
    assert res.status_code == 201
    data = res.json()
    assert data["name"] == "rin"
    assert data["image"].startswith("data:image/png;base64,")
    assert "createdAt" in data
    assert workspace.characters.get(data["id"]) is not None
    assert ws_manager.types() == ["asset_created"]


@pytest.mark.asyncio
async def test_upload_with_explicit_name(async_client):
    res = await async_client.post(
        "/api/v1/locations",
        files={"file": ("img_001.png", make_png(), "image/png")},
        data={"name": "Lighthouse"},
    )
    assert res.status_code == 201
    assert res.json()["name"] == "Lighthouse"
    assert res.json()["id"].startswith("loc_")

    listed = await async_client.get("/api/v1/locations")
    assert [a["name"] for a in listed.json()] == ["Lighthouse"]


@pytest.mark.asyncio
async def test_upload_unreadable_image(async_client, workspace):
    res = await async_client.post(
        "/api/v1/characters",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "ENCODING_ERROR"
    assert workspace.characters.list() == []


@pytest.mark.asyncio
async def test_rename_toggle_delete(async_client, workspace):
    created = await async_client.post(
        "/api/v1/characters",
        files={"file": ("rin.png", make_png(), "image/png")},
    )
    asset_id = created.json()["id"]

    res = await async_client.patch(f"/api/v1/characters/{asset_id}", json={"name": "Rin"})
    assert res.status_code == 200
    assert res.json()["name"] == "Rin"

    res = await async_client.post(f"/api/v1/characters/{asset_id}/toggle")
    assert res.json() == {"id": asset_id, "selected": True}
    selection = await async_client.get("/api/v1/selection")
    assert selection.json() == {"characterIds": [asset_id], "locationIds": []}

    res = await async_client.delete(f"/api/v1/characters/{asset_id}")
    assert res.status_code == 204
    res = await async_client.delete(f"/api/v1/characters/{asset_id}")
    assert res.status_code == 204

    selection = await async_client.get("/api/v1/selection")
    assert selection.json()["characterIds"] == []


@pytest.mark.asyncio
async def test_rename_missing_asset_is_silent(async_client):
    res = await async_client.patch("/api/v1/characters/char_missing", json={"name": "Nobody"})
    assert res.status_code == 200
    assert res.json() is None


@pytest.mark.asyncio
async def test_set_selection_filters_unknown_ids(async_client):
    res = await async_client.put("/api/v1/selection", json={"characterIds": ["char_missing"]})
    assert res.status_code == 200
    assert res.json() == {"characterIds": [], "locationIds": []}


@pytest.mark.asyncio
async def test_context_roundtrip(async_client, ws_manager):
    res = await async_client.put("/api/v1/context", json={"storyContext": "A storm is coming."})
    assert res.status_code == 200
    res = await async_client.get("/api/v1/context")
    assert res.json() == {"storyContext": "A storm is coming."}
    assert ws_manager.types() == ["context_updated"]


@pytest.mark.asyncio
async def test_config_status_and_catalog(async_client):
    res = await async_client.get("/api/v1/config/status")
    assert res.json() == {"configured": True, "model": "stub-model"}

    res = await async_client.get("/api/v1/cinematography")
    catalog = res.json()
    assert catalog["shotTypes"][0] == {"value": "", "label": "Auto (AI decides)"}
    assert len(catalog["shotTypes"]) == 12
    assert len(catalog["cameraAngles"]) == 9
    assert len(catalog["lighting"]) == 15
