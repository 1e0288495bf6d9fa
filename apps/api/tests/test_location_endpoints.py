import pytest
from httpx import ASGITransport, AsyncClient

from legends_api.core.settings import settings


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_create_and_update_location(app_with_db, asset_storage) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        created = await client.post("/api/v1/admin/locations", json={"name": "Harbor Club", "entryCode": "246810"})
        location = created.json()
        updated = await client.patch(
            f"/api/v1/admin/locations/{location['id']}",
            json={"isActive": False},
        )

    assert created.status_code == 201
    assert location["entryCode"] == "246810"
    assert len(location["qrToken"]) == 48
    assert location["qrImageRef"] in asset_storage.assets

    assert updated.status_code == 200
    body = updated.json()
    assert body["isActive"] is False
    assert body["qrToken"] == location["qrToken"]
    assert body["entryCode"] == "246810"
    assert body["qrImageRef"] == location["qrImageRef"]


@pytest.mark.asyncio
async def test_update_unknown_location_returns_404(app_with_db) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        response = await client.patch(
            "/api/v1/admin/locations/00000000-0000-0000-0000-000000000000",
            json={"name": "Ghost"},
        )

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Location not found"


@pytest.mark.asyncio
async def test_admin_key_guard(app_with_db, monkeypatch) -> None:
    app, _ = app_with_db
    monkeypatch.setattr(settings, "admin_api_key", "operator-key")

    async with _client(app) as client:
        denied = await client.post("/api/v1/admin/locations", json={"name": "Harbor Club"})
        allowed = await client.post(
            "/api/v1/admin/locations",
            json={"name": "Harbor Club"},
            headers={"X-API-Key": "operator-key"},
        )

    assert denied.status_code == 401
    assert allowed.status_code == 201


@pytest.mark.asyncio
async def test_duplicate_qr_token_returns_validation_error(app_with_db) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        first = await client.post("/api/v1/admin/locations", json={"name": "Harbor Club", "qrToken": "shared-token"})
        second = await client.post("/api/v1/admin/locations", json={"name": "Copycat Bar", "qrToken": "shared-token"})

    assert first.status_code == 201
    assert second.status_code == 400
    assert second.json() == {
        "ok": False,
        "error": {"code": "VALIDATION_ERROR", "message": "QR token already in use"},
    }
