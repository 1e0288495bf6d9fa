import pytest
from httpx import ASGITransport, AsyncClient

from factories import auth_headers, create_location, create_user
from legends_api.core.settings import settings
from legends_api.observability.loyalty import LoyaltyObservabilityStore


def test_store_accumulates_and_resets() -> None:
    store = LoyaltyObservabilityStore()
    store.record_scan("awarded", points=3)
    store.record_scan("rejected_day")
    store.record_redemption("approved", points=40)
    store.record_otp_event("issued")
    store.record_card_event("created")

    snapshot = store.snapshot().as_dict()

    assert snapshot["scans"] == {"awarded": 1, "points_awarded": 3, "rejected_day": 1}
    assert snapshot["redemptions"] == {"approved": 1, "points_spent": 40}
    assert snapshot["otp"] == {"issued": 1}
    assert snapshot["cards"] == {"created": 1}

    store.reset()
    assert store.snapshot().as_dict() == {"scans": {}, "redemptions": {}, "otp": {}, "cards": {}}


@pytest.mark.asyncio
async def test_snapshot_and_prometheus_endpoints(app_with_db, monkeypatch) -> None:
    app, session_factory = app_with_db
    monkeypatch.setattr(settings, "admin_api_key", "ops")

    async with session_factory() as session:
        user = await create_user(session)
        location = await create_location(session)
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        await client.post("/api/v1/scans", json={"qrToken": location.qr_token}, headers=auth_headers(user))
        await client.post("/api/v1/scans", json={"qrToken": "bogus"}, headers=auth_headers(user))

        denied = await client.get("/api/v1/observability/loyalty")
        snapshot = await client.get("/api/v1/observability/loyalty", headers={"X-API-Key": "ops"})
        metrics = await client.get("/api/v1/observability/metrics", headers={"X-API-Key": "ops"})

    assert denied.status_code == 401
    payload = snapshot.json()
    assert payload["scans"]["awarded"] == 1
    assert payload["scans"]["invalid_location"] == 1
    assert payload["cards"]["created"] == 1

    text = metrics.text
    assert metrics.headers["content-type"].startswith("text/plain")
    assert "# TYPE legends_loyalty_scans_total counter" in text
    assert 'legends_loyalty_scans_total{outcome="awarded"} 1' in text
    assert 'legends_loyalty_scans_total{outcome="invalid_location"} 1' in text
    assert "legends_loyalty_points_awarded_total 1" in text
    assert 'outcome="points_awarded"' not in text
