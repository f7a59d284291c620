"""Tests for GET /api/status."""

from tests.helpers import insert_reading, make_sensor


async def test_status_counts(client, engine):
    sensor_id = await make_sensor(engine)
    await insert_reading(engine, sensor_id, "2020-01-01T00:00:00.000Z", temperature=20.0)

    resp = await client.get("/api/status")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["database"] == "ok"
    assert data["sensor_count"] == 1
    # Counted by arrival time, not device time
    assert data["readings_24h"] == 1
    assert data["open_alerts"] == 0
    assert data["uptime_sec"] >= 0


async def test_status_degraded_without_database(app, client, tmp_path):
    from greenpulse.database import create_engine_from_url

    # Tables were never created, so every count fails
    app.state.engine = create_engine_from_url(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    resp = await client.get("/api/status")
    await app.state.engine.dispose()

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["sensor_count"] is None
