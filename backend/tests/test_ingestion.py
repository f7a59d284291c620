"""Tests for the ingestion pipeline service."""

import pytest
from prometheus_client import REGISTRY
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from greenpulse.models import Alert, Sensor, SensorReading
from greenpulse.services.alert_engine import AlertEngine
from greenpulse.services.ingestion import IngestionService
from greenpulse.services.normalizer import PayloadValidationError
from tests.helpers import count_rows, make_sensor, make_threshold


@pytest.fixture
def service(engine):
    return IngestionService(engine, AlertEngine(engine))


async def test_single_payload_end_to_end(engine, service):
    result = await service.process(
        {"device_id": "D1", "user_id": "U1", "sensor_type": "temperature", "value": 21.5}
    )
    assert result.stored == 1
    assert result.alerts == []
    assert result.payload.is_batch is False

    async with AsyncSession(engine) as session:
        sensor = await session.get(Sensor, result.sensor_id)
        reading = (await session.execute(select(SensorReading))).scalar_one()
    assert sensor.device_id == "D1"
    assert sensor.sensor_type == "temperature"
    assert reading.sensor_id == result.sensor_id
    assert reading.temperature == 21.5


async def test_batch_payload_with_alert(engine, service):
    sensor_id = await make_sensor(engine)
    await make_threshold(engine, sensor_id, "temperature", critical_max=32.0)

    result = await service.process(
        {
            "device_id": "D1",
            "user_id": "U1",
            "sensors": {"temperature": 35.0, "humidity": 90.0, "ph": None},
        }
    )
    assert result.sensor_id == sensor_id
    assert result.stored == 2
    assert [(a["sensor_type"], a["severity"]) for a in result.alerts] == [
        ("temperature", "critical")
    ]
    assert await count_rows(engine, SensorReading) == 1
    assert await count_rows(engine, Alert) == 1


async def test_repeat_device_reuses_sensor(engine, service):
    body = {"device_id": "D1", "user_id": "U1", "sensor_type": "humidity", "value": 60}
    first = await service.process(body)
    second = await service.process(body)
    assert first.sensor_id == second.sensor_id
    assert await count_rows(engine, Sensor) == 1
    assert await count_rows(engine, SensorReading) == 2


async def test_rejected_payload_writes_nothing(engine, service):
    before = (
        REGISTRY.get_sample_value(
            "greenpulse_payloads_rejected_total", {"reason": "missing_fields"}
        )
        or 0.0
    )
    with pytest.raises(PayloadValidationError):
        await service.process({"device_id": "D1", "user_id": "U1", "sensor_type": "ph"})
    after = REGISTRY.get_sample_value(
        "greenpulse_payloads_rejected_total", {"reason": "missing_fields"}
    )

    assert after == before + 1
    assert await count_rows(engine, Sensor) == 0
    assert await count_rows(engine, SensorReading) == 0


async def test_store_failure_rolls_back_sensor(engine, service, monkeypatch):
    async def _fail(*args, **kwargs):
        raise OperationalError("INSERT INTO sensor_readings", {}, Exception("disk full"))

    monkeypatch.setattr("greenpulse.services.ingestion.append_readings", _fail)

    with pytest.raises(OperationalError):
        await service.process(
            {"device_id": "D9", "user_id": "U1", "sensors": {"temperature": 20.0}}
        )
    assert await count_rows(engine, Sensor) == 0


async def test_alert_failure_does_not_fail_ingestion(engine, service, monkeypatch):
    async def _fail(self, session, user_id, sensor_id, sensor_type):
        raise RuntimeError("threshold table unavailable")

    monkeypatch.setattr(AlertEngine, "_get_threshold", _fail)

    result = await service.process(
        {"device_id": "D1", "user_id": "U1", "sensor_type": "temperature", "value": 50}
    )
    assert result.stored == 1
    assert result.alerts == []
    assert await count_rows(engine, SensorReading) == 1
