"""Tests for dashboard aggregation and trend classification."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from greenpulse.services.aggregation import (
    OFFLINE_VALUE,
    TimeWindow,
    calculate_trend,
    compute_dashboard,
    format_value,
)
from greenpulse.utils.timestamps import format_ts
from tests.helpers import insert_reading, make_sensor, make_threshold

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


def _ago(**kwargs) -> str:
    return format_ts(NOW - timedelta(**kwargs))


async def _dashboard(engine, user_id="U1", sensor_id=None, window=TimeWindow.LAST_24H):
    async with AsyncSession(engine) as session:
        metrics = await compute_dashboard(session, user_id, sensor_id, window, now=NOW)
    return {m.sensor_type.value: m for m in metrics}


# --- trend ---


@pytest.mark.parametrize(
    "values, expected",
    [
        ([10.0] * 7 + [15.0] * 3, "up"),
        ([20.0] * 10, "stable"),
        ([20.0] * 7 + [10.0] * 3, "down"),
        ([20.0] * 7 + [20.5] * 3, "stable"),
        ([], "stable"),
        ([42.0], "stable"),
        ([10.0, 20.0], "up"),
        ([20.0, 10.0], "down"),
        ([0.0, 0.0, 0.0, 0.0], "stable"),
        ([0.0, 0.0, 5.0], "up"),
        ([0.0, 0.0, -5.0], "down"),
        ([-10.0] * 7 + [-5.0] * 3, "up"),
    ],
)
def test_calculate_trend(values, expected):
    assert calculate_trend(values) == expected


def test_trend_only_uses_last_ten_values():
    # The leading spike would drag the earlier mean up if it were counted
    values = [1000.0] * 5 + [20.0] * 7 + [20.5] * 3
    assert calculate_trend(values) == "stable"


def test_format_value():
    assert format_value(23.456, "°C") == "23.5°C"
    assert format_value(0, "%") == "0.0%"


def test_window_deltas():
    assert TimeWindow("24h").delta == timedelta(hours=24)
    assert TimeWindow("7d").delta == timedelta(days=7)
    assert TimeWindow("30d").delta == timedelta(days=30)


# --- dashboard ---


async def test_no_readings_is_offline(engine):
    metrics = await _dashboard(engine)
    assert list(metrics) == ["temperature", "humidity", "soil_moisture", "light"]
    for metric in metrics.values():
        assert metric.value == OFFLINE_VALUE
        assert metric.status == "offline"
        assert metric.trend == "stable"
        assert metric.latest_value is None
    assert metrics["temperature"].range == "18-28°C"
    assert metrics["light"].name == "Light Level"


async def test_latest_value_and_trend(engine):
    sensor_id = await make_sensor(engine)
    for minutes, value in enumerate([20.0] * 7 + [24.0] * 3):
        await insert_reading(
            engine, sensor_id, _ago(minutes=60 - minutes), temperature=value
        )

    temperature = (await _dashboard(engine))["temperature"]
    assert temperature.value == "24.0°C"
    assert temperature.latest_value == 24.0
    assert temperature.latest_at == _ago(minutes=51)
    assert temperature.status == "optimal"
    assert temperature.trend == "up"


async def test_readings_outside_window_excluded(engine):
    sensor_id = await make_sensor(engine)
    await insert_reading(engine, sensor_id, _ago(days=2), temperature=30.0)

    assert (await _dashboard(engine))["temperature"].status == "offline"
    week = await _dashboard(engine, window=TimeWindow.LAST_7D)
    assert week["temperature"].value == "30.0°C"


async def test_sparse_rows_do_not_hide_values(engine):
    sensor_id = await make_sensor(engine)
    await insert_reading(engine, sensor_id, _ago(hours=3), humidity=65.0)
    for minutes in range(12):
        await insert_reading(engine, sensor_id, _ago(minutes=minutes), temperature=21.0)

    metrics = await _dashboard(engine)
    assert metrics["humidity"].value == "65.0%"
    assert metrics["temperature"].value == "21.0°C"
    assert metrics["soil_moisture"].status == "offline"


async def test_light_reads_light_level_column(engine):
    sensor_id = await make_sensor(engine)
    await insert_reading(engine, sensor_id, _ago(minutes=5), light_level=82.5)
    assert (await _dashboard(engine))["light"].value == "82.5%"


async def test_status_from_threshold(engine):
    sensor_id = await make_sensor(engine)
    await make_threshold(
        engine, sensor_id, "temperature", warning_max=28.0, critical_max=32.0
    )
    await make_threshold(engine, sensor_id, "humidity", warning_max=80.0)
    await insert_reading(
        engine, sensor_id, _ago(minutes=5), temperature=35.0, humidity=85.0
    )

    metrics = await _dashboard(engine)
    assert metrics["temperature"].status == "critical"
    assert metrics["humidity"].status == "warning"


async def test_sensor_filter(engine):
    first = await make_sensor(engine, device_id="D1")
    second = await make_sensor(engine, device_id="D2")
    await insert_reading(engine, first, _ago(minutes=10), temperature=18.0)
    await insert_reading(engine, second, _ago(minutes=5), temperature=26.0)

    assert (await _dashboard(engine))["temperature"].value == "26.0°C"
    assert (await _dashboard(engine, sensor_id=first))["temperature"].value == "18.0°C"


async def test_other_owner_readings_excluded(engine):
    sensor_id = await make_sensor(engine, user_id="U2")
    await insert_reading(engine, sensor_id, _ago(minutes=5), user_id="U2", temperature=22.0)
    assert (await _dashboard(engine, user_id="U1"))["temperature"].status == "offline"
