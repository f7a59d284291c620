"""Tests for the reading normalizer."""

import re

import pytest

from greenpulse.sensor_types import MULTI_SENSOR, SensorType
from greenpulse.services.normalizer import PayloadValidationError, normalize_payload

ISO_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def _single(**overrides):
    payload = {
        "device_id": "D1",
        "user_id": "U1",
        "sensor_type": "temperature",
        "value": 22.5,
    }
    payload.update(overrides)
    return payload


def _batch(sensors, **overrides):
    payload = {"device_id": "D1", "user_id": "U1", "sensors": sensors}
    payload.update(overrides)
    return payload


# Single form
def test_single_payload():
    result = normalize_payload(_single(location="Greenhouse"))
    assert result.is_batch is False
    assert result.declared_type == "temperature"
    assert result.location == "Greenhouse"
    assert len(result.entries) == 1
    entry = result.entries[0]
    assert entry.sensor_type is SensorType.TEMPERATURE
    assert entry.value == 22.5
    assert ISO_PATTERN.match(entry.recorded_at)


@pytest.mark.parametrize("field", ["device_id", "user_id", "sensor_type", "value"])
def test_single_missing_field_rejected(field):
    payload = _single()
    del payload[field]
    with pytest.raises(PayloadValidationError) as exc_info:
        normalize_payload(payload)
    assert exc_info.value.reason == "missing_fields"
    assert exc_info.value.details["missing"] == [field]
    assert "Missing required fields" in exc_info.value.message


def test_single_null_value_rejected():
    with pytest.raises(PayloadValidationError):
        normalize_payload(_single(value=None))


def test_single_zero_value_accepted():
    result = normalize_payload(_single(value=0))
    assert result.entries[0].value == 0.0


def test_single_unknown_sensor_type_rejected():
    with pytest.raises(PayloadValidationError) as exc_info:
        normalize_payload(_single(sensor_type="battery"))
    assert exc_info.value.reason == "invalid_payload"


def test_single_non_numeric_value_rejected():
    with pytest.raises(PayloadValidationError):
        normalize_payload(_single(value="warm"))


def test_single_timestamp_canonicalized():
    result = normalize_payload(_single(timestamp="2026-05-01T10:15:00Z"))
    assert result.entries[0].recorded_at == "2026-05-01T10:15:00.000Z"


def test_offset_timestamp_converted_to_utc():
    result = normalize_payload(_single(timestamp="2026-05-01T12:15:00.250+02:00"))
    assert result.entries[0].recorded_at == "2026-05-01T10:15:00.250Z"


def test_bad_timestamp_rejected():
    with pytest.raises(PayloadValidationError) as exc_info:
        normalize_payload(_single(timestamp="yesterday"))
    assert exc_info.value.reason == "bad_timestamp"


def test_non_object_body_rejected():
    with pytest.raises(PayloadValidationError):
        normalize_payload(["not", "an", "object"])


# Batch form
def test_batch_payload():
    result = normalize_payload(
        _batch({"temperature": 35, "humidity": 90}, timestamp="2026-05-01T10:00:00Z")
    )
    assert result.is_batch is True
    assert result.declared_type == MULTI_SENSOR
    assert [e.sensor_type for e in result.entries] == [
        SensorType.TEMPERATURE,
        SensorType.HUMIDITY,
    ]
    assert {e.recorded_at for e in result.entries} == {"2026-05-01T10:00:00.000Z"}


def test_batch_null_entries_skipped():
    result = normalize_payload(
        _batch({"temperature": 20.0, "humidity": None, "ph": 6.5, "light": None})
    )
    assert [e.sensor_type for e in result.entries] == [SensorType.TEMPERATURE, SensorType.PH]


def test_batch_all_null_rejected():
    with pytest.raises(PayloadValidationError) as exc_info:
        normalize_payload(_batch({"temperature": None}))
    assert exc_info.value.reason == "empty_batch"


def test_batch_empty_mapping_rejected():
    with pytest.raises(PayloadValidationError) as exc_info:
        normalize_payload(_batch({}))
    assert exc_info.value.reason == "invalid_payload"


def test_batch_unknown_sensor_type_rejected():
    with pytest.raises(PayloadValidationError):
        normalize_payload(_batch({"temperature": 20.0, "battery": 3.7}))


def test_batch_missing_owner_rejected():
    payload = _batch({"temperature": 20.0})
    del payload["user_id"]
    with pytest.raises(PayloadValidationError) as exc_info:
        normalize_payload(payload)
    assert exc_info.value.details["missing"] == ["user_id"]


def test_batch_shares_one_receipt_timestamp():
    result = normalize_payload(_batch({"temperature": 20.0, "humidity": 60.0, "npk": 120}))
    assert len({e.recorded_at for e in result.entries}) == 1
