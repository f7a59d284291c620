"""Reading normalizer: reshapes single and batch ingestion payloads.

A payload whose ``sensors`` member is a JSON object is the batch form;
anything else is treated as the single form. Both resolve to one
:class:`NormalizedPayload` carrying an ordered list of entries that share
one device/owner context. Nothing here touches the database.
"""

from dataclasses import dataclass, field

from pydantic import ValidationError

from greenpulse.schemas import BatchReadingIn, SingleReadingIn
from greenpulse.sensor_types import MULTI_SENSOR, SensorType
from greenpulse.utils.timestamps import parse_timestamp, utc_now

SINGLE_REQUIRED_FIELDS = ("device_id", "user_id", "sensor_type", "value")
BATCH_REQUIRED_FIELDS = ("device_id", "user_id", "sensors")


class PayloadValidationError(Exception):
    """Raised when an ingestion payload is missing or has malformed fields."""

    def __init__(self, message: str, *, reason: str = "invalid_payload", details=None):
        self.message = message
        self.reason = reason
        self.details = details or {}
        super().__init__(message)


@dataclass(frozen=True)
class ReadingEntry:
    sensor_type: SensorType
    value: float
    recorded_at: str


@dataclass
class NormalizedPayload:
    device_id: str
    user_id: str
    location: str | None
    declared_type: str
    is_batch: bool
    entries: list[ReadingEntry] = field(default_factory=list)


def is_batch_payload(body: dict) -> bool:
    return isinstance(body.get("sensors"), dict)


def normalize_payload(body: object) -> NormalizedPayload:
    """Validate an inbound message and resolve it to per-sensor-type entries."""
    if not isinstance(body, dict):
        raise PayloadValidationError("Request body must be a JSON object")

    if is_batch_payload(body):
        return _normalize_batch(body)
    return _normalize_single(body)


def _normalize_single(body: dict) -> NormalizedPayload:
    _require(body, SINGLE_REQUIRED_FIELDS)
    payload = _validate(SingleReadingIn, body)
    recorded_at = _resolve_timestamp(payload.timestamp)
    return NormalizedPayload(
        device_id=payload.device_id,
        user_id=payload.user_id,
        location=payload.location,
        declared_type=payload.sensor_type.value,
        is_batch=False,
        entries=[ReadingEntry(payload.sensor_type, payload.value, recorded_at)],
    )


def _normalize_batch(body: dict) -> NormalizedPayload:
    _require(body, BATCH_REQUIRED_FIELDS)
    payload = _validate(BatchReadingIn, body)
    recorded_at = _resolve_timestamp(payload.timestamp)

    # Null entries are skipped individually, not rejected
    entries = [
        ReadingEntry(sensor_type, value, recorded_at)
        for sensor_type, value in payload.sensors.items()
        if value is not None
    ]
    if not entries:
        raise PayloadValidationError(
            "sensors must contain at least one numeric value", reason="empty_batch"
        )

    return NormalizedPayload(
        device_id=payload.device_id,
        user_id=payload.user_id,
        location=payload.location,
        declared_type=MULTI_SENSOR,
        is_batch=True,
        entries=entries,
    )


def _require(body: dict, fields: tuple[str, ...]) -> None:
    missing = [name for name in fields if body.get(name) in (None, "")]
    if missing:
        raise PayloadValidationError(
            f"Missing required fields: {', '.join(fields)}",
            reason="missing_fields",
            details={"missing": missing},
        )


def _validate(model, body: dict):
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise PayloadValidationError(
            f"Invalid payload: {'; '.join(problems)}",
            details={"errors": problems},
        ) from exc


def _resolve_timestamp(timestamp: str | None) -> str:
    if timestamp is None:
        return utc_now()
    try:
        return parse_timestamp(timestamp)
    except ValueError as exc:
        raise PayloadValidationError(
            f"timestamp is not ISO 8601: {timestamp!r}", reason="bad_timestamp"
        ) from exc
