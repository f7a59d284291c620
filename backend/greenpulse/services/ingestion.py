"""Ingestion service: normalize -> register device -> persist -> alert."""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from greenpulse.health import payloads_rejected, readings_ingested
from greenpulse.services.alert_engine import AlertEngine
from greenpulse.services.normalizer import (
    NormalizedPayload,
    PayloadValidationError,
    normalize_payload,
)
from greenpulse.services.registry import ensure_sensor
from greenpulse.services.timeseries import append_readings

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    payload: NormalizedPayload
    sensor_id: int
    stored: int
    alerts: list[dict] = field(default_factory=list)


class IngestionService:
    """Processes device messages through the validation/storage/alerting pipeline."""

    def __init__(self, engine: AsyncEngine, alert_engine: AlertEngine):
        self.engine = engine
        self.alert_engine = alert_engine

    async def process(self, body: object) -> IngestResult:
        """Process one single or batch message.

        Raises PayloadValidationError before any write, and lets store
        errors (SQLAlchemyError) propagate after rolling back both the
        sensor upsert and the reading rows. Alerting runs after commit and
        cannot fail the call.
        """
        try:
            payload = normalize_payload(body)
        except PayloadValidationError as exc:
            payloads_rejected.labels(reason=exc.reason).inc()
            logger.warning("Rejected sensor payload: %s", exc.message)
            raise

        async with AsyncSession(self.engine) as session:
            async with session.begin():
                sensor_id = await ensure_sensor(
                    session,
                    payload.user_id,
                    payload.device_id,
                    payload.declared_type,
                    payload.location,
                )
                stored = await append_readings(
                    session, sensor_id, payload.user_id, payload.entries
                )

        for entry in payload.entries:
            readings_ingested.labels(sensor_type=entry.sensor_type.value).inc()
        logger.info(
            "Stored %d reading value(s): device=%s sensor=%d",
            stored,
            payload.device_id,
            sensor_id,
        )

        alerts = await self.alert_engine.check_reading(
            payload.user_id, sensor_id, payload.entries
        )
        return IngestResult(payload=payload, sensor_id=sensor_id, stored=stored, alerts=alerts)
