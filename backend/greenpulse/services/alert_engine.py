"""Alert engine: evaluates each persisted value against the owner's thresholds.

States per (owner, sensor, sensor_type):
- Normal: no open alert
- Warning-Open / Critical-Open: one unresolved alert of that severity

Classification of a value against a threshold row:
- value < critical_min or value > critical_max -> critical
- else value < warning_min or value > warning_max -> warning
- else normal

Bounds are exclusive (a value equal to a bound is in range) and any bound
may be unset. An open alert suppresses further alerts for the same key
whatever their severity; an open warning is never escalated. Alerts are
resolved by the owner, or by an in-range value when ``auto_resolve`` is on.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from greenpulse.health import alert_evaluation_failures, alerts_fired
from greenpulse.models import Alert, SensorThreshold
from greenpulse.sensor_types import AlertSeverity, SensorType
from greenpulse.services.normalizer import ReadingEntry
from greenpulse.utils.timestamps import utc_now

logger = logging.getLogger(__name__)

LARGE_VALUE = 1e12


@dataclass(frozen=True)
class Breach:
    severity: AlertSeverity
    bound: float
    direction: str  # "above" or "below"


def evaluate_threshold(value: float, threshold) -> Breach | None:
    """Classify ``value`` against a threshold row. Returns None when in range.

    ``threshold`` is anything exposing warning_min, warning_max, critical_min
    and critical_max; None means nothing is configured.
    """
    if threshold is None:
        return None
    if threshold.critical_min is not None and value < threshold.critical_min:
        return Breach(AlertSeverity.CRITICAL, threshold.critical_min, "below")
    if threshold.critical_max is not None and value > threshold.critical_max:
        return Breach(AlertSeverity.CRITICAL, threshold.critical_max, "above")
    if threshold.warning_min is not None and value < threshold.warning_min:
        return Breach(AlertSeverity.WARNING, threshold.warning_min, "below")
    if threshold.warning_max is not None and value > threshold.warning_max:
        return Breach(AlertSeverity.WARNING, threshold.warning_max, "above")
    return None


def classify_status(value: float, threshold) -> str:
    """Dashboard status for a value: optimal, warning or critical."""
    breach = evaluate_threshold(value, threshold)
    if breach is None:
        return "optimal"
    return breach.severity.value


def _format_number(value: float) -> str:
    # sensor_alerts.message holds at most 256 characters
    if abs(value) < LARGE_VALUE:
        return f"{value:.2f}"
    return f"{value:.4g}"


def alert_message(sensor_type: SensorType, value: float, breach: Breach) -> str:
    limit = "maximum" if breach.direction == "above" else "minimum"
    verb = "exceeds" if breach.direction == "above" else "is below"
    return (
        f"{sensor_type.label} {_format_number(value)} {verb} {breach.severity.value} "
        f"{limit} {_format_number(breach.bound)}"
    )


class AlertEngine:
    """Evaluates threshold rules against freshly written readings."""

    def __init__(self, engine: AsyncEngine, *, auto_resolve: bool = False):
        self.engine = engine
        self.auto_resolve = auto_resolve

    async def check_reading(
        self, user_id: str, sensor_id: int, entries: list[ReadingEntry]
    ) -> list[dict]:
        """Evaluate every entry of one ingestion call. Returns the alerts opened.

        Each entry is evaluated in its own transaction. A failing entry is
        logged and counted and never affects the readings already committed.
        """
        alerts = []
        for entry in entries:
            try:
                alert = await self._evaluate(user_id, sensor_id, entry)
            except Exception:
                alert_evaluation_failures.labels(sensor_type=entry.sensor_type.value).inc()
                logger.exception(
                    "Threshold evaluation failed: user=%s sensor=%d type=%s",
                    user_id,
                    sensor_id,
                    entry.sensor_type.value,
                )
                continue
            if alert is not None:
                alerts.append(alert)
        return alerts

    async def _evaluate(
        self, user_id: str, sensor_id: int, entry: ReadingEntry
    ) -> dict | None:
        async with AsyncSession(self.engine) as session:
            async with session.begin():
                threshold = await self._get_threshold(
                    session, user_id, sensor_id, entry.sensor_type
                )
                breach = evaluate_threshold(entry.value, threshold)
                if breach is None:
                    if self.auto_resolve and threshold is not None:
                        await self._resolve_open(session, user_id, sensor_id, entry.sensor_type)
                    return None
                return await self._fire(session, user_id, sensor_id, entry, breach)

    async def _get_threshold(
        self,
        session: AsyncSession,
        user_id: str,
        sensor_id: int,
        sensor_type: SensorType,
    ) -> SensorThreshold | None:
        result = await session.execute(
            select(SensorThreshold).where(
                SensorThreshold.user_id == user_id,
                SensorThreshold.sensor_id == sensor_id,
                SensorThreshold.sensor_type == sensor_type.value,
            )
        )
        return result.scalar_one_or_none()

    async def _fire(
        self,
        session: AsyncSession,
        user_id: str,
        sensor_id: int,
        entry: ReadingEntry,
        breach: Breach,
    ) -> dict | None:
        """Open an alert unless one is already open for this key.

        The partial unique index on open alerts makes this a single
        conditional insert: a conflicting row means an incident is open.
        """
        now = utc_now()
        message = alert_message(entry.sensor_type, entry.value, breach)
        stmt = (
            sqlite_insert(Alert)
            .values(
                user_id=user_id,
                sensor_id=sensor_id,
                sensor_type=entry.sensor_type.value,
                severity=breach.severity.value,
                current_value=entry.value,
                threshold_value=breach.bound,
                message=message,
                is_resolved=0,
                created_at=now,
            )
            .on_conflict_do_nothing()
            .returning(Alert.id)
        )
        alert_id = (await session.execute(stmt)).scalar_one_or_none()
        if alert_id is None:
            logger.debug(
                "Open alert already exists: user=%s sensor=%d type=%s",
                user_id,
                sensor_id,
                entry.sensor_type.value,
            )
            return None

        alerts_fired.labels(
            sensor_type=entry.sensor_type.value, severity=breach.severity.value
        ).inc()
        logger.info(
            "Alert opened: sensor=%d type=%s severity=%s value=%s",
            sensor_id,
            entry.sensor_type.value,
            breach.severity.value,
            entry.value,
        )
        return {
            "id": alert_id,
            "user_id": user_id,
            "sensor_id": sensor_id,
            "sensor_type": entry.sensor_type.value,
            "severity": breach.severity.value,
            "current_value": entry.value,
            "threshold_value": breach.bound,
            "message": message,
            "created_at": now,
        }

    async def _resolve_open(
        self,
        session: AsyncSession,
        user_id: str,
        sensor_id: int,
        sensor_type: SensorType,
    ) -> None:
        result = await session.execute(
            update(Alert)
            .where(
                Alert.user_id == user_id,
                Alert.sensor_id == sensor_id,
                Alert.sensor_type == sensor_type.value,
                Alert.is_resolved == 0,
            )
            .values(is_resolved=1, resolved_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info(
                "Alert auto-resolved on recovery: sensor=%d type=%s",
                sensor_id,
                sensor_type.value,
            )
