"""Dashboard aggregation: latest value, status and trend per tracked metric.

Read-only. For each tracked sensor type the newest readings in the window
that carry a value for that type are fetched (at most TREND_SAMPLE_SIZE),
the newest one supplies the displayed value and status, and the sample
in chronological order feeds :func:`calculate_trend`.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from statistics import fmean

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from greenpulse.models import SensorReading, SensorThreshold
from greenpulse.schemas import MetricSummary
from greenpulse.sensor_types import SensorType
from greenpulse.services.alert_engine import classify_status
from greenpulse.utils.timestamps import cutoff_before

TREND_SAMPLE_SIZE = 10
TREND_RECENT_COUNT = 3
TREND_CHANGE_PCT = 5.0
OFFLINE_VALUE = "--"


class TimeWindow(StrEnum):
    LAST_24H = "24h"
    LAST_7D = "7d"
    LAST_30D = "30d"

    @property
    def delta(self) -> timedelta:
        return {
            TimeWindow.LAST_24H: timedelta(hours=24),
            TimeWindow.LAST_7D: timedelta(days=7),
            TimeWindow.LAST_30D: timedelta(days=30),
        }[self]


@dataclass(frozen=True)
class TrackedMetric:
    sensor_type: SensorType
    name: str
    unit: str
    optimal_range: str


TRACKED_METRICS = (
    TrackedMetric(SensorType.TEMPERATURE, "Temperature", "°C", "18-28°C"),
    TrackedMetric(SensorType.HUMIDITY, "Humidity", "%", "60-80%"),
    TrackedMetric(SensorType.SOIL_MOISTURE, "Soil Moisture", "%", "40-60%"),
    TrackedMetric(SensorType.LIGHT, "Light Level", "%", "70-100%"),
)


def calculate_trend(values: list[float]) -> str:
    """Classify a chronological series (oldest first) as up, down or stable.

    Only the last TREND_SAMPLE_SIZE values count. The mean of the most
    recent values (up to TREND_RECENT_COUNT, always leaving at least one
    earlier value) is compared with the mean of the earlier ones; a change
    beyond TREND_CHANGE_PCT percent either way is a trend.
    """
    values = values[-TREND_SAMPLE_SIZE:]
    if len(values) < 2:
        return "stable"

    # Two or three points keep one earlier value instead of comparing against
    # an empty, zero-mean earlier group
    recent_count = min(TREND_RECENT_COUNT, len(values) - 1)
    recent = fmean(values[-recent_count:])
    earlier = fmean(values[:-recent_count])

    if earlier == 0:
        # Percentage change is undefined against a zero baseline
        if recent > 0:
            return "up"
        if recent < 0:
            return "down"
        return "stable"

    change = (recent - earlier) / abs(earlier) * 100
    if change > TREND_CHANGE_PCT:
        return "up"
    if change < -TREND_CHANGE_PCT:
        return "down"
    return "stable"


def format_value(value: float, unit: str) -> str:
    return f"{value:.1f}{unit}"


async def load_thresholds(
    session: AsyncSession, user_id: str, sensor_id: int | None = None
) -> dict[str, SensorThreshold]:
    """Thresholds keyed by sensor type.

    Without a sensor filter an owner may have one row per sensor for the same
    type; the most recently updated one wins.
    """
    stmt = select(SensorThreshold).where(SensorThreshold.user_id == user_id)
    if sensor_id is not None:
        stmt = stmt.where(SensorThreshold.sensor_id == sensor_id)
    stmt = stmt.order_by(SensorThreshold.updated_at, SensorThreshold.id)
    rows = (await session.execute(stmt)).scalars().all()
    return {row.sensor_type: row for row in rows}


async def compute_dashboard(
    session: AsyncSession,
    user_id: str,
    sensor_id: int | None = None,
    window: TimeWindow = TimeWindow.LAST_24H,
    *,
    now: datetime | None = None,
) -> list[MetricSummary]:
    """Summarize the owner's readings in ``window``, optionally for one sensor."""
    cutoff = cutoff_before(window.delta, now=now)
    thresholds = await load_thresholds(session, user_id, sensor_id)

    metrics = []
    for metric in TRACKED_METRICS:
        column = getattr(SensorReading, metric.sensor_type.column)
        stmt = select(SensorReading.recorded_at, column.label("value")).where(
            SensorReading.user_id == user_id,
            SensorReading.recorded_at >= cutoff,
            column.isnot(None),
        )
        if sensor_id is not None:
            stmt = stmt.where(SensorReading.sensor_id == sensor_id)
        stmt = stmt.order_by(
            desc(SensorReading.recorded_at), desc(SensorReading.id)
        ).limit(TREND_SAMPLE_SIZE)
        rows = (await session.execute(stmt)).all()

        metrics.append(_summarize(metric, rows, thresholds.get(metric.sensor_type.value)))
    return metrics


def _summarize(metric: TrackedMetric, rows, threshold) -> MetricSummary:
    if not rows:
        return MetricSummary(
            sensor_type=metric.sensor_type,
            name=metric.name,
            value=OFFLINE_VALUE,
            latest_value=None,
            latest_at=None,
            range=metric.optimal_range,
            status="offline",
            trend="stable",
        )

    latest = rows[0]
    chronological = [row.value for row in reversed(rows)]
    return MetricSummary(
        sensor_type=metric.sensor_type,
        name=metric.name,
        value=format_value(latest.value, metric.unit),
        latest_value=latest.value,
        latest_at=latest.recorded_at,
        range=metric.optimal_range,
        status=classify_status(latest.value, threshold),
        trend=calculate_trend(chronological),
    )
