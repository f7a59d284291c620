"""Time-series writer: appends immutable wide reading rows."""

from collections.abc import Iterable

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from greenpulse.models import SensorReading
from greenpulse.sensor_types import READING_COLUMNS
from greenpulse.services.normalizer import ReadingEntry
from greenpulse.utils.timestamps import utc_now


def fold_entries(entries: Iterable[ReadingEntry]) -> list[dict[str, float | str | None]]:
    """Fold entries into wide rows, one per timestamp.

    A second value for a column already set at the same timestamp starts a
    new row rather than overwriting the first.
    """
    rows: list[dict[str, float | str | None]] = []
    open_rows: dict[str, dict[str, float | str | None]] = {}
    for entry in entries:
        column = entry.sensor_type.column
        row = open_rows.get(entry.recorded_at)
        if row is None or row[column] is not None:
            row = {name: None for name in READING_COLUMNS}
            row["recorded_at"] = entry.recorded_at
            open_rows[entry.recorded_at] = row
            rows.append(row)
        row[column] = entry.value
    return rows


async def append_readings(
    session: AsyncSession,
    sensor_id: int,
    user_id: str,
    entries: list[ReadingEntry],
) -> int:
    """Write every entry for one sensor and return how many values were stored.

    Runs inside the caller's transaction so the batch lands all-or-nothing.
    """
    rows = fold_entries(entries)
    if not rows:
        return 0

    ingested_at = utc_now()
    for row in rows:
        row["sensor_id"] = sensor_id
        row["user_id"] = user_id
        row["ingested_at"] = ingested_at

    await session.execute(insert(SensorReading), rows)
    return len(entries)
