"""Database helpers shared by the test modules."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from greenpulse.models import SensorReading, SensorThreshold
from greenpulse.services.registry import ensure_sensor
from greenpulse.utils.timestamps import utc_now


async def make_sensor(engine, user_id="U1", device_id="D1", declared_type="multi-sensor"):
    """Register a sensor through the device registry and return its id."""
    async with AsyncSession(engine) as session:
        async with session.begin():
            return await ensure_sensor(session, user_id, device_id, declared_type)


async def make_threshold(engine, sensor_id, sensor_type, user_id="U1", **bounds):
    """Insert a threshold row directly."""
    now = utc_now()
    async with AsyncSession(engine) as session:
        session.add(
            SensorThreshold(
                user_id=user_id,
                sensor_id=sensor_id,
                sensor_type=sensor_type,
                created_at=now,
                updated_at=now,
                **bounds,
            )
        )
        await session.commit()


async def insert_reading(engine, sensor_id, recorded_at, user_id="U1", **values):
    """Insert one wide reading row directly."""
    async with AsyncSession(engine) as session:
        session.add(
            SensorReading(
                sensor_id=sensor_id,
                user_id=user_id,
                recorded_at=recorded_at,
                ingested_at=utc_now(),
                **values,
            )
        )
        await session.commit()


async def count_rows(engine, model, *conditions) -> int:
    async with AsyncSession(engine) as session:
        stmt = select(func.count()).select_from(model)
        if conditions:
            stmt = stmt.where(*conditions)
        return (await session.execute(stmt)).scalar_one()
