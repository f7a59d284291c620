"""Service status endpoint returning database health and row counts."""

import logging
import time
from datetime import timedelta

from fastapi import APIRouter, Request
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from greenpulse.models import Alert, Sensor, SensorReading
from greenpulse.schemas import ServiceStatusOut
from greenpulse.utils.timestamps import cutoff_before

logger = logging.getLogger(__name__)

_START_TIME = time.monotonic()


def create_router():
    router = APIRouter(tags=["status"])

    @router.get("/status", response_model=ServiceStatusOut)
    async def service_status(request: Request):
        engine = request.app.state.engine
        uptime = round(time.monotonic() - _START_TIME, 1)

        try:
            async with AsyncSession(engine) as session:
                sensor_count = (
                    await session.execute(select(func.count()).select_from(Sensor))
                ).scalar_one()

                cutoff = cutoff_before(timedelta(hours=24))
                readings_24h = (
                    await session.execute(
                        select(func.count())
                        .select_from(SensorReading)
                        .where(SensorReading.ingested_at >= cutoff)
                    )
                ).scalar_one()

                open_alerts = (
                    await session.execute(
                        select(func.count())
                        .select_from(Alert)
                        .where(Alert.is_resolved == 0)
                    )
                ).scalar_one()
        except SQLAlchemyError:
            logger.exception("Status check could not reach the database")
            return ServiceStatusOut(
                status="degraded",
                database="error",
                sensor_count=None,
                readings_24h=None,
                open_alerts=None,
                uptime_sec=uptime,
            )

        return ServiceStatusOut(
            status="ok",
            database="ok",
            sensor_count=sensor_count,
            readings_24h=readings_24h,
            open_alerts=open_alerts,
            uptime_sec=uptime,
        )

    return router
