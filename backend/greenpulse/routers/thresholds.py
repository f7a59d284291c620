"""Thresholds router: per (owner, sensor, sensor_type) warning/critical bounds."""

from fastapi import APIRouter, Query, Request
from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from greenpulse.models import SensorThreshold
from greenpulse.routers.sensors import get_owned_sensor
from greenpulse.schemas import ThresholdIn, ThresholdOut, ThresholdsResponse
from greenpulse.sensor_types import SensorType
from greenpulse.utils.timestamps import utc_now


def _threshold_out(row: SensorThreshold) -> ThresholdOut:
    return ThresholdOut(
        id=row.id,
        sensor_id=row.sensor_id,
        sensor_type=row.sensor_type,
        warning_min=row.warning_min,
        warning_max=row.warning_max,
        critical_min=row.critical_min,
        critical_max=row.critical_max,
        updated_at=row.updated_at,
    )


def create_router(verify_key):
    router = APIRouter(tags=["thresholds"], dependencies=[verify_key])

    @router.get("/sensors/{sensor_id}/thresholds", response_model=ThresholdsResponse)
    async def list_thresholds(
        sensor_id: int, request: Request, user_id: str = Query(min_length=1)
    ):
        engine = request.app.state.engine
        async with AsyncSession(engine) as session:
            await get_owned_sensor(session, sensor_id, user_id)
            result = await session.execute(
                select(SensorThreshold)
                .where(
                    SensorThreshold.user_id == user_id,
                    SensorThreshold.sensor_id == sensor_id,
                )
                .order_by(SensorThreshold.sensor_type)
            )
            return ThresholdsResponse(
                items=[_threshold_out(t) for t in result.scalars().all()]
            )

    @router.put(
        "/sensors/{sensor_id}/thresholds/{sensor_type}", response_model=ThresholdOut
    )
    async def upsert_threshold(
        sensor_id: int,
        sensor_type: SensorType,
        body: ThresholdIn,
        request: Request,
        user_id: str = Query(min_length=1),
    ):
        """Create or replace the bounds for one sensor type.

        Unset bounds in the body clear any previous value.
        """
        engine = request.app.state.engine
        now = utc_now()
        bounds = body.model_dump()
        async with AsyncSession(engine) as session:
            async with session.begin():
                await get_owned_sensor(session, sensor_id, user_id)
                stmt = sqlite_insert(SensorThreshold).values(
                    user_id=user_id,
                    sensor_id=sensor_id,
                    sensor_type=sensor_type.value,
                    created_at=now,
                    updated_at=now,
                    **bounds,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[
                        SensorThreshold.user_id,
                        SensorThreshold.sensor_id,
                        SensorThreshold.sensor_type,
                    ],
                    set_={**bounds, "updated_at": now},
                ).returning(SensorThreshold.id)
                threshold_id = (await session.execute(stmt)).scalar_one()

            row = await session.get(SensorThreshold, threshold_id, populate_existing=True)
            return _threshold_out(row)

    return router
