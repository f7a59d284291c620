"""Sensors router: owner-scoped registration, listing, deletion and readings."""

from fastapi import APIRouter, HTTPException, Query, Request, Response
from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from greenpulse.models import Sensor, SensorReading
from greenpulse.schemas import (
    ReadingOut,
    ReadingsResponse,
    SensorCreate,
    SensorOut,
    SensorsResponse,
)
from greenpulse.sensor_types import SensorStatus
from greenpulse.services.registry import DEFAULT_LOCATION
from greenpulse.utils.timestamps import utc_now


async def get_owned_sensor(session: AsyncSession, sensor_id: int, user_id: str) -> Sensor:
    """Return the sensor, or raise 404 if it does not exist for this owner."""
    result = await session.execute(
        select(Sensor).where(Sensor.id == sensor_id, Sensor.user_id == user_id)
    )
    sensor = result.scalar_one_or_none()
    if sensor is None:
        raise HTTPException(status_code=404, detail="Sensor not found")
    return sensor


def sensor_out(sensor: Sensor) -> SensorOut:
    return SensorOut(
        id=sensor.id,
        user_id=sensor.user_id,
        device_id=sensor.device_id,
        sensor_name=sensor.sensor_name,
        sensor_type=sensor.sensor_type,
        location=sensor.location,
        status=sensor.status,
        created_at=sensor.created_at,
        updated_at=sensor.updated_at,
    )


def _reading_out(row: SensorReading) -> ReadingOut:
    return ReadingOut(
        id=row.id,
        sensor_id=row.sensor_id,
        recorded_at=row.recorded_at,
        temperature=row.temperature,
        humidity=row.humidity,
        soil_moisture=row.soil_moisture,
        ph_level=row.ph_level,
        nutrients=row.nutrients,
        light_level=row.light_level,
    )


async def list_owner_sensors(session: AsyncSession, user_id: str) -> list[Sensor]:
    result = await session.execute(
        select(Sensor)
        .where(Sensor.user_id == user_id)
        .order_by(desc(Sensor.created_at), desc(Sensor.id))
    )
    return list(result.scalars().all())


def create_router(verify_key):
    router = APIRouter(tags=["sensors"], dependencies=[verify_key])

    @router.get("/sensors", response_model=SensorsResponse)
    async def list_sensors(request: Request, user_id: str = Query(min_length=1)):
        engine = request.app.state.engine
        async with AsyncSession(engine) as session:
            sensors = await list_owner_sensors(session, user_id)
            return SensorsResponse(
                items=[sensor_out(s) for s in sensors], total=len(sensors)
            )

    @router.post("/sensors", response_model=SensorOut, status_code=201)
    async def create_sensor(body: SensorCreate, request: Request):
        engine = request.app.state.engine
        now = utc_now()
        async with AsyncSession(engine) as session:
            sensor = Sensor(
                user_id=body.user_id,
                device_id=body.device_id,
                sensor_name=body.sensor_name,
                sensor_type=body.sensor_type,
                location=body.location or DEFAULT_LOCATION,
                status=SensorStatus.ACTIVE.value,
                created_at=now,
                updated_at=now,
            )
            session.add(sensor)
            try:
                await session.commit()
            except IntegrityError:
                raise HTTPException(
                    status_code=409,
                    detail="A sensor with this device_id is already registered",
                )
            await session.refresh(sensor)
            return sensor_out(sensor)

    @router.delete("/sensors/{sensor_id}", status_code=204)
    async def delete_sensor(
        sensor_id: int, request: Request, user_id: str = Query(min_length=1)
    ):
        engine = request.app.state.engine
        async with AsyncSession(engine) as session:
            sensor = await get_owned_sensor(session, sensor_id, user_id)
            # Readings, thresholds and alerts go with it (ON DELETE CASCADE)
            await session.delete(sensor)
            await session.commit()
            return Response(status_code=204)

    @router.get("/sensors/{sensor_id}/readings", response_model=ReadingsResponse)
    async def list_readings(
        sensor_id: int,
        request: Request,
        user_id: str = Query(min_length=1),
        limit: int = Query(default=50, ge=1, le=500),
    ):
        engine = request.app.state.engine
        async with AsyncSession(engine) as session:
            await get_owned_sensor(session, sensor_id, user_id)
            result = await session.execute(
                select(SensorReading)
                .where(SensorReading.sensor_id == sensor_id)
                .order_by(desc(SensorReading.recorded_at), desc(SensorReading.id))
                .limit(limit)
            )
            rows = result.scalars().all()
            return ReadingsResponse(items=[_reading_out(r) for r in rows], limit=limit)

    return router
