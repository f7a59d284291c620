"""Device registry: maps (device_id, owner) onto a durable Sensor row."""

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from greenpulse.models import Sensor
from greenpulse.sensor_types import MULTI_SENSOR, SensorStatus, SensorType
from greenpulse.utils.timestamps import utc_now

DEFAULT_LOCATION = "Unknown"
SENSOR_NAME_MAX_LENGTH = 128


def default_sensor_name(device_id: str, declared_type: str) -> str:
    if declared_type == MULTI_SENSOR:
        return f"Device {device_id}"[:SENSOR_NAME_MAX_LENGTH]
    return f"{SensorType(declared_type).label} Sensor"


async def ensure_sensor(
    session: AsyncSession,
    user_id: str,
    device_id: str,
    declared_type: str,
    location: str | None = None,
) -> int:
    """Create or refresh the Sensor for (device_id, user_id) and return its id.

    A single INSERT .. ON CONFLICT DO UPDATE .. RETURNING statement, so two
    racing messages from the same device cannot create two rows. A first
    sighting is created ``active``; later sightings mark it active again,
    bump ``updated_at`` and replace the location only when one was sent.
    The caller owns the transaction.
    """
    now = utc_now()
    stmt = sqlite_insert(Sensor).values(
        user_id=user_id,
        device_id=device_id,
        sensor_name=default_sensor_name(device_id, declared_type),
        sensor_type=declared_type,
        location=location or DEFAULT_LOCATION,
        status=SensorStatus.ACTIVE.value,
        created_at=now,
        updated_at=now,
    )
    refreshed = {
        "status": SensorStatus.ACTIVE.value,
        "updated_at": stmt.excluded.updated_at,
    }
    if location:
        refreshed["location"] = stmt.excluded.location
    stmt = stmt.on_conflict_do_update(
        index_elements=[Sensor.device_id, Sensor.user_id],
        set_=refreshed,
    ).returning(Sensor.id)

    result = await session.execute(stmt)
    return result.scalar_one()
