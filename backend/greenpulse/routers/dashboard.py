"""Dashboard router: per-metric summaries plus the owner's devices and open alerts."""

from fastapi import APIRouter, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from greenpulse.routers.alerts import alert_out, recent_open_alerts
from greenpulse.routers.sensors import get_owned_sensor, list_owner_sensors, sensor_out
from greenpulse.schemas import DashboardResponse
from greenpulse.services.aggregation import TimeWindow, compute_dashboard


def create_router(verify_key):
    router = APIRouter(tags=["dashboard"], dependencies=[verify_key])

    @router.get("/dashboard", response_model=DashboardResponse)
    async def dashboard(
        request: Request,
        user_id: str = Query(min_length=1),
        sensor_id: int | None = Query(default=None),
        window: TimeWindow = Query(default=TimeWindow.LAST_24H, alias="range"),
    ):
        engine = request.app.state.engine
        async with AsyncSession(engine) as session:
            if sensor_id is not None:
                await get_owned_sensor(session, sensor_id, user_id)

            metrics = await compute_dashboard(session, user_id, sensor_id, window)
            sensors = await list_owner_sensors(session, user_id)
            alerts = await recent_open_alerts(session, user_id)

            return DashboardResponse(
                range=window.value,
                sensor_id=sensor_id,
                metrics=metrics,
                devices=[sensor_out(s) for s in sensors],
                alerts=[alert_out(a) for a in alerts],
            )

    return router
