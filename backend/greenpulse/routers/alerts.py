"""Alerts router: owner-scoped listing and explicit resolution."""

from fastapi import APIRouter, HTTPException, Query, Request
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from greenpulse.models import Alert
from greenpulse.schemas import AlertOut, AlertsResponse
from greenpulse.sensor_types import AlertSeverity
from greenpulse.utils.timestamps import utc_now


def alert_out(alert: Alert) -> AlertOut:
    """Convert an Alert ORM instance to an AlertOut schema."""
    return AlertOut(
        id=alert.id,
        sensor_id=alert.sensor_id,
        sensor_type=alert.sensor_type,
        severity=alert.severity,
        current_value=alert.current_value,
        threshold_value=alert.threshold_value,
        message=alert.message,
        is_resolved=bool(alert.is_resolved),
        created_at=alert.created_at,
        resolved_at=alert.resolved_at,
    )


async def recent_open_alerts(
    session: AsyncSession, user_id: str, limit: int = 10
) -> list[Alert]:
    result = await session.execute(
        select(Alert)
        .where(Alert.user_id == user_id, Alert.is_resolved == 0)
        .order_by(desc(Alert.created_at), desc(Alert.id))
        .limit(limit)
    )
    return list(result.scalars().all())


def create_router(verify_key):
    router = APIRouter(tags=["alerts"], dependencies=[verify_key])

    @router.get("/alerts", response_model=AlertsResponse)
    async def list_alerts(
        request: Request,
        user_id: str = Query(min_length=1),
        resolved: bool | None = Query(default=False),
        sensor_id: int | None = Query(default=None),
        severity: AlertSeverity | None = Query(default=None),
        limit: int = Query(default=10, ge=1, le=200),
    ):
        engine = request.app.state.engine
        async with AsyncSession(engine) as session:
            conditions = [Alert.user_id == user_id]
            if resolved is not None:
                conditions.append(Alert.is_resolved == (1 if resolved else 0))
            if sensor_id is not None:
                conditions.append(Alert.sensor_id == sensor_id)
            if severity is not None:
                conditions.append(Alert.severity == severity.value)

            total = (
                await session.execute(
                    select(func.count()).select_from(Alert).where(*conditions)
                )
            ).scalar_one()

            result = await session.execute(
                select(Alert)
                .where(*conditions)
                .order_by(desc(Alert.created_at), desc(Alert.id))
                .limit(limit)
            )
            return AlertsResponse(
                items=[alert_out(a) for a in result.scalars().all()],
                total=total,
                limit=limit,
            )

    @router.patch("/alerts/{alert_id}/resolve", response_model=AlertOut)
    async def resolve_alert(
        alert_id: int, request: Request, user_id: str = Query(min_length=1)
    ):
        engine = request.app.state.engine
        async with AsyncSession(engine) as session:
            result = await session.execute(
                select(Alert).where(Alert.id == alert_id, Alert.user_id == user_id)
            )
            alert = result.scalar_one_or_none()
            if alert is None:
                raise HTTPException(status_code=404, detail="Alert not found")

            # Idempotent: only update if still open
            if not alert.is_resolved:
                alert.is_resolved = 1
                alert.resolved_at = utc_now()
                await session.commit()
                await session.refresh(alert)

            return alert_out(alert)

    return router
