"""Device ingestion endpoint for single and batch sensor payloads."""

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from greenpulse.health import payloads_rejected
from greenpulse.schemas import IngestResponse
from greenpulse.services.alert_engine import AlertEngine
from greenpulse.services.ingestion import IngestionService
from greenpulse.services.normalizer import PayloadValidationError

logger = logging.getLogger(__name__)


def create_router():
    router = APIRouter(tags=["ingest"])

    @router.options("/sensor-data")
    async def sensor_data_preflight():
        return Response(status_code=200)

    @router.post("/sensor-data", response_model=IngestResponse)
    async def ingest_sensor_data(request: Request):
        try:
            body = await request.json()
        except ValueError as exc:
            payloads_rejected.labels(reason="bad_json").inc()
            raise PayloadValidationError("Request body must be valid JSON") from exc

        engine = request.app.state.engine
        service = IngestionService(
            engine,
            AlertEngine(engine, auto_resolve=request.app.state.auto_resolve_alerts),
        )
        try:
            result = await service.process(body)
        except SQLAlchemyError as exc:
            logger.exception("Error processing sensor data")
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Failed to process sensor data",
                    "code": "INTERNAL",
                    "details": str(exc),
                },
            )

        payload = result.payload
        if payload.is_batch:
            response = IngestResponse(
                message=f"Processed {result.stored} sensor readings",
                device_id=payload.device_id,
            )
        else:
            response = IngestResponse(
                message="Sensor data received and processed",
                device_id=payload.device_id,
                sensor_type=payload.entries[0].sensor_type,
            )
        return JSONResponse(content=response.model_dump(mode="json", exclude_none=True))

    return router
