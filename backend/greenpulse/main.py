"""FastAPI application factory.

Every JSON error leaves through one envelope:
``{"error": <message>, "code": <CODE>, "details": ...}``.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from greenpulse.auth import create_api_key_dependency, install_auth_error_handler
from greenpulse.database import create_engine_from_url, init_db
from greenpulse.services.normalizer import PayloadValidationError

CORS_ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
CORS_ALLOWED_HEADERS = [
    "authorization",
    "x-client-info",
    "apikey",
    "content-type",
    "x-api-key",
]

ERROR_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    503: "DB_BUSY",
}


def error_response(status_code: int, code: str, message: str, details=None):
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "code": code, "details": details or {}},
    )


def install_error_handlers(app: FastAPI) -> None:
    """Map HTTP, request-model and payload errors onto the error envelope."""

    async def on_http_error(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return error_response(
            exc.status_code, ERROR_CODES.get(exc.status_code, "INTERNAL"), message
        )

    async def on_request_validation_error(request: Request, exc: RequestValidationError):
        # ctx may hold the raised exception object, which is not JSON serializable
        errors = [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]
        return error_response(
            422,
            ERROR_CODES[422],
            "Request validation failed",
            {"errors": jsonable_encoder(errors)},
        )

    async def on_payload_error(request: Request, exc: PayloadValidationError):
        return error_response(400, ERROR_CODES[400], exc.message, exc.details)

    app.add_exception_handler(StarletteHTTPException, on_http_error)
    app.add_exception_handler(RequestValidationError, on_request_validation_error)
    app.add_exception_handler(PayloadValidationError, on_payload_error)
    install_auth_error_handler(app)


def create_app(
    *,
    db_url: str = "",
    api_key: str = "",
    cors_origins: list[str] | None = None,
    auto_resolve_alerts: bool = False,
) -> FastAPI:
    """Build the API.

    Without ``db_url`` no engine is created and the caller is expected to
    set ``app.state.engine`` itself (tests do this).
    """
    engine = create_engine_from_url(db_url) if db_url else None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if engine is not None:
            await init_db(engine)
        yield
        if engine is not None:
            await engine.dispose()

    app = FastAPI(
        title="GreenPulse",
        lifespan=lifespan,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )
    app.state.engine = engine
    app.state.auto_resolve_alerts = auto_resolve_alerts

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins is not None else ["*"],
        allow_methods=CORS_ALLOWED_METHODS,
        allow_headers=CORS_ALLOWED_HEADERS,
    )
    install_error_handlers(app)

    from greenpulse.routers import alerts, dashboard, ingest, sensors, status, thresholds

    verify_key = create_api_key_dependency(api_key)
    for router in (
        ingest.create_router(),
        sensors.create_router(verify_key),
        thresholds.create_router(verify_key),
        alerts.create_router(verify_key),
        dashboard.create_router(verify_key),
        status.create_router(),
    ):
        app.include_router(router, prefix="/api")

    return app
