"""Entry point: python -m greenpulse [api|initdb]"""

import asyncio
import sys

import uvicorn

from greenpulse.config import Settings
from greenpulse.logging_config import configure_logging


def run_api():
    settings = Settings()
    configure_logging("api", settings.LOG_LEVEL)
    from greenpulse.main import create_app

    app = create_app(
        db_url=settings.DB_URL,
        api_key=settings.API_KEY,
        cors_origins=settings.CORS_ORIGINS,
        auto_resolve_alerts=settings.AUTO_RESOLVE_ALERTS,
    )
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT, log_config=None)


def run_initdb():
    settings = Settings()
    configure_logging("initdb", settings.LOG_LEVEL)

    from greenpulse.database import create_engine_from_url, init_db

    async def _init():
        engine = create_engine_from_url(settings.DB_URL)
        await init_db(engine)
        await engine.dispose()

    asyncio.run(_init())
    print(f"Initialized database at {settings.DB_PATH}")


def main():
    command = sys.argv[1] if len(sys.argv) > 1 else "api"

    if command == "api":
        run_api()
    elif command == "initdb":
        run_initdb()
    else:
        print(f"Unknown command: {command}")
        print("Usage: python -m greenpulse [api|initdb]")
        sys.exit(1)


if __name__ == "__main__":
    main()
