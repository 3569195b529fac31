from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from modmarket.core.config import get_app_settings
from modmarket.core.root_logger import get_logger
from modmarket.core.settings.static import APP_VERSION
from modmarket.routes import router
from modmarket.routes.handlers import register_debug_handler

settings = get_app_settings()

logger = get_logger()

description = f"""
    Search API for the modified vehicle marketplace.

    **{APP_VERSION}**
"""


@asynccontextmanager
async def lifespan_fn(_: FastAPI) -> AsyncGenerator[None, None]:
    """
    lifespan_fn controls the startup and shutdown of the FastAPI Application.
    The database schema is created before the first request is served.
    """
    from modmarket.db import init_db

    logger.info("------SYSTEM STARTUP------")
    init_db.main()

    logger.info("------APP SETTINGS------")
    logger.info(settings.model_dump_json(indent=2, exclude={"DB_PROVIDER"}))
    logger.info(f"Database: {settings.DB_URL_PUBLIC}")

    yield

    logger.info("------SYSTEM SHUTDOWN------")


app = FastAPI(
    title="modmarket",
    description=description,
    version=APP_VERSION,
    docs_url=settings.DOCS_URL,
    redoc_url=settings.REDOC_URL,
    lifespan=lifespan_fn,
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

if not settings.PRODUCTION:
    allowed_origins = ["http://localhost:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_debug_handler(app)


def api_routers():
    app.include_router(router)


api_routers()


def main():
    uvicorn.run(
        "modmarket.app:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=not settings.PRODUCTION,
        reload_dirs=["modmarket"],
        reload_delay=2,
        log_level=settings.LOG_LEVEL.lower(),
        use_colors=True,
        log_config=None,
        workers=1,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
