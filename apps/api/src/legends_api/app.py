from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from legends_api.core.settings import settings
from legends_api.db.session import async_session, create_schema
from .api.routes import api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing
from .services.errors import LoyaltyError
from .services.settings_service import SettingsService


APP_VERSION = "0.1.0"
SERVICE_NAME = "legends-loyalty-api"


async def seed_program_settings(session_factory=async_session) -> None:
    """Create the App Settings singleton if missing; failures only warn."""

    try:
        async with session_factory() as session:
            await SettingsService(session).seed_defaults()
    except SQLAlchemyError as error:
        logger.warning("Failed to seed App Settings", error=str(error))


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.environment == "development":
        try:
            await create_schema()
        except SQLAlchemyError as error:
            logger.warning("Schema bootstrap failed", error=str(error))
    await seed_program_settings()
    yield


async def handle_loyalty_error(request: Request, exc: LoyaltyError) -> JSONResponse:
    logger.info(
        "Request rejected",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": {"code": exc.code, "message": exc.message}},
    )


def create_app() -> FastAPI:
    """Application factory for the Legends loyalty API."""
    configure_logging(
        service_name=SERVICE_NAME,
        environment=settings.environment,
        version=APP_VERSION,
        level=settings.log_level,
    )

    app = FastAPI(
        title="Legends Loyalty API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    if settings.tracing_enabled:
        configure_tracing(
            app,
            service_name=SERVICE_NAME,
            service_version=APP_VERSION,
            environment=settings.environment,
        )

    app.add_exception_handler(LoyaltyError, handle_loyalty_error)
    app.include_router(api_router)

    @app.get("/healthz", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": APP_VERSION,
        }

    return app
