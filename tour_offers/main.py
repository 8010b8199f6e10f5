"""Main application entry point."""
import logging

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tour_offers.config import settings


def configure_logging(level: str, log_format: str = "json") -> None:
    """Structured logging over stdlib ``logging``.

    ``log_format="console"`` gives readable output for local runs.
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if log_format == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))


configure_logging(settings.log_level, settings.log_format)

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Special offers and discount engine for tour bookings",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event() -> None:
    """Startup event handler."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    from tour_offers.infrastructure.database import init_db
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """Shutdown event handler."""
    logger.info("Shutting down")

    from tour_offers.api.dependencies import close_tour_client
    from tour_offers.infrastructure.database import close_db
    await close_tour_client()
    await close_db()


from tour_offers.api import admin_routes, monitoring, routes  # noqa: E402

app.include_router(routes.router)
app.include_router(admin_routes.router)
if settings.enable_metrics:
    app.include_router(monitoring.router)
else:
    app.add_api_route("/health", monitoring.health, methods=["GET"], tags=["monitoring"])


@app.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "storage": "PostgreSQL",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tour_offers.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )
