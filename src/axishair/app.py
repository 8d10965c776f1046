"""FastAPI application factory."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from axishair.api.routes import consultations, dashboard
from axishair.core import timezone  # noqa: F401
from axishair.core.config import Settings, configure_logging
from axishair.core.database import setup_db_session
from axishair.generation.monitor import GenerationMonitor
from axishair.generation.policy import PollingPolicy
from axishair.generation.reader import ConsultationStateReader
from axishair.services.edge_functions.client import EdgeFunctionClient
from axishair.uow import create_uow_factory

logger = structlog.get_logger()


def create_generation_monitor(settings: Settings, session_factory) -> GenerationMonitor:
    """Wire the edge function trigger and the consultation reader into a monitor."""
    return GenerationMonitor(
        trigger=EdgeFunctionClient(
            base_url=settings.supabase_url,
            service_key=settings.supabase_service_role_key,
            timeout=settings.edge_function_timeout_seconds,
        ),
        reader=ConsultationStateReader(session_factory),
        policy=PollingPolicy.from_settings(settings),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles startup and shutdown tasks:
    - Startup: Configure logging, initialize database session factory, create the generation monitor
    - Shutdown: Stop every generation watcher (edge jobs keep running remotely)
    """
    settings = Settings()  # type: ignore[call-arg]

    configure_logging(settings)

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    uow_factory = create_uow_factory(session_factory)
    monitor = create_generation_monitor(settings, session_factory)

    # Store in app.state for access in routes
    app.state.session_factory = session_factory
    app.state.uow_factory = uow_factory
    app.state.generation_monitor = monitor

    logger.info(
        "application.startup",
        db_url=settings.database_url.split("@")[-1],
        poll_interval=monitor.policy.interval_seconds,
        generation_timeout=monitor.policy.timeout_seconds,
    )

    yield

    logger.info("application.shutdown")
    await monitor.shutdown()


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="AXIS HAIR Backend API",
        description="Stylist consultations with AI recommendations and previews",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers carry their own /api/... prefixes
    app.include_router(consultations.router)
    app.include_router(dashboard.router)

    # Health check endpoint with database validation
    @app.get("/health")
    async def health_check(response: Response):
        """Health check endpoint with database connectivity test.

        Returns:
            200: {"status": "healthy"} if database connection succeeds
            503: {"status": "unhealthy", "error": {...}} if database connection fails
        """
        try:
            async with app.state.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()

            logger.debug("health_check.success")
            return {"status": "healthy"}

        except Exception as e:
            logger.error(
                "health_check.failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return {
                "status": "unhealthy",
                "error": {
                    "type": type(e).__name__,
                    "message": str(e),
                },
            }

    return app


# Create app instance for uvicorn
app = create_app()
