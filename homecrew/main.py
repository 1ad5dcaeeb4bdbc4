"""FastAPI application entry point.

Run with:
    uvicorn homecrew.main:app
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from homecrew.api.exception_handlers import register_exception_handlers
from homecrew.api.middleware import RequestIDMiddleware
from homecrew.api.routes import auth, households, staff, system
from homecrew.core.config import Settings, get_settings
from homecrew.core.container import Container, wire_services
from homecrew.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle - startup and shutdown events."""
    settings: Settings = app.state.settings
    setup_logging(settings)

    container: Container = app.state.container
    # Resolve the record store eagerly so a bad database URL fails at startup
    await container.get_async("record_store")
    if container.get("auth_service").restore() is not None:
        logger.info("Restored signed-in user")
    logger.info(f"{settings.app_name} {settings.app_version} started")

    try:
        yield
    finally:
        await container.shutdown()
        logger.info("Shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its own service container."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Household staff records: households, staff members and identity documents",
        lifespan=lifespan,
    )

    container = Container()
    wire_services(container, settings)
    app.state.settings = settings
    app.state.container = container

    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)

    app.include_router(system.router)
    app.include_router(households.router)
    app.include_router(staff.router)
    app.include_router(auth.router)
    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    import uvicorn

    settings = get_settings()
    print(f"Starting HTTP server on {settings.api_host}:{settings.api_port}")
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
