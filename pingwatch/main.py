"""FastAPI application entry point for pingwatch."""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pingwatch import __version__
from pingwatch.api import endpoints, health, stats
from pingwatch.config import Config, load_config
from pingwatch.core.engine import MonitorEngine
from pingwatch.core.metrics import MetricsCollector
from pingwatch.core.registry import InvalidURLError
from pingwatch.core.scheduler import MonitoringScheduler
from pingwatch.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def seed_endpoints(engine: MonitorEngine, config: Config) -> int:
    """
    Register endpoints listed in the configuration.

    Endpoints whose URL is already registered are left alone; invalid ones
    are logged and skipped.

    Returns:
        int: Number of endpoints added
    """
    added = 0
    for endpoint_config in config.endpoints:
        if engine.registry.find_by_url(endpoint_config.url.strip()) is not None:
            continue
        try:
            engine.add_endpoint(endpoint_config.url, endpoint_config.name)
            added += 1
        except InvalidURLError as e:
            logger.error(
                "Skipping invalid endpoint from config",
                extra={"url": endpoint_config.url, "error": str(e)}
            )

    if config.endpoints:
        logger.info(
            "Loaded endpoints from configuration",
            extra={"endpoints_created": added, "total_endpoints": len(config.endpoints)}
        )
    return added


def create_app(
    config: Optional[Config] = None,
    engine: Optional[MonitorEngine] = None
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config: Application configuration (loaded from YAML/env when None)
        engine: Pre-built engine; the lifespan builds one from config when None

    Returns:
        FastAPI: Configured application
    """
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        setup_logging(
            level=config.logging.level,
            log_format=config.logging.format,
            log_file=config.logging.file,
            console=config.logging.console
        )
        logger.info("Starting pingwatch")

        if app.state.engine is None:
            app.state.engine = MonitorEngine.from_config(config)
        monitor: MonitorEngine = app.state.engine

        await monitor.start()
        await monitor.load()
        if seed_endpoints(monitor, config):
            await monitor.save()

        app.state.metrics.attach(monitor.events, len(monitor.registry))

        if config.monitoring.scheduler_enabled:
            app.state.scheduler = MonitoringScheduler(
                monitor,
                interval_seconds=config.monitoring.probe_interval_seconds
            )
            app.state.scheduler.start()

        logger.info(
            "pingwatch started",
            extra={
                "version": __version__,
                "endpoints": len(monitor.registry),
                "storage": config.storage.type,
                "strategy": config.prober.strategy,
                "scheduler_enabled": config.monitoring.scheduler_enabled
            }
        )

        yield

        logger.info("Shutting down pingwatch")
        if app.state.scheduler is not None:
            app.state.scheduler.stop()
        await monitor.save()
        await monitor.close()
        logger.info("pingwatch shut down")

    app = FastAPI(
        title="pingwatch",
        description="Endpoint reachability and latency monitor",
        version=__version__,
        lifespan=lifespan
    )

    app.state.config = config
    app.state.engine = engine
    app.state.scheduler = None
    app.state.metrics = MetricsCollector()
    if engine is not None:
        app.state.metrics.attach(engine.events, len(engine.registry))

    if config.api.cors.enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.api.cors.allow_origins,
            allow_methods=config.api.cors.allow_methods,
            allow_headers=config.api.cors.allow_headers,
        )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Attach a request ID to every request and response."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(InvalidURLError)
    async def invalid_url_handler(request: Request, exc: InvalidURLError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Log unhandled errors and answer with a generic 500."""
        request_id = getattr(request.state, "request_id", "unknown")

        logger.exception(
            "Unhandled exception",
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method,
                "error": str(exc)
            }
        )

        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "request_id": request_id},
            headers={"X-Request-ID": request_id}
        )

    app.include_router(health.router, tags=["Health"])
    app.include_router(endpoints.router, prefix="/api/v1", tags=["Endpoints"])
    app.include_router(stats.router, prefix="/api/v1", tags=["Statistics"])

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "pingwatch",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "health": "/health"
        }

    return app


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    config = load_config()
    uvicorn.run(
        create_app(config),
        host=config.api.host,
        port=config.api.port,
        log_level=config.logging.level.lower()
    )


if __name__ == "__main__":
    run()
