"""
FastAPI Application Entry Point - Notification Gateway

Integrates:
  - WhatsApp connection lifecycle (started/stopped with the app)
  - POST /notify and GET /status
  - Health checks
  - Middleware for logging & error handling

Run: uvicorn main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api import gateway_router, install_error_handlers
from config import Config
from connection import ConnectionManager
from infra import ConfigError, GatewayConfig, HealthChecker, bootstrap_gateway

# Setup logging
logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _attach(app: FastAPI, manager: ConnectionManager, config: GatewayConfig) -> None:
    app.state.connection_manager = manager
    app.state.gateway_config = config
    app.state.health_checker = HealthChecker(manager)


def create_app(
    manager: Optional[ConnectionManager] = None,
    config: Optional[GatewayConfig] = None,
) -> FastAPI:
    """
    Build the gateway app.

    With manager and config given (tests, embedding) they are used as-is.
    Otherwise the lifespan bootstraps them from the environment and refuses
    to start when a required setting is missing.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan: startup and shutdown handlers.
        """
        # Startup
        if getattr(app.state, "connection_manager", None) is None:
            result = bootstrap_gateway()
            if not result.ok:
                raise ConfigError(
                    "Gateway configuration invalid: " + "; ".join(result.errors)
                )
            _attach(app, result.manager, result.config)

        gateway_config: GatewayConfig = app.state.gateway_config
        logger.info("=" * 60)
        logger.info("WhatsApp notify gateway starting up...")
        logger.info(f"Environment: {Config.ENVIRONMENT}")
        logger.info(f"Pairing mode: {gateway_config.pairing_mode}")
        logger.info(f"Recipient: {gateway_config.recipient_jid or 'NOT CONFIGURED'}")
        logger.info(f"Auth: {'bearer token' if gateway_config.auth_enabled else 'INSECURE (no token)'}")
        if gateway_config.transport == "stub":
            logger.warning("Transport: STUB (messages are NOT delivered to WhatsApp)")
        else:
            logger.info(f"Transport: {gateway_config.transport}")
        logger.info("=" * 60)

        await app.state.connection_manager.start()

        yield

        # Shutdown
        logger.info("WhatsApp notify gateway shutting down...")
        await app.state.connection_manager.stop()

    app = FastAPI(
        title="WhatsApp Notify Gateway",
        description="Internal notification API over a single WhatsApp session",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.connection_manager = None
    if manager is not None and config is not None:
        _attach(app, manager, config)

    install_error_handlers(app)

    # Middleware for logging
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests; never let an exception escape."""
        logger.debug(f"{request.method} {request.url.path}")
        try:
            response = await call_next(request)
            return response
        except Exception as e:
            logger.error(f"Request error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error"},
            )

    app.include_router(gateway_router)

    # Health check endpoints
    @app.get("/health/live")
    async def health_live(request: Request):
        """Live health check (liveness probe)."""
        checker: HealthChecker = request.app.state.health_checker
        return checker.to_dict(checker.check_live())

    @app.get("/health/ready")
    async def health_ready(request: Request):
        """Readiness health check: 200 when ready, 503 otherwise."""
        checker: HealthChecker = request.app.state.health_checker
        health = checker.check_ready()
        return JSONResponse(
            status_code=200 if health.ready else 503,
            content=checker.to_dict(health),
        )

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "WhatsApp Notify Gateway",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "notify": "POST /notify",
                "status": "GET /status",
                "health_live": "GET /health/live",
                "health_ready": "GET /health/ready",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=Config.GATEWAY_PORT,
    )
