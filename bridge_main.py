"""
FastAPI Application Entry Point - Typeform Bridge

Run: uvicorn bridge_main:app --host 0.0.0.0 --port 8080
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api import install_error_handlers
from config import Config
from infra import BridgeConfig, get_bridge_config
from webhook import GatewayClient, typeform_router

# Setup logging
logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_bridge_app(
    config: Optional[BridgeConfig] = None,
    gateway_client: Optional[GatewayClient] = None,
) -> FastAPI:
    """Build the bridge app. A given client is used as-is and not closed on shutdown."""
    bridge_config = config or get_bridge_config()
    for warning in bridge_config.validate():
        logger.warning(warning)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = gateway_client is None
        if owned:
            app.state.gateway_client = GatewayClient(
                url=bridge_config.gateway_url,
                auth_token=bridge_config.auth_token,
                timeout=bridge_config.timeout,
            )

        logger.info("=" * 60)
        logger.info("Typeform bridge starting up...")
        logger.info(f"Forwarding to: {bridge_config.gateway_url}")
        logger.info(f"Auth: {'token set' if bridge_config.auth_token else 'TOKEN MISSING'}")
        logger.info("=" * 60)

        yield

        logger.info("Typeform bridge shutting down...")
        if owned:
            await app.state.gateway_client.aclose()

    app = FastAPI(
        title="Typeform Bridge",
        description="Forwards Typeform submissions to the WhatsApp notify gateway",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.gateway_client = gateway_client

    install_error_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.debug(f"{request.method} {request.url.path}")
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Request error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error"},
            )

    app.include_router(typeform_router)

    return app


app = create_bridge_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bridge_main:app",
        host="0.0.0.0",
        port=Config.BRIDGE_PORT,
    )
