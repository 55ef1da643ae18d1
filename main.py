"""Reference relay application entry point."""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import ApplicationConfig, load_config
from middleware import CorrelationMiddleware
from routers import connect_router, health_router, info_router, metrics_router, proxy_router
from services import ClientInfoResolver, RelaySessionStore, SessionCredential, SessionSweeper
from utils import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start the session sweeper and the outbound HTTP client; stop them on shutdown."""
    config: ApplicationConfig = app.state.config
    configure_logging(config.log_level, json_output=config.json_logs)
    logger = get_logger(__name__)

    owned_client: Optional[httpx.AsyncClient] = None
    if app.state.http_client is None:
        owned_client = httpx.AsyncClient(follow_redirects=False)
        app.state.http_client = owned_client
        app.state.client_info.client = owned_client

    sweeper = SessionSweeper(app.state.session_store, config.session_sweep_interval)
    app.state.started_at = time.time()

    try:
        sweeper.start()
        logger.info(
            "Relay started",
            region=config.relay_region,
            platform=config.relay_platform,
            version=config.worker_version,
        )
        yield
    finally:
        logger.info("Relay shutting down")
        await sweeper.stop()
        if owned_client is not None:
            await owned_client.aclose()
        logger.info("Relay stopped")


def create_app(
    config: Optional[ApplicationConfig] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Create and configure the relay FastAPI application."""
    if config is None:
        config = load_config()

    app = FastAPI(
        title=f"{config.app_name} relay",
        description="Reference relay endpoint: health, handshake, proxy and client info",
        version=config.worker_version,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.started_at = time.time()
    app.state.session_store = RelaySessionStore()
    app.state.credential = SessionCredential(config)
    app.state.http_client = http_client
    app.state.client_info = ClientInfoResolver(config, http_client)

    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Session-ID", "X-Correlation-ID"],
        max_age=86400,
    )
    app.include_router(health_router)
    app.include_router(connect_router)
    app.include_router(proxy_router)
    app.include_router(info_router)
    app.include_router(metrics_router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    config = load_config()
    uvicorn.run(app, host=config.relay_host, port=config.relay_port)
