"""Health check router for the relay."""

import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from config import ApplicationConfig
from models import RelayHealth
from services import RelaySessionStore
from .dependencies import get_config, get_session_store

router = APIRouter(tags=["health"])


@router.get("/health", response_model=Dict[str, Any])
async def health_check(
    request: Request,
    config: ApplicationConfig = Depends(get_config),
    store: RelaySessionStore = Depends(get_session_store),
) -> Dict[str, Any]:
    """Report relay liveness. Sweeps expired sessions as a side effect."""
    store.sweep()
    started_at = getattr(request.app.state, "started_at", time.time())
    health = RelayHealth(
        status="healthy",
        version=config.worker_version,
        platform=config.relay_platform,
        timestamp=store.now_ms(),
        uptime=max(0, int(time.time() - started_at)),
        active_sessions=len(store),
        region=config.relay_region,
        datacenter=config.relay_datacenter,
    )
    return health.model_dump(by_alias=True)
