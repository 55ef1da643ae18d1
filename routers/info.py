"""Client info and service descriptor routes."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from config import ApplicationConfig
from services import ClientInfoResolver
from .dependencies import get_client_info_resolver, get_config, worker_descriptor

router = APIRouter(tags=["info"])


@router.get("/ip", response_model=Dict[str, Any])
@router.get("/info", response_model=Dict[str, Any])
async def client_info(
    request: Request,
    config: ApplicationConfig = Depends(get_config),
    resolver: ClientInfoResolver = Depends(get_client_info_resolver),
) -> Dict[str, Any]:
    """The relay's view of the calling client."""
    info = await resolver.resolve(request)
    return {
        **info.model_dump(by_alias=True),
        "worker": worker_descriptor(config),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/", response_model=Dict[str, Any])
async def service_descriptor(config: ApplicationConfig = Depends(get_config)) -> Dict[str, Any]:
    return {
        "service": f"{config.app_name} relay",
        "version": config.worker_version,
        "platform": config.relay_platform,
        "endpoints": ["/health", "/connect", "/proxy", "/ip"],
        "region": config.relay_region,
    }
