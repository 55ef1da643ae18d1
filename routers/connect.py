"""Handshake router: registers client sessions with the relay."""

from datetime import datetime, timezone
from typing import Any, Dict, Union

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from config import ApplicationConfig
from models import ConnectRequest, RelaySession
from services import ClientInfoResolver, RelaySessionStore, SessionCredential
from services.metrics import relay_connects
from utils import TokenError, get_logger
from .dependencies import (
    get_client_info_resolver,
    get_config,
    get_credential,
    get_session_store,
    worker_descriptor,
)

router = APIRouter(tags=["connect"])
logger = get_logger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    relay_connects.labels(status=str(status_code)).inc()
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/connect", response_model=None)
async def connect(
    request: Request,
    config: ApplicationConfig = Depends(get_config),
    store: RelaySessionStore = Depends(get_session_store),
    credential: SessionCredential = Depends(get_credential),
    resolver: ClientInfoResolver = Depends(get_client_info_resolver),
) -> Union[Dict[str, Any], JSONResponse]:
    """Accept a client session bound to a valid, unexpired token."""
    try:
        body = ConnectRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        return _error(400, "Invalid request parameters")

    if body.action != "connect" or not body.token or not body.session_id:
        return _error(400, "Invalid request parameters")

    try:
        payload = credential.validate(body.token, body.session_id)
    except TokenError as e:
        logger.info("Handshake refused", session_id=body.session_id, reason=str(e))
        return _error(401, "Invalid or expired token")

    client_info = await resolver.resolve(request)
    now = store.now_ms()
    store.put(
        RelaySession(
            session_id=body.session_id,
            created=now,
            expires=payload.expires,
            country=payload.region,
            client_info=client_info,
            last_activity=now,
        )
    )
    relay_connects.labels(status="200").inc()
    logger.info("Session registered", session_id=body.session_id, region=payload.region, client_ip=client_info.ip)

    return {
        "success": True,
        "sessionId": body.session_id,
        **client_info.model_dump(by_alias=True),
        "worker": worker_descriptor(config),
        "sessionExpires": datetime.fromtimestamp(payload.expires / 1000.0, tz=timezone.utc).isoformat(),
    }
