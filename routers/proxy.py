"""Proxy router: forwards requests for clients holding a live session."""

import httpx
from fastapi import APIRouter, Depends, Request, Response

from config import ApplicationConfig
from services import RelaySessionStore, SessionCredential
from services.metrics import relay_proxy_requests
from utils import TokenError, get_logger
from .dependencies import get_config, get_credential, get_http_client, get_session_store

router = APIRouter(tags=["proxy"])
logger = get_logger(__name__)

HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
}
RELAY_SET_HEADERS = {"user-agent", "x-forwarded-for", "x-original-country"}
STRIPPED_REQUEST_HEADERS = HOP_BY_HOP_HEADERS | RELAY_SET_HEADERS | {"host", "x-session-id", "authorization", "content-length"}
STRIPPED_RESPONSE_HEADERS = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}


def _plain(status_code: int, message: str) -> Response:
    relay_proxy_requests.labels(status=str(status_code)).inc()
    return Response(content=message, status_code=status_code, media_type="text/plain")


@router.api_route("/proxy", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"])
async def proxy(
    request: Request,
    config: ApplicationConfig = Depends(get_config),
    store: RelaySessionStore = Depends(get_session_store),
    credential: SessionCredential = Depends(get_credential),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> Response:
    """Forward the request to `?url=` on behalf of an authenticated session."""
    session_id = request.headers.get("X-Session-ID")
    authorization = request.headers.get("Authorization", "")
    token = authorization.replace("Bearer ", "", 1) if authorization else ""

    if not session_id or not token:
        return _plain(401, "Unauthorized")

    try:
        payload = credential.validate(token, session_id)
    except TokenError:
        return _plain(401, "Invalid token")

    # A refreshed token carries a later expiry than the one seen at handshake.
    store.touch(session_id, payload.expires)
    session = store.get(session_id)
    if session is None:
        return _plain(401, "Session expired")

    target_url = request.query_params.get("url")
    if not target_url:
        return _plain(400, "Target URL required")

    headers = {k: v for k, v in request.headers.items() if k.lower() not in STRIPPED_REQUEST_HEADERS}
    headers["User-Agent"] = config.proxy_user_agent
    headers["X-Forwarded-For"] = session.client_info.ip
    headers["X-Original-Country"] = session.client_info.country

    body = None
    if request.method not in ("GET", "HEAD"):
        body = await request.body()

    try:
        upstream = await http_client.request(
            request.method,
            target_url,
            headers=headers,
            content=body,
            timeout=config.proxy_timeout,
        )
    except httpx.HTTPError as e:
        logger.warning("Proxy request failed", session_id=session_id, target=target_url, error=str(e))
        return _plain(500, f"Proxy error: {e}")

    response_headers = {
        k: v for k, v in upstream.headers.items() if k.lower() not in STRIPPED_RESPONSE_HEADERS
    }
    response_headers["X-Proxy-Country"] = session.client_info.country
    response_headers["X-Proxy-Platform"] = config.relay_platform

    relay_proxy_requests.labels(status=str(upstream.status_code)).inc()
    logger.debug("Proxied request", session_id=session_id, target=target_url, status_code=upstream.status_code)
    return Response(content=upstream.content, status_code=upstream.status_code, headers=response_headers)
