"""Relay client service.

This module handles all HTTP communication with relay endpoints: the /connect
handshake, requests routed through /proxy, and the /ip metadata lookup.
"""

from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from config import ApplicationConfig
from models import HandshakeAck, IssuedToken, SessionToken
from utils import HandshakeFailed, ProxyRequestFailed, create_contextual_logger, get_correlation_id


class RelayClient:
    """Async client for the relay endpoint contract."""

    def __init__(self, config: ApplicationConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config
        self.logger = create_contextual_logger(__name__, service="relay_client")
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.handshake_timeout,
                headers={"User-Agent": self.config.user_agent},
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client if this relay client created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _headers(self, token: SessionToken, correlation_id: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {token.encoded}",
            "User-Agent": self.config.user_agent,
        }
        correlation_id = correlation_id or get_correlation_id()
        if correlation_id:
            headers["X-Correlation-ID"] = correlation_id
        return headers

    async def handshake(
        self,
        endpoint: str,
        issued: IssuedToken,
        correlation_id: Optional[str] = None,
    ) -> HandshakeAck:
        """Register a freshly minted session with `endpoint`.

        Raises HandshakeFailed on a transport error, a non-200 response (the body
        becomes the error detail), or an acknowledgement that does not parse.
        """
        token = issued.token
        body = {
            "action": "connect",
            "token": token.encoded,
            "sessionId": token.payload.session_id,
        }

        try:
            response = await self._get_client().post(
                f"{endpoint}/connect",
                json=body,
                headers=self._headers(token, correlation_id),
            )
        except httpx.HTTPError as e:
            self.logger.warning("Handshake request failed", endpoint=endpoint, error=str(e))
            raise HandshakeFailed(endpoint, f"Request failed: {e}") from e

        if response.status_code != 200:
            self.logger.warning(
                "Handshake rejected",
                endpoint=endpoint,
                status_code=response.status_code,
                session_id=token.payload.session_id,
            )
            raise HandshakeFailed(endpoint, response.text, status_code=response.status_code)

        try:
            return HandshakeAck.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise HandshakeFailed(endpoint, "Invalid response format") from e

    async def proxy(
        self,
        endpoint: str,
        token: SessionToken,
        target_url: str,
        method: str = "GET",
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        correlation_id: Optional[str] = None,
    ) -> httpx.Response:
        """Send one request to `target_url` through the relay's /proxy endpoint."""
        request_headers = dict(headers or {})
        request_headers.update(self._headers(token, correlation_id))
        request_headers["X-Session-ID"] = token.payload.session_id

        try:
            response = await self._get_client().request(
                method.upper(),
                f"{endpoint}/proxy",
                params={"url": target_url},
                content=content,
                headers=request_headers,
            )
        except httpx.HTTPError as e:
            raise ProxyRequestFailed(target_url, str(e)) from e

        if response.status_code in (400, 401):
            raise ProxyRequestFailed(target_url, response.text, status_code=response.status_code)
        return response

    async def get_info(self, endpoint: str) -> Dict[str, Any]:
        """Fetch the relay's view of this client (`GET /ip`)."""
        response = await self._get_client().get(f"{endpoint}/ip")
        response.raise_for_status()
        return response.json()
