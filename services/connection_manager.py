"""Connection manager service.

Owns the client's single relay session: selects an endpoint, performs the
handshake, keeps the session token fresh, and tears everything down on
disconnect, region switch, or unrecoverable refresh failure.

State transitions (connect, switch_region, refresh_token and refresh timer
firings) are serialized on one asyncio lock. disconnect() does not wait for
that lock. It bumps an attempt generation, cancels the refresh timer and clears
the session at once. Any transition still in flight compares its generation
on completion and discards its result when a disconnect superseded it.
"""

import asyncio
import inspect
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx

from config import ApplicationConfig
from models import ConnectionState, HandshakeAck, Session, SessionToken
from utils import (
    ConnectFailed,
    HandshakeFailed,
    InvalidScheduleWindow,
    NoHealthyEndpoint,
    NotConnected,
    SessionLost,
    create_contextual_logger,
    log_exception,
    set_correlation_id,
)
from .endpoint_selector import EndpointSelector
from .health_probe import HealthProbe
from .metrics import connect_attempts, token_refreshes
from .relay_client import RelayClient
from .session_credential import SessionCredential

SessionLostListener = Callable[[SessionLost], Union[None, Awaitable[None]]]


def _from_ms(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)


class ConnectionManager:
    """State machine for one relay session at a time."""

    def __init__(
        self,
        config: ApplicationConfig,
        selector: EndpointSelector,
        credential: SessionCredential,
        relay_client: RelayClient,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.selector = selector
        self.credential = credential
        self.relay_client = relay_client
        self.clock = clock
        self._sleep = sleep
        self.logger = create_contextual_logger(__name__, service="connection_manager")

        self._lock = asyncio.Lock()
        self._state = ConnectionState.DISCONNECTED
        self._session: Optional[Session] = None
        self._generation = 0

        self._refresh_task: Optional[asyncio.Task] = None
        self._refresh_due_at: Optional[float] = None
        self._session_lost_listeners: List[SessionLostListener] = []

    @classmethod
    def from_config(cls, config: ApplicationConfig) -> "ConnectionManager":
        """Build a manager with its probe, selector, credential and relay client."""
        probe = HealthProbe(config)
        return cls(
            config,
            EndpointSelector(config, probe),
            SessionCredential(config),
            RelayClient(config),
        )

    async def __aenter__(self) -> "ConnectionManager":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def session(self) -> Optional[Session]:
        """A copy of the active session, or None."""
        if self._session is None:
            return None
        return self._session.model_copy(deep=True)

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    @property
    def refresh_pending(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    @property
    def refresh_due_at(self) -> Optional[float]:
        return self._refresh_due_at

    def add_session_lost_listener(self, listener: SessionLostListener) -> None:
        """Register a sync or async callback invoked with SessionLost."""
        self._session_lost_listeners.append(listener)

    def remove_session_lost_listener(self, listener: SessionLostListener) -> None:
        if listener in self._session_lost_listeners:
            self._session_lost_listeners.remove(listener)

    # --- Public transitions ---

    async def connect(self, region_code: str) -> HandshakeAck:
        """Select the best endpoint in a region, handshake, and hold the session.

        An active session is disconnected first. Raises ConnectFailed when the
        region is unknown, no endpoint is healthy, or a disconnect superseded
        this attempt; HandshakeFailed when the relay refused the session;
        InvalidScheduleWindow when the token would expire before its refresh.
        """
        set_correlation_id()
        async with self._lock:
            if self._session is not None:
                await self.disconnect()
            return await self._connect(region_code, self._generation)

    async def switch_region(self, region_code: str) -> HandshakeAck:
        """Disconnect from the current region and connect to another."""
        set_correlation_id()
        async with self._lock:
            previous = self._session.region if self._session else None
            self.logger.info("Switching region", from_region=previous, to_region=region_code)
            if self._session is not None:
                self._state = ConnectionState.SWITCHING
            await self.disconnect()
            return await self._connect(region_code, self._generation)

    async def refresh_token(self) -> None:
        """Re-issue the session token client-side. No-op without a session.

        Never raises: a failed refresh falls back to one reconnect, and if that
        fails too the session is dropped and SessionLost listeners are notified.
        """
        if self._session is None:
            return
        async with self._lock:
            if self._session is None:
                return
            await self._refresh_with_recovery()

    async def disconnect(self) -> None:
        """Cancel the refresh timer and drop the session. Idempotent."""
        session = self._session
        self._teardown()
        if session is not None:
            self.logger.info(
                "Disconnected",
                region=session.region,
                endpoint=session.endpoint.url,
                session_id=session.session_id,
            )
        else:
            self.logger.debug("Disconnect requested with no active session")

    async def fetch(
        self,
        target_url: str,
        method: str = "GET",
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Route one request through the active session's relay."""
        session = self._session
        if session is None:
            raise NotConnected("No active session")
        return await self.relay_client.proxy(
            session.endpoint.url,
            session.token,
            target_url,
            method=method,
            content=content,
            headers=headers,
        )

    async def close(self) -> None:
        """Disconnect and release HTTP clients."""
        await self.disconnect()
        await self.relay_client.close()
        await self.selector.probe.close()

    def get_connection_info(self) -> Dict[str, Any]:
        """Snapshot of the current state for display and health reporting."""
        session = self._session
        info: Dict[str, Any] = {
            "state": self._state.value,
            "connected": session is not None,
            "refresh_pending": self.refresh_pending,
            "refresh_due_at": self._refresh_due_at,
        }
        if session is not None:
            info.update(
                {
                    "region": session.region,
                    "endpoint": session.endpoint.url,
                    "latency_ms": session.endpoint.latency_ms,
                    "session_id": session.session_id,
                    "connected_at": session.connected_at.isoformat(),
                    "token_expiry": session.token_expiry.isoformat(),
                }
            )
        return info

    # --- Internals; callers hold self._lock ---

    async def _connect(self, region_code: str, generation: int) -> HandshakeAck:
        region = self.config.get_region(region_code)
        if region is None:
            connect_attempts.labels(region=region_code, outcome="unknown_region").inc()
            raise ConnectFailed(region_code, "region not configured")

        self._state = ConnectionState.CONNECTING
        self.logger.info("Connecting", region=region.code, region_name=region.name)

        try:
            endpoint = await self.selector.select(region)
            issued = self.credential.generate(region.code, endpoint.url)
            delay = self._refresh_delay(issued.token)
            ack = await self.relay_client.handshake(endpoint.url, issued)
        except NoHealthyEndpoint as e:
            self._abort(generation)
            connect_attempts.labels(region=region.code, outcome="no_healthy_endpoint").inc()
            raise ConnectFailed(region.code, str(e)) from e
        except HandshakeFailed as e:
            self._abort(generation)
            connect_attempts.labels(region=region.code, outcome="handshake_failed").inc()
            self.logger.warning("Handshake failed", region=region.code, endpoint=e.endpoint, error=str(e))
            raise
        except (Exception, asyncio.CancelledError):
            self._abort(generation)
            raise

        if generation != self._generation:
            connect_attempts.labels(region=region.code, outcome="superseded").inc()
            self.logger.info("Discarding superseded connect attempt", region=region.code, endpoint=endpoint.url)
            raise ConnectFailed(region.code, "superseded by disconnect")

        payload = issued.token.payload
        self._session = Session(
            region=region.code,
            endpoint=endpoint,
            session_id=payload.session_id,
            connected_at=datetime.fromtimestamp(self.clock(), tz=timezone.utc),
            token=issued.token,
            token_expiry=_from_ms(payload.expires),
        )
        self._state = ConnectionState.CONNECTED
        self._arm_refresh_timer(delay, generation)
        connect_attempts.labels(region=region.code, outcome="connected").inc()

        self.logger.info(
            "Connected",
            region=region.code,
            endpoint=endpoint.url,
            latency_ms=round(endpoint.latency_ms, 1),
            session_id=payload.session_id,
            apparent_ip=ack.ip,
            apparent_country=ack.country,
            apparent_city=ack.city,
            session_expires=self._session.token_expiry.isoformat(),
        )
        return ack

    async def _refresh_with_recovery(self) -> None:
        session = self._session
        generation = self._generation
        self._state = ConnectionState.REFRESHING
        self.logger.info("Refreshing session token", region=session.region, session_id=session.session_id)

        try:
            issued = self.credential.generate(session.region, session.endpoint.url, session_id=session.session_id)
            delay = self._refresh_delay(issued.token)
        except Exception as e:
            token_refreshes.labels(outcome="failed").inc()
            log_exception(self.logger, e, "Token refresh failed, reconnecting", region=session.region)
            await self._recover(session, generation)
            return

        session.token = issued.token
        session.token_expiry = _from_ms(issued.token.payload.expires)
        self._state = ConnectionState.CONNECTED
        self._arm_refresh_timer(delay, generation)
        token_refreshes.labels(outcome="succeeded").inc()
        self.logger.info("Token refreshed", session_id=session.session_id, expires=session.token_expiry.isoformat())

    async def _recover(self, session: Session, generation: int) -> None:
        try:
            await self._connect(session.region, generation)
            token_refreshes.labels(outcome="recovered").inc()
            return
        except Exception as e:
            failure = e

        if generation != self._generation:
            return

        self._teardown()
        token_refreshes.labels(outcome="session_lost").inc()
        await self._notify_session_lost(SessionLost(session.region, session.session_id, failure))

    async def _notify_session_lost(self, lost: SessionLost) -> None:
        self.logger.error("Session lost", region=lost.region, session_id=lost.session_id, error=str(lost.cause))
        for listener in list(self._session_lost_listeners):
            try:
                result = listener(lost)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                log_exception(self.logger, e, "Session lost listener failed")

    def _refresh_delay(self, token: SessionToken) -> float:
        """Seconds until the refresh of `token` is due."""
        expires = token.payload.expires / 1000.0
        delay = expires - self.config.refresh_buffer - self.clock()
        if delay <= 0:
            raise InvalidScheduleWindow(self.config.token_duration, self.config.refresh_buffer)
        return delay

    def _arm_refresh_timer(self, delay: float, generation: int) -> None:
        self._cancel_refresh_timer()
        self._refresh_due_at = self.clock() + delay
        self._refresh_task = asyncio.create_task(self._refresh_after(delay, generation))
        self.logger.debug("Refresh timer armed", delay_seconds=round(delay, 3))

    def _cancel_refresh_timer(self) -> None:
        task = self._refresh_task
        self._refresh_task = None
        self._refresh_due_at = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _refresh_after(self, delay: float, generation: int) -> None:
        await self._sleep(delay)
        async with self._lock:
            if generation != self._generation or self._session is None:
                return
            try:
                await self._refresh_with_recovery()
            except Exception as e:
                log_exception(self.logger, e, "Scheduled refresh crashed")

    def _abort(self, generation: int) -> None:
        if generation == self._generation:
            self._state = ConnectionState.DISCONNECTED

    def _teardown(self) -> None:
        self._generation += 1
        self._cancel_refresh_timer()
        self._session = None
        self._state = ConnectionState.DISCONNECTED
