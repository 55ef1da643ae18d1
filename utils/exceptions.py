"""Error taxonomy for endpoint selection and the session lifecycle."""

from typing import Any, Optional


class RelayClientError(Exception):
    """Base class for every error raised by the relay session client."""


class NoHealthyEndpoint(RelayClientError):
    """No endpoint of a region answered healthy within the probe timeout."""

    def __init__(self, region: str, probed: int = 0) -> None:
        self.region = region
        self.probed = probed
        super().__init__(f"No healthy endpoints available for {region} ({probed} probed)")


class ConnectFailed(RelayClientError):
    """Endpoint selection failed, the region is unknown, or the attempt was superseded."""

    def __init__(self, region: str, reason: str) -> None:
        self.region = region
        self.reason = reason
        super().__init__(f"Connect to {region} failed: {reason}")


class HandshakeFailed(RelayClientError):
    """The selected endpoint rejected or garbled the /connect handshake."""

    def __init__(self, endpoint: str, detail: str, status_code: Optional[int] = None) -> None:
        self.endpoint = endpoint
        self.detail = detail
        self.status_code = status_code
        if status_code is not None:
            message = f"HTTP {status_code}: {detail}"
        else:
            message = detail
        super().__init__(message)


class TokenError(RelayClientError):
    """Base class for session credential validation failures."""


class MalformedToken(TokenError):
    """The token is not three dot-separated segments or its payload does not decode."""


class Expired(TokenError):
    """The token's expiry timestamp lies in the past."""

    def __init__(self, expires: int, now: int) -> None:
        self.expires = expires
        self.now = now
        super().__init__(f"Token expired at {expires} (now {now})")


class SessionMismatch(TokenError):
    """The token was issued for a different session."""

    def __init__(self, expected: str, actual: Any) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Token session {actual!r} does not match {expected!r}")


class InvalidScheduleWindow(RelayClientError, ValueError):
    """The refresh buffer leaves no time before the token expires."""

    def __init__(self, token_duration: float, refresh_buffer: float) -> None:
        self.token_duration = token_duration
        self.refresh_buffer = refresh_buffer
        super().__init__(
            f"refresh_buffer ({refresh_buffer}s) must be smaller than token_duration ({token_duration}s)"
        )


class SessionLost(RelayClientError):
    """Refresh and the single reconnect attempt both failed; the session is gone."""

    def __init__(self, region: str, session_id: str, cause: Optional[BaseException] = None) -> None:
        self.region = region
        self.session_id = session_id
        self.cause = cause
        super().__init__(f"Session {session_id} in {region} lost: {cause}")


class NotConnected(RelayClientError):
    """An operation needed an active session and there is none."""


class ProxyRequestFailed(RelayClientError):
    """A request routed through the relay /proxy endpoint could not be completed."""

    def __init__(self, target_url: str, detail: str, status_code: Optional[int] = None) -> None:
        self.target_url = target_url
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"Proxy request to {target_url} failed: {detail}")
