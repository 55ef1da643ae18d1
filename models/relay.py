"""Relay-side models: the session table entries and the health document."""

from pydantic import BaseModel, ConfigDict, Field

from .handshake import ClientInfo


class RelaySession(BaseModel):
    """A session accepted by a relay. Timestamps are epoch milliseconds."""

    session_id: str
    created: int
    expires: int
    country: str
    client_info: ClientInfo
    last_activity: int


class RelayHealth(BaseModel):
    """Body of `GET /health`."""

    status: str = "healthy"
    version: str
    platform: str
    timestamp: int
    uptime: int = Field(..., ge=0, description="Seconds since the relay started")
    active_sessions: int = Field(..., ge=0, alias="activeSessions")
    region: str
    datacenter: str

    model_config = ConfigDict(populate_by_name=True)
