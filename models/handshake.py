"""Models for the relay /connect handshake and client metadata."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConnectRequest(BaseModel):
    """Body of `POST /connect`.

    Every field is optional so the relay can answer malformed requests with its
    own 400 instead of a validation error.
    """

    action: Optional[str] = None
    token: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)


class ClientInfo(BaseModel):
    """Apparent identity and location of a client as seen by a relay."""

    ip: str = "127.0.0.1"
    country: str = "Unknown"
    country_code: str = Field(default="XX", alias="countryCode")
    city: str = "Unknown"
    region: str = "Unknown"
    timezone: str = "UTC"
    asn: Any = 0
    datacenter: str = "Unknown"
    user_agent: str = Field(default="Unknown", alias="userAgent")
    platform: str = "Unknown"

    model_config = ConfigDict(populate_by_name=True)


class HandshakeAck(BaseModel):
    """Acknowledgement returned by a relay after a successful handshake."""

    success: bool = Field(..., description="Relay accepted the session")
    session_id: str = Field(..., alias="sessionId")
    ip: str = Field(..., description="Apparent external IP")
    country: str = Field(..., description="Apparent country")
    country_code: Optional[str] = Field(default=None, alias="countryCode")
    city: Optional[str] = None
    region: Optional[str] = None
    timezone: Optional[str] = None
    asn: Optional[Any] = None
    datacenter: Optional[str] = None
    worker: Optional[Dict[str, Any]] = None
    session_expires: Optional[str] = Field(default=None, alias="sessionExpires")

    model_config = ConfigDict(populate_by_name=True, extra="allow")
