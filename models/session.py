"""Session credential and client session models."""

from datetime import datetime
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .probe import EndpointProbeResult


def default_token_header() -> Dict[str, str]:
    return {"alg": "HS256", "typ": "JWT"}


class TokenPayload(BaseModel):
    """Claims carried by a session token.

    Field aliases are the wire names the relays read; timestamps are epoch
    milliseconds.
    """

    region: str = Field(..., alias="country", description="Region code")
    endpoint_id: str = Field(..., alias="workerId", description="Selected endpoint")
    session_id: str = Field(..., alias="sessionId", description="Unique session identifier")
    issued: int = Field(..., ge=0, description="Issue time in epoch milliseconds")
    expires: int = Field(..., ge=0, description="Expiry time in epoch milliseconds")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @model_validator(mode="after")
    def check_expiry_after_issue(self) -> "TokenPayload":
        if self.expires <= self.issued:
            raise ValueError("expires must be later than issued")
        return self


class SessionToken(BaseModel):
    """A header.payload.signature token and its encoded wire form."""

    header: Dict[str, str] = Field(default_factory=default_token_header)
    payload: TokenPayload
    signature: str
    encoded: str = Field(..., description="Dot-separated base64url wire form")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.encoded


class IssuedToken(BaseModel):
    """A freshly minted token together with the secret that signed it.

    The secret is handed back for logging only; nothing keeps it.
    """

    token: SessionToken
    secret: str

    model_config = ConfigDict(frozen=True)

    @property
    def session_id(self) -> str:
        return self.token.payload.session_id


class Session(BaseModel):
    """The client's record of its one active connection."""

    region: str = Field(..., description="Region code")
    endpoint: EndpointProbeResult = Field(..., description="Selected endpoint with its measured latency")
    session_id: str = Field(..., description="Session identifier")
    connected_at: datetime = Field(..., description="When the handshake completed")
    token: SessionToken = Field(..., description="Current token")
    token_expiry: datetime = Field(..., description="Expiry of the current token")
