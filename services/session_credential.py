"""Session credential service.

Mints JWT-shaped session tokens and validates their structure, expiry and
session binding.

The signature is an HMAC-SHA256 keyed with a secret drawn fresh for every token
and then discarded, so no verifier can ever check it. Validation is therefore
structural only: it decodes the payload and enforces expiry and session id. It
does not authenticate the token.
"""

import base64
import hashlib
import hmac
import json
import secrets
import time
import uuid
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from config import ApplicationConfig
from models import IssuedToken, SessionToken, TokenPayload
from models.session import default_token_header
from utils import Expired, MalformedToken, SessionMismatch, create_contextual_logger


def b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def b64url_decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(segment + padding)


def _encode_json(data: Dict[str, Any]) -> str:
    return b64url_encode(json.dumps(data, separators=(",", ":")).encode("utf-8"))


class SessionCredential:
    """Issues and structurally validates time-bounded session tokens."""

    def __init__(self, config: ApplicationConfig, clock: Callable[[], float] = time.time) -> None:
        self.config = config
        self.clock = clock
        self.logger = create_contextual_logger(__name__, service="session_credential")

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def generate(self, region: str, endpoint_id: str, session_id: Optional[str] = None) -> IssuedToken:
        """Mint a token for `endpoint_id` in `region`.

        A fresh uuid4 session id is drawn unless `session_id` is given, which is
        how a refresh keeps the id the relay registered at handshake time.
        """
        issued = self.now_ms()
        payload = TokenPayload(
            region=region,
            endpoint_id=endpoint_id,
            session_id=session_id or str(uuid.uuid4()),
            issued=issued,
            expires=issued + self.config.token_duration * 1000,
        )
        header = default_token_header()

        signing_input = f"{_encode_json(header)}.{_encode_json(payload.model_dump(by_alias=True))}"
        secret = secrets.token_hex(32)
        digest = hmac.new(secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()
        signature = b64url_encode(digest)

        token = SessionToken(
            header=header,
            payload=payload,
            signature=signature,
            encoded=f"{signing_input}.{signature}",
        )
        self.logger.debug(
            "Session token issued",
            region=region,
            endpoint=endpoint_id,
            session_id=payload.session_id,
            expires=payload.expires,
        )
        return IssuedToken(token=token, secret=secret)

    def decode(self, token: str) -> TokenPayload:
        """Decode a token's payload without checking its signature.

        Raises MalformedToken if the token is not three dot-separated segments or
        the payload segment does not decode to a valid claim set.
        """
        if not isinstance(token, str) or not token:
            raise MalformedToken("Token is empty")

        parts = token.split(".")
        if len(parts) != 3:
            raise MalformedToken(f"Expected 3 token segments, got {len(parts)}")

        try:
            claims = json.loads(b64url_decode(parts[1]))
        except (ValueError, TypeError) as e:
            raise MalformedToken(f"Token payload is not decodable: {e}") from e
        if not isinstance(claims, dict):
            raise MalformedToken("Token payload is not a JSON object")

        try:
            return TokenPayload.model_validate(claims)
        except ValidationError as e:
            raise MalformedToken(f"Token payload is invalid: {e.error_count()} error(s)") from e

    def validate(self, token: str, expected_session_id: str) -> TokenPayload:
        """Decode a token and check it is unexpired and bound to `expected_session_id`."""
        payload = self.decode(token)

        now = self.now_ms()
        if now > payload.expires:
            raise Expired(payload.expires, now)

        if payload.session_id != expected_session_id:
            raise SessionMismatch(expected_session_id, payload.session_id)

        return payload
