"""
Mock token exchanger turning an edge-verified external token into an
internal RS256 token the BFF and product backend trust.

The edge proxy forwards the verified external claims as base64url JSON in
``x-jwt-payload``. Only ``sub`` and ``preferred_username`` are copied into the
internal token, which is returned in ``x-internal-jwt``.
"""

import base64
import binascii
import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import FastAPI, Header, HTTPException, Response

from shared.config import DEFAULT_ISSUER
from shared.logging import get_logger


PAYLOAD_HEADER = "x-jwt-payload"
INTERNAL_TOKEN_HEADER = "x-internal-jwt"
COPIED_CLAIMS = ("sub", "preferred_username")
TOKEN_LIFETIME = timedelta(minutes=15)


def decode_forwarded_payload(value: str) -> Dict[str, Any]:
    """Decode base64url (padding optional) JSON claims; ``ValueError`` if invalid."""
    try:
        raw = base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
        claims = json.loads(raw)
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"undecodable payload: {e}") from e

    if not isinstance(claims, dict):
        raise ValueError("payload is not a JSON object")
    return claims


class MockTokenExchangerServer:
    """Mock token exchanger implementation."""

    def __init__(
        self,
        private_key_pem: Optional[bytes] = None,
        issuer: str = DEFAULT_ISSUER,
        private_key_path: Optional[str] = None,
    ):
        self.logger = get_logger("mock.token_exchanger")
        self.app = FastAPI(title="Mock Token Exchanger", version="1.0.0")
        self.issuer = issuer

        if private_key_pem is None:
            path = private_key_path or os.getenv("PRIVATE_KEY_PATH", "private_key.pem")
            with open(path, "rb") as f:
                private_key_pem = f.read()
        self.private_key_pem = private_key_pem

        self._setup_routes()

    def exchange(self, external_claims: Dict[str, Any]) -> str:
        """Sign an internal token carrying only the copied claims."""
        missing = [name for name in COPIED_CLAIMS if name not in external_claims]
        if missing:
            raise ValueError(f"payload lacks {', '.join(missing)}")

        now = datetime.now(timezone.utc)
        payload = {
            name: "" if external_claims[name] is None else str(external_claims[name])
            for name in COPIED_CLAIMS
        }
        payload.update({
            "iss": self.issuer,
            "iat": int(now.timestamp()),
            "nbf": int(now.timestamp()),
            "exp": int((now + TOKEN_LIFETIME).timestamp()),
        })
        return jwt.encode(payload, self.private_key_pem, algorithm="RS256")

    def _setup_routes(self):
        """Set up exchange routes."""

        @self.app.get("/exchange/{remainder:path}")
        async def exchange_token(remainder: str, x_jwt_payload: Optional[str] = Header(default=None)):
            """Exchange the forwarded external claims for an internal token."""
            if not x_jwt_payload:
                raise HTTPException(status_code=401, detail=f"{PAYLOAD_HEADER} header required")

            try:
                token = self.exchange(decode_forwarded_payload(x_jwt_payload))
            except ValueError as e:
                self.logger.warning("Token exchange rejected", path=remainder, error=str(e))
                raise HTTPException(status_code=400, detail="Invalid payload.")

            self.logger.info("Token exchanged", path=remainder)
            return Response(status_code=200, headers={INTERNAL_TOKEN_HEADER: token})


def create_app():
    """Create mock token exchanger application."""
    server = MockTokenExchangerServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8080)
