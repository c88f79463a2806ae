"""
Bearer token validation for the BFF.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError

from shared.errors import AuthFailure, AuthenticationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .keys import VerificationKey


BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Claims:
    """Verified claims of one request's bearer token."""

    subject: Optional[str]
    username: str
    issuer: str
    raw: Mapping[str, Any]


class TokenValidator:
    """Validates ``Authorization: Bearer <jwt>`` headers against one public key."""

    def __init__(
        self,
        key: VerificationKey,
        issuer: str,
        *,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.key = key
        self.issuer = issuer
        self.metrics = metrics
        self.logger = get_logger("bff.auth.validator")

    def validate(self, authorization: Optional[str]) -> Claims:
        """Return the token's claims or raise ``AuthenticationError``."""
        try:
            claims = self._validate(authorization)
        except AuthenticationError as exc:
            self._record("rejected")
            self.logger.warning("Token rejected", reason=exc.reason.value, error=exc.message)
            raise
        self._record("valid")
        return claims

    def _validate(self, authorization: Optional[str]) -> Claims:
        token = self._extract_bearer(authorization)

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise AuthenticationError(
                f"Invalid token: {exc}",
                reason=AuthFailure.INVALID_OR_EXPIRED_TOKEN,
            ) from exc

        # Algorithm must belong to the configured key's family, checked
        # before the signature is looked at.
        algorithm = header.get("alg")
        if algorithm not in self.key.algorithms:
            raise AuthenticationError(
                f"Unexpected signing method: {algorithm}",
                reason=AuthFailure.UNEXPECTED_SIGNING_METHOD,
            )

        try:
            payload = jwt.decode(
                token,
                self.key.pem,
                algorithms=[algorithm],
                options={"verify_aud": False},
            )
        except ExpiredSignatureError as exc:
            raise AuthenticationError(
                "Invalid token: token is expired",
                reason=AuthFailure.INVALID_OR_EXPIRED_TOKEN,
            ) from exc
        except JWTError as exc:
            raise AuthenticationError(
                f"Invalid token: {exc}",
                reason=AuthFailure.INVALID_OR_EXPIRED_TOKEN,
            ) from exc

        issuer = payload.get("iss")
        if issuer != self.issuer:
            raise AuthenticationError(
                "Invalid token: token has invalid issuer",
                reason=AuthFailure.INVALID_ISSUER,
            )

        return self._to_claims(payload, issuer)

    @staticmethod
    def _extract_bearer(authorization: Optional[str]) -> str:
        if not authorization:
            raise AuthenticationError(
                "Authorization header required",
                reason=AuthFailure.MISSING_OR_MALFORMED_HEADER,
            )
        if not authorization.startswith(BEARER_PREFIX):
            raise AuthenticationError(
                "Bearer token required",
                reason=AuthFailure.MISSING_OR_MALFORMED_HEADER,
            )

        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            raise AuthenticationError(
                "Authorization header contained empty bearer token",
                reason=AuthFailure.MISSING_OR_MALFORMED_HEADER,
            )
        return token

    @staticmethod
    def _to_claims(payload: Dict[str, Any], issuer: str) -> Claims:
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            subject = None

        username = payload.get("preferred_username")
        if not isinstance(username, str) or not username:
            username = subject
        if username is None:
            raise AuthenticationError(
                "Token carries neither preferred_username nor sub",
                reason=AuthFailure.INVALID_CLAIMS,
            )

        return Claims(
            subject=subject,
            username=username,
            issuer=issuer,
            raw=MappingProxyType(dict(payload)),
        )

    def _record(self, status: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter("token_validations_total", status=status)
