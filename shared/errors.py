"""
Shared error handling for the Product BFF.
"""

from enum import Enum
from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class AuthFailure(str, Enum):
    """Reasons a bearer token is rejected."""

    MISSING_OR_MALFORMED_HEADER = "MissingOrMalformedHeader"
    UNEXPECTED_SIGNING_METHOD = "UnexpectedSigningMethod"
    INVALID_ISSUER = "InvalidIssuer"
    INVALID_OR_EXPIRED_TOKEN = "InvalidOrExpiredToken"
    INVALID_CLAIMS = "InvalidClaims"


class UpstreamFailure(str, Enum):
    """Ways a single downstream fetch can fail."""

    TIMEOUT = "Timeout"
    BAD_STATUS = "BadStatus"
    DECODE = "Decode"
    UNREACHABLE = "Unreachable"


class BffException(Exception):
    """Base exception for BFF services."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class AuthenticationError(BffException):
    """Authentication-related errors."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication failed",
        reason: AuthFailure = AuthFailure.INVALID_OR_EXPIRED_TOKEN,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.reason = reason
        super().__init__("AUTHENTICATION_ERROR", message, {"reason": reason.value, **(details or {})})


class ValidationError(BffException):
    """Validation-related errors."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class MissingProductIdError(ValidationError):
    """The request path carried no product identifier."""

    def __init__(self):
        super().__init__("Product ID required", details={"reason": "MissingId"})


class ExternalServiceError(BffException):
    """External service errors."""

    status_code = 502

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)


class UpstreamError(ExternalServiceError):
    """A downstream fetch failed with a classified cause."""

    def __init__(
        self,
        service: str,
        kind: UpstreamFailure,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.kind = kind
        self.upstream_status = status_code
        self.body = body
        details: Dict[str, Any] = {"service": service, "kind": kind.value}
        if status_code is not None:
            details["status_code"] = status_code
        if body is not None:
            details["body"] = body
        super().__init__(service, message, details)
