"""
Bearer token authentication for the BFF.

Tokens are verified statelessly against a single public key loaded at
startup. The key type fixes the accepted algorithm family, the issuer must
match the configured value, and the standard ``exp``/``nbf`` claims are
enforced. No token caching and no revocation lookups.
"""

from .keys import KeyLoadError, VerificationKey, load_verification_key, verification_key_from_pem
from .token_validator import Claims, TokenValidator

__all__ = [
    "Claims",
    "KeyLoadError",
    "TokenValidator",
    "VerificationKey",
    "load_verification_key",
    "verification_key_from_pem",
]
