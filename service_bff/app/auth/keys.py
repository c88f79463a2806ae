"""
Public key loading for bearer token verification.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from shared.logging import get_logger


RSA_ALGORITHMS = frozenset({"RS256", "RS384", "RS512"})
EC_ALGORITHMS = frozenset({"ES256", "ES384", "ES512"})

logger = get_logger("bff.auth.keys")


class KeyLoadError(Exception):
    """Raised when the configured public key cannot be used."""


@dataclass(frozen=True)
class VerificationKey:
    """PEM public key plus the JWS algorithms its type admits."""

    pem: str
    algorithms: FrozenSet[str]

    @property
    def family(self) -> str:
        return "RSA" if self.algorithms == RSA_ALGORITHMS else "EC"


def verification_key_from_pem(pem: Union[str, bytes]) -> VerificationKey:
    """Parse a PEM public key and derive its algorithm family."""
    data = pem.encode("ascii") if isinstance(pem, str) else pem
    try:
        public_key = serialization.load_pem_public_key(data)
    except ValueError as exc:
        raise KeyLoadError(f"Public key is not a valid PEM: {exc}") from exc

    if isinstance(public_key, rsa.RSAPublicKey):
        algorithms = RSA_ALGORITHMS
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        algorithms = EC_ALGORITHMS
    else:
        raise KeyLoadError(f"Unsupported public key type: {type(public_key).__name__}")

    return VerificationKey(pem=data.decode("ascii"), algorithms=algorithms)


def load_verification_key(path: Union[str, Path]) -> VerificationKey:
    """Read the public key file once at startup."""
    key_path = Path(path)
    try:
        pem = key_path.read_bytes()
    except OSError as exc:
        raise KeyLoadError(f"Failed to read public key {key_path}: {exc}") from exc

    key = verification_key_from_pem(pem)
    logger.info("Public key loaded", path=str(key_path), family=key.family)
    return key
