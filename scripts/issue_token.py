#!/usr/bin/env python3
"""
Mint an internal RS256 access token for calling the BFF locally.

The token carries ``sub``, ``preferred_username``, the gateway issuer and a
short expiry, matching what the edge token exchange hands to the BFF.
"""

import argparse
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import jwt

from shared.config import DEFAULT_ISSUER


def issue_token(
    private_key_pem: bytes,
    subject: str,
    username: str,
    *,
    issuer: str = DEFAULT_ISSUER,
    expires_in_minutes: int = 15,
) -> str:
    """Return a signed compact JWT."""
    now = datetime.now(timezone.utc)
    payload = {
        "iss": issuer,
        "sub": subject,
        "preferred_username": username,
        "iat": int(now.timestamp()),
        "nbf": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_in_minutes)).timestamp()),
    }
    return jwt.encode(payload, private_key_pem, algorithm="RS256")


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue an internal access token for the BFF")
    parser.add_argument("--private-key", type=Path, default=Path("private_key.pem"), help="PEM encoded RSA private key")
    parser.add_argument("--sub", default="user1", help="Subject claim")
    parser.add_argument("--username", default="john.doe", help="preferred_username claim")
    parser.add_argument("--issuer", default=DEFAULT_ISSUER, help="Issuer claim")
    parser.add_argument("--expires-in", type=int, default=15, help="Lifetime in minutes")
    parser.add_argument("--header", action="store_true", help="Print a full Authorization header value")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    try:
        token = issue_token(
            args.private_key.read_bytes(),
            args.sub,
            args.username,
            issuer=args.issuer,
            expires_in_minutes=args.expires_in,
        )
    except (OSError, ValueError, jwt.PyJWTError) as exc:
        print(f"[issue-token] failed: {exc}", file=sys.stderr)
        return 1

    print(f"Bearer {token}" if args.header else token)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
