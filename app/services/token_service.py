"""JWT access token validation (HS256, shared secret).

Tokens are issued by the platform's identity service and signed with
JWT_SECRET.  This service only verifies them.  create_access_token
exists for local development and tests, mirroring the identity
service's claim schema: sub, iss, exp, iat, jti, roles, name.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt

from app.core.config import SETTINGS

ALGORITHM = "HS256"
ACCESS_TOKEN_TTL_MIN = 60


def create_access_token(
    *,
    sub: str,
    roles: list[str] | None = None,
    name: str | None = None,
    ttl_minutes: int = ACCESS_TOKEN_TTL_MIN,
) -> str:
    """Build and sign an access token with the shared secret."""
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": SETTINGS.jwt_issuer,
        "exp": now + timedelta(minutes=ttl_minutes),
        "iat": now,
        "jti": str(uuid.uuid4()),
        "roles": roles or ["student"],
    }
    if name is not None:
        payload["name"] = name
    return jwt.encode(payload, SETTINGS.jwt_secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins the algorithm to HS256 so a token cannot downgrade to alg:none.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        SETTINGS.jwt_secret,
        algorithms=[ALGORITHM],
        issuer=SETTINGS.jwt_issuer,
        options={"require": ["sub", "exp", "iat"]},
    )
