from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any
import jwt
from haddaf.config import settings

ACCESS_TTL_MIN = 15

# Issuing lives with the identity provider; make_access_token exists for
# local tooling and tests that share the HS256 secret.

def make_access_token(sub: str, role: str | None = None, ttl_min: int = ACCESS_TTL_MIN) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": sub,
        "type": "access",
        "iat": now.timestamp(),  # Use float for microsecond precision
        "exp": int((now + timedelta(minutes=ttl_min)).timestamp()),
    }
    if role:
        payload["role"] = role
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)

def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
