from __future__ import annotations
from dataclasses import dataclass
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt
from haddaf.security import decode_token

security = HTTPBearer(auto_error=False)

@dataclass(frozen=True)
class Identity:
    uid: str
    role: str = "player"

    @property
    def can_publish(self) -> bool:
        return self.role in ("admin", "coach")

def _identity_from(credentials: HTTPAuthorizationCredentials | None) -> Identity | None:
    if credentials is None:
        return None
    try:
        data = decode_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("type") != "access":
        raise HTTPException(status_code=401, detail="Wrong token type")
    sub = str(data.get("sub") or "").strip()
    if not sub:
        raise HTTPException(status_code=401, detail="Token has no subject")
    return Identity(uid=sub, role=str(data.get("role") or "player").lower())

async def get_optional_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity | None:
    # Guests may browse; a present-but-bad token is still rejected
    return _identity_from(credentials)

async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    ident = _identity_from(credentials)
    if ident is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return ident
