from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from ordersync.core.config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET_KEY
from ordersync.services.session import Session


def create_access_token(session: Session, expires_minutes: int = JWT_EXPIRE_MINUTES) -> str:
    """
    "sub" must be a string for python-jose; the remaining session fields ride
    along so a bearer token restores the same session as the cookie.
    """
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expires_minutes)

    payload: Dict[str, Any] = {
        "sub": str(session.user_id),
        "tenant_id": session.tenant_id,
        "role": session.role,
        "name": session.name,
        "tenant_slug": session.tenant_slug,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Return the JWT payload or raise ValueError if invalid."""
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        raise ValueError("Invalid or expired token") from e


def session_from_token(token: Optional[str]) -> Optional[Session]:
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except ValueError:
        return None
    return Session.from_payload(payload)
