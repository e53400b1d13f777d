from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional, Protocol

from fastapi import Request, Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.orm import Session as DbSession

from ordersync.core.config import (
    SESSION_COOKIE_DOMAIN,
    SESSION_COOKIE_SAMESITE,
    SESSION_COOKIE_SECURE,
    SESSION_MAX_AGE_SECONDS,
    SESSION_SECRET,
    SESSION_VALIDATE_TENANT,
)
from ordersync.core.roles import Role, parse_role
from ordersync.models.tenant import Tenant
from ordersync.models.user import User

logger = logging.getLogger(__name__)

SESSION_COOKIE = "ordersync_session"
SESSION_SALT = "ordersync-session"


@dataclass(frozen=True)
class Session:
    """Active tenant plus authenticated identity. Created at login, dropped at logout."""

    tenant_id: int
    user_id: int
    role: str
    name: str = ""
    tenant_slug: str = ""

    @property
    def is_admin(self) -> bool:
        return parse_role(self.role) == Role.admin

    @classmethod
    def for_user(cls, user: User, tenant: Tenant | None = None) -> "Session":
        # The tenant always comes from the user's own reference.
        return cls(
            tenant_id=int(user.tenant_id),
            user_id=int(user.id),
            role=str(user.role),
            name=user.name or "",
            tenant_slug=(tenant.slug if tenant is not None else "") or "",
        )

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> Optional["Session"]:
        if not payload:
            return None
        try:
            tenant_id = int(payload["tenant_id"])
            user_id = int(payload.get("user_id", payload.get("sub")))
        except (KeyError, TypeError, ValueError):
            return None
        role = parse_role(payload.get("role"))
        if role is None:
            return None
        return cls(
            tenant_id=tenant_id,
            user_id=user_id,
            role=role.value,
            name=str(payload.get("name") or ""),
            tenant_slug=str(payload.get("tenant_slug") or ""),
        )


class SessionStore(Protocol):
    def load(self) -> Optional[Session]:
        ...

    def save(self, session: Session) -> None:
        ...

    def clear(self) -> None:
        ...


def _serializer() -> URLSafeTimedSerializer:
    if not SESSION_SECRET:
        raise RuntimeError("SESSION_SECRET not configured.")
    return URLSafeTimedSerializer(SESSION_SECRET, salt=SESSION_SALT)


def encode_session(session: Session) -> str:
    payload = {**session.to_payload(), "exp": int(time.time()) + SESSION_MAX_AGE_SECONDS}
    return _serializer().dumps(payload)


def decode_session(token: str) -> Optional[Session]:
    try:
        payload = _serializer().loads(token, max_age=SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    exp = payload.get("exp")
    if exp is not None:
        try:
            if int(exp) < int(time.time()):
                return None
        except (TypeError, ValueError):
            return None
    return Session.from_payload(payload)


def cookie_options() -> dict[str, Any]:
    return {
        "domain": SESSION_COOKIE_DOMAIN,
        "httponly": True,
        "samesite": SESSION_COOKIE_SAMESITE,
        "path": "/",
        "secure": SESSION_COOKIE_SECURE,
    }


class CookieSessionStore:
    """Session persistence in a signed, time-limited HTTP-only cookie."""

    def __init__(self, request: Request | None = None, response: Response | None = None) -> None:
        self._request = request
        self._response = response

    def load(self) -> Optional[Session]:
        if self._request is None:
            return None
        token = self._request.cookies.get(SESSION_COOKIE)
        if not token:
            return None
        return decode_session(token)

    def save(self, session: Session) -> None:
        if self._response is None:
            raise RuntimeError("CookieSessionStore.save requires a response")
        self._response.set_cookie(
            key=SESSION_COOKIE,
            value=encode_session(session),
            max_age=SESSION_MAX_AGE_SECONDS,
            **cookie_options(),
        )

    def clear(self) -> None:
        if self._response is None:
            raise RuntimeError("CookieSessionStore.clear requires a response")
        options = cookie_options()
        self._response.delete_cookie(
            key=SESSION_COOKIE,
            path=options["path"],
            domain=options["domain"],
            secure=options["secure"],
            httponly=options["httponly"],
            samesite=options["samesite"],
        )


def restore_session(
    db: DbSession,
    session: Optional[Session],
    *,
    validate: bool | None = None,
) -> Optional[Session]:
    """Re-check a stored session against the database.

    With validation on, a session whose tenant or user disappeared (or whose user
    moved tenant) is dropped; name and role are refreshed from the user row.
    With validation off the stored session is trusted as-is.
    """
    if session is None:
        return None
    should_validate = SESSION_VALIDATE_TENANT if validate is None else validate
    if not should_validate:
        return session

    tenant = db.query(Tenant).filter(Tenant.id == session.tenant_id).first()
    if tenant is None:
        logger.warning("Stale session rejected: tenant_id=%s no longer exists", session.tenant_id)
        return None

    user = (
        db.query(User)
        .filter(User.id == session.user_id, User.tenant_id == session.tenant_id)
        .first()
    )
    if user is None:
        logger.warning(
            "Stale session rejected: user_id=%s not found in tenant_id=%s",
            session.user_id,
            session.tenant_id,
        )
        return None

    return replace(
        session,
        role=str(user.role),
        name=user.name or "",
        tenant_slug=tenant.slug or "",
    )
