# ordersync/deps.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session as DbSession

from ordersync.core.database import get_db
from ordersync.core.request_context import bind_session
from ordersync.core.roles import View
from ordersync.services.auth import session_from_token
from ordersync.services.authorization_service import AuthorizationService
from ordersync.services.session import CookieSessionStore, Session, SessionStore, restore_session

# Swagger "Authorize" (OAuth2 password flow) posts to this endpoint.
# auto_error=False so the cookie session can be tried when no header is sent.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def load_stored_session(request: Request, token: Optional[str]) -> Optional[Session]:
    """Bearer token first, signed cookie second."""
    if token:
        stored = session_from_token(token)
        if stored is None:
            raise _unauthorized("Invalid or expired token")
        return stored
    store: SessionStore = CookieSessionStore(request)
    return store.load()


def get_current_session(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: DbSession = Depends(get_db),
) -> Session:
    stored = load_stored_session(request, token)
    if stored is None:
        raise _unauthorized("Not authenticated")

    session = restore_session(db, stored)
    if session is None:
        exc = _unauthorized("Session is no longer valid")
        if not token:
            # Drop the stale cookie along with the 401.
            expired = Response()
            CookieSessionStore(response=expired).clear()
            exc.headers = {**(exc.headers or {}), "set-cookie": expired.headers["set-cookie"]}
        raise exc

    request.state.session = session
    bind_session(session)
    return session


def require_view(view: View):
    def _dependency(request: Request, session: Session = Depends(get_current_session)) -> Session:
        AuthorizationService.ensure_view(actor=session, view=view, request=request)
        return session

    return _dependency

