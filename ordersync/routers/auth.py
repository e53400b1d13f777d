# ordersync/routers/auth.py
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session as DbSession

from ordersync.core.database import get_db
from ordersync.core.request_context import bind_session
from ordersync.deps import get_current_session
from ordersync.models.tenant import Tenant
from ordersync.services.auth import create_access_token
from ordersync.services.authorization_service import visible_views
from ordersync.services.passwords import verify_password
from ordersync.services.repositories import TenantRepository, UserRepository
from ordersync.services.session import CookieSessionStore, Session

router = APIRouter(prefix="/api/auth", tags=["auth"])

logger = logging.getLogger(__name__)


class LoginPayload(BaseModel):
    tenant: str = Field(..., min_length=1, description="Tenant slug or id")
    phone: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionRead(BaseModel):
    tenant_id: int
    tenant_slug: str
    user_id: int
    name: str
    role: str
    views: List[str]


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    session: SessionRead


def _session_body(session: Session) -> dict:
    return {
        "tenant_id": session.tenant_id,
        "tenant_slug": session.tenant_slug,
        "user_id": session.user_id,
        "name": session.name,
        "role": session.role,
        "views": [view.value for view in visible_views(session)],
    }


def _resolve_tenant(db: DbSession, value: str) -> Tenant | None:
    tenants = TenantRepository(db)
    raw = (value or "").strip()
    tenant = tenants.get_by_slug(raw)
    # Numeric ids are accepted only when no slug matches.
    if tenant is None and raw.isdigit():
        tenant = tenants.get(int(raw))
    return tenant


def authenticate(db: DbSession, tenant_ref: str, phone: str, password: str) -> Session:
    """Credentials are checked only inside the selected tenant."""
    tenant = _resolve_tenant(db, tenant_ref)
    user = UserRepository(db).find_by_handle(tenant.id, phone) if tenant is not None else None
    if tenant is None or user is None or not verify_password(password, user.password_hash):
        logger.warning(
            "login failed tenant=%s",
            tenant_ref,
            extra={"reason": "invalid_credentials"},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Session.for_user(user, tenant)


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginPayload, response: Response, db: DbSession = Depends(get_db)):
    session = authenticate(db, payload.tenant, payload.phone, payload.password)
    CookieSessionStore(response=response).save(session)
    bind_session(session)
    logger.info("login success tenant_id=%s user_id=%s", session.tenant_id, session.user_id)
    return {
        "access_token": create_access_token(session),
        "token_type": "bearer",
        "session": _session_body(session),
    }


@router.post("/token")
def token(form_data: OAuth2PasswordRequestForm = Depends(), db: DbSession = Depends(get_db)):
    """Used by the Swagger UI "Authorize" button.

    The username is ``<tenant>:<phone>``, e.g. ``resevalley:admin``.
    """
    tenant_ref, separator, phone = form_data.username.partition(":")
    if not separator or not tenant_ref or not phone:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Username must be <tenant>:<phone>",
            headers={"WWW-Authenticate": "Bearer"},
        )
    session = authenticate(db, tenant_ref, phone, form_data.password)
    return {"access_token": create_access_token(session), "token_type": "bearer"}


@router.post("/logout")
def logout(request: Request, response: Response):
    # Identity and tenant are cleared together.
    CookieSessionStore(request, response).clear()
    return {"ok": True}


@router.get("/session", response_model=SessionRead)
def current_session(session: Session = Depends(get_current_session)):
    return _session_body(session)
